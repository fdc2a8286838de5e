"""Entities served when no RESTGEN_ENTITIES_FILE is configured."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from restgen.core.entity.annotations import relation, require_role, rest_api


@rest_api(table="post", id="id", db="sqlite")
@require_role(read="user", update="user", delete="user")
class Post(BaseModel):
    id: Optional[int] = None
    title: str
    content: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@rest_api(table="comment", id="id", db="sqlite")
@require_role(read="user", update="user", delete="user")
class Comment(BaseModel):
    id: Optional[int] = None
    title: str
    content: str
    post_id: int = relation(foreign_key="post_id", references="post.id", nested_route=True)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@rest_api(table="user", id="id", db="sqlite")
@require_role(read="admin", update="admin", delete="admin")
class User(BaseModel):
    id: Optional[int] = None
    email: str
    password_hash: str
    role: str


DEMO_ENTITIES = (User, Post, Comment)
