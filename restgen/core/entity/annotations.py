"""
Decorator surface for declaring entities on pydantic models.

    @rest_api(table="comment", db="sqlite")
    @require_role(read="user", update="user", delete="user")
    class Comment(BaseModel):
        id: Optional[int] = None
        title: str
        post_id: int = relation(foreign_key="post_id", references="post.id", nested_route=True)
        created_at: Optional[str] = None

`annotations_from_model` flattens such a class into the same raw mapping
the YAML loader produces, so the extractor has a single input shape.
"""
from __future__ import annotations

import typing
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

REST_API_ATTR = "__rest_api__"
REQUIRE_ROLE_ATTR = "__require_role__"

_PY_KINDS = {
    int: "integer",
    bool: "integer",
    float: "real",
    str: "text",
}


def rest_api(*, table: Optional[str] = None, id: str = "id", db: str = "sqlite"):
    def decorator(cls):
        opts: Dict[str, Any] = {"id": id, "db": db}
        if table is not None:
            opts["table"] = table
        setattr(cls, REST_API_ATTR, opts)
        return cls

    return decorator


def require_role(**roles: str):
    def decorator(cls):
        setattr(cls, REQUIRE_ROLE_ATTR, dict(roles))
        return cls

    return decorator


def relation(*, foreign_key: str, references: str, nested_route: bool = True, **field_kwargs: Any):
    """pydantic Field carrying relation metadata."""
    extra = {
        "relation": {
            "foreign_key": foreign_key,
            "references": references,
            "nested_route": nested_route,
        }
    }
    return Field(json_schema_extra=extra, **field_kwargs)


def _python_kind(annotation: Any) -> str:
    # Optional[X] / X | None -> X
    args = [a for a in typing.get_args(annotation) if a is not type(None)]
    if typing.get_origin(annotation) is not None and len(args) == 1:
        annotation = args[0]
    return _PY_KINDS.get(annotation, "text")


def annotations_from_model(model: type) -> Dict[str, Any]:
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise TypeError(f"expected a pydantic model class, got {model!r}")

    fields: List[Dict[str, Any]] = []
    for name, info in model.model_fields.items():
        entry: Dict[str, Any] = {"name": name, "type": _python_kind(info.annotation)}
        extra = info.json_schema_extra
        if isinstance(extra, dict) and "relation" in extra:
            entry["relation"] = dict(extra["relation"])
        fields.append(entry)

    return {
        "name": model.__name__,
        "rest_api": dict(getattr(model, REST_API_ATTR, {})),
        "require_role": dict(getattr(model, REQUIRE_ROLE_ATTR, {})),
        "fields": fields,
    }
