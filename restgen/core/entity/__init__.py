from .annotations import annotations_from_model, relation, require_role, rest_api
from .extractor import extract_entity
from .loader import load_entities, parse_entities
from .models import (
    Dialect,
    EntityDescriptor,
    FieldDescriptor,
    RelationDescriptor,
    RoleRequirements,
    ScalarKind,
)

__all__ = [
    "Dialect",
    "EntityDescriptor",
    "FieldDescriptor",
    "RelationDescriptor",
    "RoleRequirements",
    "ScalarKind",
    "annotations_from_model",
    "extract_entity",
    "load_entities",
    "parse_entities",
    "relation",
    "require_role",
    "rest_api",
]
