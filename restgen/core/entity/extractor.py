from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from restgen.core.compiler.relation import resolve_relation
from restgen.core.entity.annotations import annotations_from_model
from restgen.core.entity.models import (
    Dialect,
    EntityDescriptor,
    FieldDescriptor,
    RoleRequirements,
    ScalarKind,
)
from restgen.core.errors import MalformedAnnotation

log = logging.getLogger("restgen.entity")

CREATED_TIMESTAMP = "created_at"
UPDATED_TIMESTAMP = "updated_at"

ROLE_KEYS = ("read", "update", "delete")

_KIND_ALIASES: Dict[str, ScalarKind] = {
    "integer": ScalarKind.INTEGER,
    "int": ScalarKind.INTEGER,
    "i32": ScalarKind.INTEGER,
    "i64": ScalarKind.INTEGER,
    "bigint": ScalarKind.INTEGER,
    "real": ScalarKind.REAL,
    "float": ScalarKind.REAL,
    "f32": ScalarKind.REAL,
    "f64": ScalarKind.REAL,
    "double": ScalarKind.REAL,
    "text": ScalarKind.TEXT,
    "str": ScalarKind.TEXT,
    "string": ScalarKind.TEXT,
}


def _string(entity: str, key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise MalformedAnnotation(entity, f"'{key}' must be a non-empty string, got {value!r}")
    return value.strip()


def _mapping(entity: str, key: str, value: Any) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise MalformedAnnotation(entity, f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def parse_dialect(entity: str, value: Any) -> Dialect:
    raw = _string(entity, "db", value).lower()
    try:
        return Dialect(raw)
    except ValueError:
        log.warning("entity %s declares unknown db=%r; using generic dialect", entity, raw)
        return Dialect.GENERIC


def parse_roles(entity: str, raw: Mapping[str, Any]) -> RoleRequirements:
    roles: Dict[str, Optional[str]] = {}
    for key, value in raw.items():
        if key not in ROLE_KEYS:
            log.warning("entity %s: ignoring unknown role key %r", entity, key)
            continue
        roles[key] = None if value is None else _string(entity, f"require_role.{key}", value)
    return RoleRequirements(**roles)


def _parse_field(entity: str, raw: Any, id_field: str) -> FieldDescriptor:
    if not isinstance(raw, Mapping):
        raise MalformedAnnotation(entity, f"field entries must be mappings, got {raw!r}")
    if "name" not in raw:
        raise MalformedAnnotation(entity, "field is missing 'name'")
    name = _string(entity, "name", raw["name"])

    type_name = raw.get("type", "text")
    if not isinstance(type_name, str) or type_name.strip().lower() not in _KIND_ALIASES:
        raise MalformedAnnotation(entity, f"field {name!r} has unsupported type {type_name!r}")
    kind = _KIND_ALIASES[type_name.strip().lower()]

    stamp = raw.get("timestamp")
    if stamp is not None and stamp not in ("created", "updated"):
        raise MalformedAnnotation(entity, f"field {name!r}: 'timestamp' must be 'created' or 'updated'")

    is_id = name == id_field
    if is_id and stamp is not None:
        raise MalformedAnnotation(entity, f"id field {name!r} cannot be a timestamp")
    is_created = not is_id and (stamp == "created" or (stamp is None and name == CREATED_TIMESTAMP))
    is_updated = not is_id and (stamp == "updated" or (stamp is None and name == UPDATED_TIMESTAMP))

    return FieldDescriptor(
        name=name,
        kind=ScalarKind.INTEGER if is_id else kind,
        is_id=is_id,
        is_created_timestamp=is_created,
        is_updated_timestamp=is_updated,
    )


def extract_entity(annotations: Union[Mapping[str, Any], type]) -> EntityDescriptor:
    """
    Build an EntityDescriptor from one entity's raw annotations.

    Accepts the mapping form used by entity files or a pydantic model
    decorated with @rest_api / @require_role.
    """
    if isinstance(annotations, type):
        annotations = annotations_from_model(annotations)
    if not isinstance(annotations, Mapping):
        raise MalformedAnnotation("<entity>", f"annotations must be a mapping, got {type(annotations).__name__}")

    rest = _mapping("<entity>", "rest_api", annotations.get("rest_api"))
    raw_name = annotations.get("name")
    raw_table = rest.get("table")
    if raw_name is None and raw_table is None:
        raise MalformedAnnotation("<entity>", "missing 'name' and 'rest_api.table'")

    name = _string("<entity>", "name", raw_name if raw_name is not None else raw_table)
    table = _string(name, "rest_api.table", raw_table) if raw_table is not None else name.lower()
    id_field = _string(name, "rest_api.id", rest.get("id", "id"))
    dialect = parse_dialect(name, rest.get("db", Dialect.SQLITE.value))
    roles = parse_roles(name, _mapping(name, "require_role", annotations.get("require_role")))

    raw_fields = annotations.get("fields")
    if not isinstance(raw_fields, list) or not raw_fields:
        raise MalformedAnnotation(name, "'fields' must be a non-empty list")

    fields: List[FieldDescriptor] = []
    seen = set()
    for raw in raw_fields:
        fd = _parse_field(name, raw, id_field)
        if fd.name in seen:
            raise MalformedAnnotation(name, f"duplicate field {fd.name!r}")
        seen.add(fd.name)
        fields.append(fd)

    ids = [f for f in fields if f.is_id]
    if len(ids) != 1:
        raise MalformedAnnotation(name, f"id field {id_field!r} must be declared exactly once")
    if not any(f.is_writable for f in fields):
        raise MalformedAnnotation(name, "at least one non-id, non-timestamp field is required")
    if sum(1 for f in fields if f.is_updated_timestamp) > 1:
        raise MalformedAnnotation(name, "at most one updated timestamp field is allowed")

    relation = resolve_relation(name, raw_fields)
    if relation is not None:
        target = next((f for f in fields if f.name == relation.field_name), None)
        if target is None:
            raise MalformedAnnotation(name, f"relation field {relation.field_name!r} is not declared")
        if not target.is_writable:
            raise MalformedAnnotation(name, f"relation field {target.name!r} must be a plain column")

    entity = EntityDescriptor(
        name=name,
        table=table,
        id_field=id_field,
        dialect=dialect,
        fields=tuple(fields),
        roles=roles,
        relation=relation,
    )
    log.debug(
        "compiled entity %s table=%s dialect=%s fields=%d relation=%s",
        name,
        table,
        dialect.value,
        len(fields),
        relation.parent_table if relation else None,
    )
    return entity
