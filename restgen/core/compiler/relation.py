from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from restgen.core.entity.models import EntityDescriptor, RelationDescriptor
from restgen.core.errors import MalformedAnnotation

log = logging.getLogger("restgen.entity")


def _as_bool(entity: str, key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise MalformedAnnotation(entity, f"'{key}' must be a boolean, got {value!r}")


def parse_reference(entity: str, references: Any) -> tuple[str, str]:
    """Split 'table.column' into its two parts."""
    if not isinstance(references, str):
        raise MalformedAnnotation(entity, f"'references' must be a string, got {references!r}")
    parts = references.split(".")
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise MalformedAnnotation(entity, f"'references' must look like 'table.column', got {references!r}")
    return parts[0].strip(), parts[1].strip()


def resolve_relation(entity: str, raw_fields: Sequence[Mapping[str, Any]]) -> Optional[RelationDescriptor]:
    """
    Find the single foreign-key relation declared on an entity's fields.

    A relation needs both 'foreign_key' and 'references'; with either one
    missing the field is treated as a plain column. Declaring more than one
    relation is a configuration error.
    """
    found: Optional[RelationDescriptor] = None

    for raw in raw_fields:
        opts = raw.get("relation")
        if opts is None:
            continue
        if not isinstance(opts, Mapping):
            raise MalformedAnnotation(entity, f"relation on field {raw.get('name')!r} must be a mapping")

        foreign_key = opts.get("foreign_key")
        references = opts.get("references")
        if foreign_key is None or references is None:
            log.warning(
                "relation on %s.%s ignored: needs both foreign_key and references",
                entity,
                raw.get("name"),
            )
            continue
        if not isinstance(foreign_key, str):
            raise MalformedAnnotation(entity, f"'foreign_key' must be a string, got {foreign_key!r}")

        parent_table, parent_column = parse_reference(entity, references)
        nested = _as_bool(entity, "nested_route", opts.get("nested_route", True))

        if found is not None:
            raise MalformedAnnotation(
                entity,
                f"only one relation per entity is supported "
                f"(found {found.field_name!r} and {raw.get('name')!r})",
            )

        field_name = str(raw["name"]).strip()
        if foreign_key.strip() != field_name:
            log.warning(
                "relation on %s.%s names foreign_key=%r; filtering on the field column",
                entity,
                field_name,
                foreign_key,
            )
        found = RelationDescriptor(
            field_name=field_name,
            parent_table=parent_table,
            parent_column=parent_column,
            nested_route_enabled=nested,
        )

    return found


def nested_path(entity: EntityDescriptor) -> Optional[str]:
    """Route template listing children of one parent row."""
    rel = entity.relation
    if rel is None:
        return None
    return f"/{rel.parent_table}/{{parent_id}}/{entity.table}"
