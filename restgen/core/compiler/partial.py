from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from restgen.core.compiler.dialects import profile_for
from restgen.core.compiler.sql_emitter import CURRENT_TIMESTAMP, CompiledStatement
from restgen.core.entity.models import EntityDescriptor, FieldDescriptor


@dataclass(frozen=True)
class PartialDescriptor:
    """All-optional mirror of an entity: every field except the id."""

    entity: EntityDescriptor
    fields: Tuple[FieldDescriptor, ...]

    @classmethod
    def from_entity(cls, entity: EntityDescriptor) -> "PartialDescriptor":
        return cls(entity=entity, fields=tuple(f for f in entity.fields if not f.is_id))

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)


def compile_partial_update(
    partial: PartialDescriptor,
    payload: Mapping[str, Any],
    record_id: Any,
) -> Optional[CompiledStatement]:
    """
    Build the UPDATE for the fields present in `payload`.

    Present means "key exists"; a None value is a present NULL. Keys that are
    not partial fields are ignored. Returns None when no field is present, in
    which case nothing must be executed.
    """
    entity = partial.entity
    prof = profile_for(entity.dialect)

    clauses: List[str] = []
    params: List[Any] = []
    for f in partial.fields:
        if f.name not in payload:
            continue
        params.append(payload[f.name])
        clauses.append(f"{f.name} = {prof.placeholder(len(params))}")

    if not clauses:
        return None

    stamp = entity.updated_timestamp
    if stamp is not None and stamp.name not in payload:
        clauses.append(f"{stamp.name} = {CURRENT_TIMESTAMP}")

    params.append(record_id)
    sql = (
        f"UPDATE {entity.table} SET {', '.join(clauses)} "
        f"WHERE {entity.id_field} = {prof.placeholder(len(params))}"
    )
    return CompiledStatement(sql=sql, params=tuple(params))
