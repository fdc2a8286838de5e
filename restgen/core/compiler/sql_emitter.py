from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from restgen.core.compiler.dialects import profile_for
from restgen.core.entity.models import EntityDescriptor, FieldDescriptor

log = logging.getLogger("restgen.sql")

CURRENT_TIMESTAMP = "CURRENT_TIMESTAMP"


@dataclass(frozen=True)
class CompiledStatement:
    sql: str
    params: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class SqlStatements:
    """Statement templates for one entity, in its dialect."""

    create_table: str
    select_all: str
    select_by_id: str
    insert: str
    update: str
    delete: str
    insert_columns: Tuple[str, ...]
    update_columns: Tuple[str, ...]
    select_by_parent: Optional[str] = None


def _column_def(entity: EntityDescriptor, f: FieldDescriptor) -> str:
    prof = profile_for(entity.dialect)
    if f.is_id:
        return f"{f.name} {prof.id_column}"
    if f.is_timestamp:
        return f"{f.name} {prof.timestamp_column}"
    return f"{f.name} {prof.types[f.kind]}"


def create_table_sql(entity: EntityDescriptor) -> str:
    cols = ", ".join(_column_def(entity, f) for f in entity.fields)
    return f"CREATE TABLE IF NOT EXISTS {entity.table} ({cols})"


def insert_sql(entity: EntityDescriptor) -> str:
    prof = profile_for(entity.dialect)
    columns = [f.name for f in entity.writable_fields]
    marks = ", ".join(prof.placeholders(len(columns)))
    sql = f"INSERT INTO {entity.table} ({', '.join(columns)}) VALUES ({marks})"
    if prof.returning_id:
        sql += f" RETURNING {entity.id_field}"
    return sql


def update_sql(entity: EntityDescriptor) -> str:
    prof = profile_for(entity.dialect)
    clauses = []
    position = 1
    for f in entity.writable_fields:
        clauses.append(f"{f.name} = {prof.placeholder(position)}")
        position += 1
    stamp = entity.updated_timestamp
    if stamp is not None:
        clauses.append(f"{stamp.name} = {CURRENT_TIMESTAMP}")
    return (
        f"UPDATE {entity.table} SET {', '.join(clauses)} "
        f"WHERE {entity.id_field} = {prof.placeholder(position)}"
    )


def emit_statements(entity: EntityDescriptor) -> SqlStatements:
    prof = profile_for(entity.dialect)
    first = prof.placeholder(1)

    select_by_parent = None
    if entity.relation is not None:
        select_by_parent = f"SELECT * FROM {entity.table} WHERE {entity.relation.field_name} = {first}"

    stmts = SqlStatements(
        create_table=create_table_sql(entity),
        select_all=f"SELECT * FROM {entity.table}",
        select_by_id=f"SELECT * FROM {entity.table} WHERE {entity.id_field} = {first}",
        insert=insert_sql(entity),
        update=update_sql(entity),
        delete=f"DELETE FROM {entity.table} WHERE {entity.id_field} = {first}",
        insert_columns=tuple(f.name for f in entity.writable_fields),
        update_columns=tuple(f.name for f in entity.writable_fields),
        select_by_parent=select_by_parent,
    )
    log.debug("emitted statements for %s (%s)", entity.table, entity.dialect.value)
    return stmts


def insert_params(stmts: SqlStatements, record: Mapping[str, Any]) -> Tuple[Any, ...]:
    """Values for `stmts.insert`, in column order; missing values bind NULL."""
    return tuple(record.get(name) for name in stmts.insert_columns)


def update_params(stmts: SqlStatements, record: Mapping[str, Any], record_id: Any) -> Tuple[Any, ...]:
    """Values for `stmts.update`, in column order with the id last."""
    return tuple(record.get(name) for name in stmts.update_columns) + (record_id,)
