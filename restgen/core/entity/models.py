from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Dialect(str, Enum):
    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"
    GENERIC = "generic"


class ScalarKind(str, Enum):
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    kind: ScalarKind
    is_id: bool = False
    is_created_timestamp: bool = False
    is_updated_timestamp: bool = False

    @property
    def is_timestamp(self) -> bool:
        return self.is_created_timestamp or self.is_updated_timestamp

    @property
    def is_writable(self) -> bool:
        """Bound by insert and full update statements."""
        return not (self.is_id or self.is_timestamp)


@dataclass(frozen=True)
class RoleRequirements:
    read: Optional[str] = None
    update: Optional[str] = None
    delete: Optional[str] = None

    def for_operation(self, operation: str) -> Optional[str]:
        return getattr(self, operation)


@dataclass(frozen=True)
class RelationDescriptor:
    field_name: str
    parent_table: str
    parent_column: str
    nested_route_enabled: bool = True


@dataclass(frozen=True)
class EntityDescriptor:
    name: str
    table: str
    id_field: str
    dialect: Dialect
    fields: Tuple[FieldDescriptor, ...]
    roles: RoleRequirements = field(default_factory=RoleRequirements)
    relation: Optional[RelationDescriptor] = None

    @property
    def writable_fields(self) -> Tuple[FieldDescriptor, ...]:
        return tuple(f for f in self.fields if f.is_writable)

    @property
    def updated_timestamp(self) -> Optional[FieldDescriptor]:
        for f in self.fields:
            if f.is_updated_timestamp:
                return f
        return None

    def get_field(self, name: str) -> FieldDescriptor:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)
