from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from restgen.core.entity.models import Dialect, ScalarKind


@dataclass(frozen=True)
class DialectProfile:
    dialect: Dialect
    ordinal_placeholders: bool
    id_column: str
    timestamp_column: str
    types: Dict[ScalarKind, str]
    returning_id: bool = False

    def placeholder(self, position: int) -> str:
        """Placeholder for the 1-based bind position."""
        return f"${position}" if self.ordinal_placeholders else "?"

    def placeholders(self, count: int, start: int = 1) -> List[str]:
        return [self.placeholder(start + i) for i in range(count)]


_SQLITE_TYPES = {
    ScalarKind.INTEGER: "INTEGER",
    ScalarKind.REAL: "REAL",
    ScalarKind.TEXT: "TEXT",
}

PROFILES: Dict[Dialect, DialectProfile] = {
    Dialect.SQLITE: DialectProfile(
        dialect=Dialect.SQLITE,
        ordinal_placeholders=False,
        id_column="INTEGER PRIMARY KEY AUTOINCREMENT",
        timestamp_column="TEXT DEFAULT CURRENT_TIMESTAMP",
        types=_SQLITE_TYPES,
    ),
    Dialect.MYSQL: DialectProfile(
        dialect=Dialect.MYSQL,
        ordinal_placeholders=False,
        id_column="INTEGER PRIMARY KEY AUTO_INCREMENT",
        timestamp_column="TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        types={
            ScalarKind.INTEGER: "BIGINT",
            ScalarKind.REAL: "DOUBLE",
            ScalarKind.TEXT: "TEXT",
        },
    ),
    Dialect.POSTGRES: DialectProfile(
        dialect=Dialect.POSTGRES,
        ordinal_placeholders=True,
        id_column="BIGSERIAL PRIMARY KEY",
        timestamp_column="TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        types={
            ScalarKind.INTEGER: "BIGINT",
            ScalarKind.REAL: "DOUBLE PRECISION",
            ScalarKind.TEXT: "TEXT",
        },
        returning_id=True,
    ),
    Dialect.GENERIC: DialectProfile(
        dialect=Dialect.GENERIC,
        ordinal_placeholders=False,
        id_column="INTEGER PRIMARY KEY AUTOINCREMENT",
        timestamp_column="TEXT DEFAULT CURRENT_TIMESTAMP",
        types=_SQLITE_TYPES,
    ),
}


def profile_for(dialect: Dialect) -> DialectProfile:
    return PROFILES[dialect]
