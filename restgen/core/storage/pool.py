from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from restgen.core.errors import StorageError

logger = logging.getLogger("restgen.storage")


@dataclass
class ExecResult:
    rows: List[Dict[str, Any]] = field(default_factory=list)
    rows_affected: int = 0
    last_id: Optional[int] = None


class StatementPool(Protocol):
    """What generated handlers need from a database pool."""

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        ...


class SqlitePool:
    """
    Single-connection sqlite pool.

    sqlite3 connections are shared across the server threadpool, so access to
    the connection is serialized here.
    """

    def __init__(self, database: str = ":memory:", timeout: float = 30.0):
        self.database = database
        self.timeout = timeout
        self._lock = threading.Lock()
        self._connection: Optional[sqlite3.Connection] = sqlite3.connect(
            database,
            timeout=timeout,
            check_same_thread=False,
        )
        self._connection.row_factory = sqlite3.Row
        logger.info("sqlite pool opened database=%s", database)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecResult:
        if self._connection is None:
            raise StorageError("pool is closed")
        with self._lock:
            try:
                cursor = self._connection.execute(sql, tuple(params))
                rows = [dict(r) for r in cursor.fetchall()] if cursor.description else []
                self._connection.commit()
            except sqlite3.Error as e:
                self._connection.rollback()
                raise StorageError(str(e)) from e
        return ExecResult(
            rows=rows,
            rows_affected=max(cursor.rowcount, 0),
            last_id=cursor.lastrowid,
        )

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.info("sqlite pool closed database=%s", self.database)
