from .pool import ExecResult, SqlitePool, StatementPool

__all__ = ["ExecResult", "SqlitePool", "StatementPool"]
