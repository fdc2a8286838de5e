from .dialects import DialectProfile, profile_for
from .partial import PartialDescriptor, compile_partial_update
from .records import partial_model, record_model
from .relation import nested_path, resolve_relation
from .sql_emitter import CompiledStatement, SqlStatements, emit_statements, insert_params, update_params

__all__ = [
    "CompiledStatement",
    "DialectProfile",
    "PartialDescriptor",
    "SqlStatements",
    "compile_partial_update",
    "emit_statements",
    "insert_params",
    "nested_path",
    "partial_model",
    "profile_for",
    "record_model",
    "resolve_relation",
    "update_params",
]
