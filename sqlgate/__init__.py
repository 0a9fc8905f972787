"""Typed queries, migrations and read-only gating over SQLite."""

from sqlgate.errors import (
    AlreadyOpenError,
    AuthorizationError,
    CapabilityError,
    ConversionError,
    EngineError,
    InsertTypeError,
    MigrationError,
    ShapeError,
    SqlgateError,
)
from sqlgate.store import (
    Database,
    ExecResult,
    JSONValue,
    QueryResult,
    execute,
    insert,
    migrate,
    query,
    read_migrations,
    run,
    set_user_version,
    user_version,
)

__version__ = "0.1.0"

__all__ = [
    "Database",
    "query",
    "run",
    "execute",
    "insert",
    "migrate",
    "read_migrations",
    "user_version",
    "set_user_version",
    "ExecResult",
    "QueryResult",
    "JSONValue",
    "SqlgateError",
    "EngineError",
    "AuthorizationError",
    "ShapeError",
    "ConversionError",
    "InsertTypeError",
    "AlreadyOpenError",
    "CapabilityError",
    "MigrationError",
]
