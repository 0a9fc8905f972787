"""Query materialization, migrations and capability-gated connections."""

from sqlgate.store.coerce import coerce
from sqlgate.store.connection import Database, Handle
from sqlgate.store.jsonvalue import JSONValue
from sqlgate.store.materialize import QueryResult, materialize
from sqlgate.store.migrations import migrate, read_migrations
from sqlgate.store.facade import (
    ExecResult,
    execute,
    insert,
    query,
    run,
    set_user_version,
    user_version,
)
from sqlgate.store.shapes import MappingShape, RecordShape, ScalarShape, shape_for
from sqlgate.store.sqlite import connect

__all__ = [
    "Database",
    "Handle",
    "query",
    "run",
    "execute",
    "insert",
    "user_version",
    "set_user_version",
    "ExecResult",
    "QueryResult",
    "materialize",
    "coerce",
    "JSONValue",
    "migrate",
    "read_migrations",
    "shape_for",
    "RecordShape",
    "MappingShape",
    "ScalarShape",
    "connect",
]
