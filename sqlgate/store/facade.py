"""Uniform query/exec entry points for anything connection-like.

``conn`` may be a ``sqlite3.Connection``, a :class:`~sqlgate.store.connection.Handle`
or a :class:`~sqlgate.store.connection.Database`; all that is needed is an
``execute(sql, params)`` method returning a cursor. Reads go through the
object's ``query_handle`` when it has one.
"""

import dataclasses
import json
import sqlite3
from collections.abc import Mapping
from contextlib import closing
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel

from sqlgate.errors import AuthorizationError, EngineError, InsertTypeError
from sqlgate.store.jsonvalue import JSONValue, encode_default
from sqlgate.store.materialize import QueryResult, materialize
from sqlgate.store.shapes import shape_for

CONFLICT_POLICIES = frozenset({"ABORT", "FAIL", "IGNORE", "REPLACE", "ROLLBACK"})


class Connection(Protocol):  # pragma: no cover - structural typing helper
    def execute(self, sql: str, parameters=...) -> sqlite3.Cursor: ...


@dataclass(frozen=True)
class ExecResult:
    rowcount: int
    lastrowid: int | None


def wrap(sql: str, err: Exception) -> EngineError:
    if "not authorized" in str(err):
        return AuthorizationError(sql, err)
    return EngineError(sql, err)


def run(conn: Connection, sql: str, *args) -> QueryResult:
    """Execute ``sql`` and return its raw columns and rows."""
    try:
        # a Database answers reads from its read-only handle when it has one
        conn = getattr(conn, "query_handle", conn)
        with closing(conn.execute(sql, args)) as cursor:
            columns = [d[0] for d in cursor.description or ()]
            rows = [tuple(row) for row in cursor]
    except sqlite3.Error as e:
        raise wrap(sql, e) from e
    return QueryResult(columns, rows)


def query(conn: Connection, sql: str, target: Any, *args) -> list:
    """Run ``sql`` and materialize each row as an element of ``target``.

    ``target`` is a ``list[T]`` type: ``list[SomeDataclass]`` yields records,
    ``list[dict]`` (or bare ``list``) yields one dict per row and
    ``list[int]``-style targets yield one scalar per row.
    """
    shape = shape_for(target)
    return materialize(run(conn, sql, *args), shape)


def execute(conn: Connection, sql: str, *args) -> ExecResult:
    """Execute a statement with no row-shaped result."""
    try:
        with closing(conn.execute(sql, args)) as cursor:
            return ExecResult(cursor.rowcount, cursor.lastrowid)
    except sqlite3.Error as e:
        raise wrap(sql, e) from e


def insert(conn: Connection, table: str, row: Any, on_conflict: str | None = None) -> ExecResult:
    """Insert one record or mapping into ``table``.

    Columns come from the row's keys (or fields) in their natural order;
    nested dicts, lists and records are stored as JSON text.
    """
    items = _items(row)
    keys = [k for k, _ in items]
    values = [_param(v) for _, v in items]
    verb = "INSERT"
    if on_conflict:
        policy = on_conflict.upper()
        if policy not in CONFLICT_POLICIES:
            raise ValueError(f"unknown conflict policy {on_conflict!r}")
        verb = f"INSERT OR {policy}"
    sql = f"{verb} INTO {table} ({', '.join(keys)}) VALUES ({', '.join('?' for _ in keys)})"
    return execute(conn, sql, *values)


def _items(row: Any) -> list[tuple[str, Any]]:
    if isinstance(row, BaseModel):
        return [(name, getattr(row, name)) for name in type(row).model_fields]
    if dataclasses.is_dataclass(row) and not isinstance(row, type):
        return [(f.name, getattr(row, f.name)) for f in dataclasses.fields(row)]
    if isinstance(row, Mapping):
        return [(str(k), v) for k, v in row.items()]
    raise InsertTypeError(f"cannot insert {type(row).__name__}: expected a record or mapping")


def _param(value: Any) -> Any:
    if isinstance(value, JSONValue):
        value = value.value
    is_record = isinstance(value, BaseModel) or (dataclasses.is_dataclass(value) and not isinstance(value, type))
    if not (is_record or isinstance(value, Mapping | list | tuple)):
        return value
    try:
        return json.dumps(value, default=encode_default)
    except (TypeError, ValueError) as e:
        raise InsertTypeError(f"cannot store {type(value).__name__} as JSON: {e}") from e


def user_version(conn: Connection) -> int:
    return query(conn, "PRAGMA user_version", list[int])[0]


def set_user_version(conn: Connection, version: int) -> None:
    execute(conn, f"PRAGMA user_version = {int(version)}")
