"""Capability-gated database: a read-write handle plus an optional read-only one.

The read-only handle is locked down by a statement-level authorizer, so it can
be handed to untrusted callers (see :mod:`sqlgate.api.main`). Opening the
file with ``mode=ro`` alone is not enough: that still allows ``ATTACH`` and
pragma writes.
"""

import logging
import sqlite3
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from sqlgate.errors import AlreadyOpenError, CapabilityError
from sqlgate.store import functions as sql_functions
from sqlgate.store import migrations as migrations_mod
from sqlgate.store import facade as q
from sqlgate.store.sqlite import MEMORY, connect, lock_down

logger = logging.getLogger(__name__)

ConnectHook = Callable[[sqlite3.Connection], None]


class Handle:
    """One engine connection, read-write or read-only."""

    def __init__(self, conn: sqlite3.Connection, read_only: bool):
        self.connection = conn
        self.read_only = read_only

    def execute(self, sql: str, parameters=()) -> sqlite3.Cursor:
        if self.connection is None:
            raise sqlite3.ProgrammingError("Cannot operate on a closed handle.")
        return self.connection.execute(sql, parameters)

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    @property
    def closed(self) -> bool:
        return self.connection is None

    def __repr__(self):
        mode = "ro" if self.read_only else "rw"
        return f"<Handle {mode}{' closed' if self.closed else ''}>"


class Database:
    """SQLite database with migrations applied at open and optional read-only gating.

    Args:
        path: Database file (``:memory:`` only without ``read_only``)
        read_only: Also open a read-only handle and answer queries from it
        migrations_table: Ledger table name
        functions: Pure SQL functions to register (defaults to the built-ins)
        on_connect: Extra setup run on every new connection
        busy_timeout_ms: Lock wait before SQLITE_BUSY
    """

    def __init__(
        self,
        path: Path | str,
        read_only: bool = False,
        migrations_table: str = migrations_mod.DEFAULT_TABLE,
        functions: dict | None = None,
        on_connect: ConnectHook | None = None,
        busy_timeout_ms: int = 5000,
    ):
        if read_only and str(path) == MEMORY:
            raise ValueError("read-only access needs a database file, not :memory:")
        if Path(str(path)).is_dir():
            raise ValueError(f"Path points to a directory, expected file: {path}")
        self.path = path
        self.read_only = read_only
        self.migrations_table = migrations_table
        self.functions = functions
        self.on_connect = on_connect
        self.busy_timeout_ms = busy_timeout_ms
        self.applied: list[str] = []
        self._writer: Handle | None = None
        self._reader: Handle | None = None
        self._lock = threading.Lock()

    # --- Lifecycle -------------------------------------------------------------------
    def open(self, migrations: migrations_mod.Sources | None = None) -> "Database":
        """Open the handles and apply pending migrations on the read-write one."""
        with self._lock:
            if self._writer is not None:
                raise AlreadyOpenError(f"database {self.path} is already open")
            writer = Handle(self._connect(read_only=False), read_only=False)
            try:
                self.applied = migrations_mod.migrate(writer.connection, migrations, self.migrations_table)
                reader = Handle(self._connect(read_only=True), read_only=True) if self.read_only else None
            except Exception:
                writer.close()
                raise
            self._writer, self._reader = writer, reader
        if self.applied:
            logger.info(f"Applied {len(self.applied)} migration(s) to {self.path}")
        return self

    def close(self) -> None:
        with self._lock:
            for handle in (self._reader, self._writer):
                if handle is not None:
                    handle.close()
            self._writer = self._reader = None

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    def __enter__(self) -> "Database":
        if not self.is_open:
            self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --- Hooks -----------------------------------------------------------------------
    def _connect(self, read_only: bool) -> sqlite3.Connection:
        conn = connect(self.path, read_only=read_only, busy_timeout_ms=self.busy_timeout_ms)
        try:
            self._connect_hook(conn)
            if read_only:
                lock_down(conn)
        except Exception:
            conn.close()
            raise
        return conn

    def _connect_hook(self, conn: sqlite3.Connection) -> None:
        sql_functions.register(conn, self.functions)
        if self.on_connect is not None:
            self.on_connect(conn)

    # --- Handles ---------------------------------------------------------------------
    @property
    def writer(self) -> Handle:
        if self._writer is None:
            raise sqlite3.ProgrammingError(f"database {self.path} is not open")
        return self._writer

    @property
    def reader(self) -> Handle:
        if not self.read_only:
            raise CapabilityError(f"database {self.path} was not opened read-only")
        if self._reader is None:
            raise sqlite3.ProgrammingError(f"database {self.path} is not open")
        return self._reader

    @property
    def query_handle(self) -> Handle:
        return self.reader if self.read_only else self.writer

    # --- Connection protocol ---------------------------------------------------------
    def execute(self, sql: str, parameters=()) -> sqlite3.Cursor:
        return self.writer.execute(sql, parameters)

    def query(self, sql: str, target: Any = list, *args) -> list:
        return q.query(self, sql, target, *args)

    def run(self, sql: str, *args) -> q.QueryResult:
        return q.run(self, sql, *args)

    def exec(self, sql: str, *args) -> q.ExecResult:
        return q.execute(self, sql, *args)

    def insert(self, table: str, row: Any, on_conflict: str | None = None) -> q.ExecResult:
        return q.insert(self, table, row, on_conflict)

    def user_version(self) -> int:
        return q.user_version(self)

    def set_user_version(self, version: int) -> None:
        q.set_user_version(self, version)

    def __repr__(self):
        return f"<Database {self.path} {'ro' if self.read_only else 'rw'}{'' if self.is_open else ' closed'}>"
