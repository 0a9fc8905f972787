"""Database schema migrations.

Each migration runs at most once per database. Applied names are recorded in
a ledger table inside the database itself; pending migrations run in
lexicographic name order, each in its own transaction together with its
ledger row. Name migrations so that sorting matches the intended order
(``0001_init``, ``0002_add_index``, ...).
"""

import logging
import re
import sqlite3
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from sqlgate.errors import MigrationError
from sqlgate.store.facade import execute, query

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "migrations"

Body = str | Callable[[sqlite3.Connection], None]
Sources = Mapping[str, Body] | Iterable[tuple[str, Body]]

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def read_migrations(directory: Path | str) -> dict[str, str]:
    """Load ``*.sql`` files from ``directory`` keyed by file stem.

    Returns an empty dict when the directory does not exist.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return {}
    return {sql_file.stem: sql_file.read_text() for sql_file in sorted(directory.glob("*.sql"))}


def ensure_ledger(conn: sqlite3.Connection, table: str = DEFAULT_TABLE) -> None:
    _check_table(table)
    execute(
        conn,
        f"CREATE TABLE IF NOT EXISTS {table} (name TEXT, applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)",
    )


def applied(conn: sqlite3.Connection, table: str = DEFAULT_TABLE) -> set[str]:
    """Names already recorded in the ledger."""
    _check_table(table)
    return set(query(conn, f"SELECT name FROM {table}", list[str]))


def pending(conn: sqlite3.Connection, sources: Sources, table: str = DEFAULT_TABLE) -> list[tuple[str, Body]]:
    done = applied(conn, table)
    return sorted(((n, b) for n, b in _pairs(sources) if n not in done), key=lambda nb: nb[0])


def migrate(conn: sqlite3.Connection, sources: Sources | None, table: str = DEFAULT_TABLE) -> list[str]:
    """Apply pending migrations to ``conn`` and return the names applied.

    Stops at the first failure: that migration is rolled back, earlier ones
    stay committed, later ones are not attempted.
    """
    ensure_ledger(conn, table)
    if not sources:
        return []

    done = []
    for name, body in pending(conn, sources, table):
        try:
            _apply(conn, table, name, body)
        except Exception as e:
            if conn.in_transaction:
                conn.rollback()
            logger.error(f"Migration '{name}' failed: {e}")
            raise MigrationError(name, e) from e
        logger.info(f"Applied migration '{name}'")
        done.append(name)
    return done


def _apply(conn: sqlite3.Connection, table: str, name: str, body: Body) -> None:
    if callable(body):
        conn.execute("BEGIN")
        body(conn)
    else:
        # executescript commits anything pending first, so the BEGIN has to
        # travel inside the script to cover every statement of the body.
        conn.executescript("BEGIN;\n" + body)
    if not conn.in_transaction:
        logger.warning(f"Migration '{name}' committed its own transaction; recording it separately")
    conn.execute(f"INSERT INTO {table} (name) VALUES (?)", (name,))
    if conn.in_transaction:
        conn.execute("COMMIT")


def _pairs(sources: Sources) -> list[tuple[str, Body]]:
    if isinstance(sources, Mapping):
        return list(sources.items())
    return list(sources)


def _check_table(table: str) -> None:
    if not _TABLE_NAME.match(table):
        raise ValueError(f"invalid migrations table name: {table!r}")
