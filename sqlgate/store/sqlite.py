"""SQLite connections and the read-only authorizer.

The authorizer admits plain reads, function calls and a short list of
introspection pragmas. Recursive CTEs (``WITH RECURSIVE``) and the
``pragma_table_info(...)`` table-valued form are denied on read-only handles;
use ``PRAGMA table_info(t)`` for column listings.
"""

import logging
import sqlite3
import time
from pathlib import Path
from urllib.parse import quote

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

# Introspection pragmas a read-only handle may run with or without an argument.
READ_PRAGMAS = frozenset(
    {
        "table_info",
        "table_xinfo",
        "table_list",
        "index_list",
        "index_info",
        "index_xinfo",
        "foreign_key_list",
        "data_version",
    }
)

# Counters a read-only handle may read but never set.
READ_ONLY_COUNTERS = frozenset({"user_version", "schema_version"})

_ALWAYS_ALLOWED = frozenset({sqlite3.SQLITE_SELECT, sqlite3.SQLITE_READ, sqlite3.SQLITE_FUNCTION})


def read_only_authorizer(action: int, arg1, arg2, db_name, source) -> int:
    """Allow reads, pure function calls and a few introspection pragmas; deny the rest."""
    if action in _ALWAYS_ALLOWED:
        return sqlite3.SQLITE_OK
    if action == sqlite3.SQLITE_PRAGMA:
        name = (arg1 or "").lower()
        if name in READ_PRAGMAS:
            return sqlite3.SQLITE_OK
        if name in READ_ONLY_COUNTERS and arg2 is None:
            return sqlite3.SQLITE_OK
    return sqlite3.SQLITE_DENY


def connect(db_path: Path | str, read_only: bool = False, busy_timeout_ms: int = 5000) -> sqlite3.Connection:
    """Connect to SQLite with write contention monitoring.

    Read-only connections open the file with ``mode=ro``; the authorizer is
    installed by the caller's hook, after any setup statements have run.
    """
    start = time.perf_counter()
    last_error: sqlite3.OperationalError | None = None

    for attempt in range(5):
        if read_only:
            uri = f"file:{quote(Path(db_path).resolve().as_posix())}?mode=ro"
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            conn = sqlite3.connect(db_path, check_same_thread=False)
        conn.isolation_level = None

        try:
            conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
            if not read_only:
                conn.execute("PRAGMA foreign_keys = ON")
                if str(db_path) != MEMORY:
                    conn.execute("PRAGMA journal_mode = WAL")
            break
        except sqlite3.OperationalError as err:
            last_error = err
            conn.close()
            if "locked" in str(err).lower() and attempt < 4:
                time.sleep(0.05 * (attempt + 1))
                continue
            raise
    else:
        raise last_error or sqlite3.OperationalError("Failed to initialize SQLite connection")

    elapsed = time.perf_counter() - start
    if elapsed > 0.1:
        logger.warning(f"SQLite connection took {elapsed:.3f}s (possible lock contention)")

    return conn


def lock_down(conn: sqlite3.Connection) -> None:
    """Make ``conn`` read-only at the statement level."""
    conn.execute("PRAGMA query_only = ON")
    conn.set_authorizer(read_only_authorizer)
