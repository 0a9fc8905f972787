import sqlite3

import pytest

from sqlgate.lib import config
from sqlgate.store.connection import Database

PEOPLE_MIGRATIONS = {
    "0001_people": """
        CREATE TABLE people (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            age INTEGER,
            score REAL,
            meta TEXT
        );
    """,
    "0002_seed": """
        INSERT INTO people (id, name, age, score, meta) VALUES
            (1, 'ada', 36, 9.5, '{"langs":["en","fr"],"admin":true}'),
            (2, 'bob', 41, NULL, NULL),
            (3, 'cy', NULL, 7.25, '[1,2,3]');
    """,
}


@pytest.fixture(autouse=True)
def sqlgate_home(monkeypatch, tmp_path):
    """Isolated config directory per test; never reads the real ~/.sqlgate."""
    home = tmp_path / "sqlgate-home"
    monkeypatch.setenv("SQLGATE_HOME", str(home))
    config.clear_cache()
    yield home
    config.clear_cache()


@pytest.fixture
def people_migrations():
    return dict(PEOPLE_MIGRATIONS)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path):
    """Read-write database with the people table seeded."""
    database = Database(db_path).open(PEOPLE_MIGRATIONS)
    yield database
    database.close()


@pytest.fixture
def ro_db(db_path):
    """Read-only gated database with the people table seeded."""
    database = Database(db_path, read_only=True).open(PEOPLE_MIGRATIONS)
    yield database
    database.close()


@pytest.fixture
def conn():
    """Plain in-memory connection in autocommit mode."""
    c = sqlite3.connect(":memory:")
    c.isolation_level = None
    yield c
    c.close()
