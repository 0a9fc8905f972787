"""Migrations across process-like reopenings of the same file."""

import pytest

from sqlgate import Database
from sqlgate.errors import MigrationError
from sqlgate.store.migrations import read_migrations


def write(directory, name, sql):
    directory.mkdir(exist_ok=True)
    (directory / f"{name}.sql").write_text(sql)


def test_directory_migrations_apply_once(tmp_path):
    mdir = tmp_path / "migrations"
    write(mdir, "0001_notes", "CREATE TABLE notes (id INTEGER PRIMARY KEY, body TEXT);")
    write(mdir, "0002_seed", "INSERT INTO notes (body) VALUES ('first');")
    path = tmp_path / "app.db"

    with Database(path).open(read_migrations(mdir)) as database:
        assert database.applied == ["0001_notes", "0002_seed"]

    write(mdir, "0003_more", "INSERT INTO notes (body) VALUES ('second');")
    with Database(path).open(read_migrations(mdir)) as database:
        assert database.applied == ["0003_more"]
        assert database.query("SELECT body FROM notes ORDER BY id", list[str]) == ["first", "second"]
        ledger = database.query("SELECT name, applied_at FROM migrations", list[dict])
        assert [row["name"] for row in ledger] == ["0001_notes", "0002_seed", "0003_more"]
        assert all(row["applied_at"] for row in ledger)


def test_partial_failure_resumes(tmp_path):
    mdir = tmp_path / "migrations"
    write(mdir, "0001_a", "CREATE TABLE a (x INTEGER);")
    write(mdir, "0002_b", "CREATE TABLE b (x INTEGER); INSERT INTO missing VALUES (1);")
    write(mdir, "0003_c", "CREATE TABLE c (x INTEGER);")
    path = tmp_path / "app.db"

    with pytest.raises(MigrationError, match="0002_b"):
        Database(path).open(read_migrations(mdir))

    write(mdir, "0002_b", "CREATE TABLE b (x INTEGER);")
    with Database(path).open(read_migrations(mdir)) as database:
        assert database.applied == ["0002_b", "0003_c"]


def test_custom_ledger_table(tmp_path):
    path = tmp_path / "app.db"
    sources = {"0001": "CREATE TABLE t (x INTEGER);"}
    with Database(path, migrations_table="schema_history").open(sources) as database:
        assert database.query("SELECT name FROM schema_history", list[str]) == ["0001"]
        tables = database.query("SELECT name FROM sqlite_master WHERE type = 'table'", list[str])
        assert "migrations" not in tables
