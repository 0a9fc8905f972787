"""Tests for the interactive shell."""

from unittest.mock import MagicMock

from sqlgate.cli.repl import Repl, translate


def make_repl(db, lines):
    session = MagicMock()
    session.prompt.side_effect = [*lines, EOFError()]
    return Repl(db, session=session)


def test_translate_schema():
    assert translate(".schema people") == "PRAGMA table_info(people);"
    assert translate("select 1;") == "select 1;"


def test_feed_accumulates_until_semicolon(db):
    repl = make_repl(db, [])
    assert repl.feed("select id") is None
    assert repl.feed("") is None
    assert repl.feed("from people;") == "select id from people;"
    assert repl.buffer == ""


def test_run_executes_statements(db, capsys):
    repl = make_repl(db, ["select name", "from people where id = 2;", ".schema people"])
    repl.run()
    out = capsys.readouterr().out.splitlines()
    assert out[:2] == ["name", "bob"]
    assert out[2].split() == ["cid", "name", "type", "notnull", "dflt_value", "pk"]
    assert ["age", "INTEGER"] in [line.split()[1:3] for line in out[3:]]


def test_errors_do_not_end_session(db, capsys):
    repl = make_repl(db, ["select * from nowhere;", "select 1 as one;"])
    repl.run()
    out = capsys.readouterr().out.splitlines()
    assert out[0].startswith("ERROR: select * from nowhere;")
    assert out[1:] == ["one", "1"]


def test_interrupt_clears_buffer(db, capsys):
    session = MagicMock()
    session.prompt.side_effect = ["select broken", KeyboardInterrupt(), "select 2 as two;", EOFError()]
    Repl(db, session=session).run()
    assert capsys.readouterr().out.splitlines() == ["two", "2"]


def test_schema_works_on_read_only_database(ro_db, capsys):
    make_repl(ro_db, [".schema people"]).run()
    out = capsys.readouterr().out.splitlines()
    assert not out[0].startswith("ERROR")
    assert [line.split()[1] for line in out[1:]] == ["id", "name", "age", "score", "meta"]
