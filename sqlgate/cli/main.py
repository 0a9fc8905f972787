import logging
import time
from pathlib import Path

import typer

from sqlgate.cli import output
from sqlgate.cli.errors import error_feedback
from sqlgate.cli.repl import Repl
from sqlgate.lib import config
from sqlgate.store import facade as q
from sqlgate.store.connection import Database
from sqlgate.store.migrations import read_migrations

app = typer.Typer(add_completion=False, no_args_is_help=True)


def print_query(db: Database, sql: str, json_output: bool, debug: bool) -> None:
    start = time.perf_counter()
    if debug:
        output.out_json_lines(q.run(db, "explain query plan " + sql), err=True)
    result = q.run(db, sql)
    if json_output:
        output.out_json_lines(result)
    else:
        output.out_table(result)
    if debug:
        typer.echo(f'{{"time": "{time.perf_counter() - start:.6f}s"}}', err=True)


@app.command()
@error_feedback
def main(
    db_file: Path = typer.Argument(..., help="SQLite database file."),
    query: list[str] | None = typer.Argument(None, help="SQL to run once; omit for a shell."),
    json_output: bool = typer.Option(False, "--json", "-j", help="Print rows as JSON objects."),
    debug: bool = typer.Option(False, "--debug", "-d", help="Print query plan and execution time."),
    read_only: bool = typer.Option(False, "--read-only", help="Answer queries from a read-only handle."),
    migrations: Path | None = typer.Option(None, "--migrations", help="Directory of *.sql migrations."),
    serve_port: int | None = typer.Option(None, "--serve", help="Serve read-only SQL over HTTP on PORT."),
):
    """Query a SQLite database: run QUERY once, or open an interactive shell."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING)
    cfg = config.load_config()

    db = Database(
        db_file,
        read_only=read_only or serve_port is not None,
        migrations_table=cfg["migrations_table"],
        busy_timeout_ms=cfg["busy_timeout_ms"],
    )
    db.open(read_migrations(migrations) if migrations else None)
    try:
        if serve_port is not None:
            from sqlgate.api.main import serve

            serve(db, host=cfg["host"], port=serve_port, params=cfg["query_params"])
        elif query:
            print_query(db, " ".join(query), json_output, debug)
        else:
            Repl(db, prompt=cfg["prompt"], history_file=cfg["history_file"]).run()
    finally:
        db.close()
