"""CLI error handling: report failures on stderr and exit non-zero."""

import sqlite3
from functools import wraps

import typer
from click.exceptions import Exit

from sqlgate.errors import SqlgateError


def error_feedback(f):
    """Wrap a command so engine and usage errors end the process with exit code 1."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (SystemExit, Exit):
            raise
        except (SqlgateError, sqlite3.Error) as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(1) from e
        except (ValueError, KeyError) as e:
            typer.echo(f"Invalid input: {e}", err=True)
            raise typer.Exit(1) from e
        except OSError as e:
            typer.echo(f"File error: {e}", err=True)
            raise typer.Exit(1) from e

    return wrapper
