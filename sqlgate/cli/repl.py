"""Interactive SQL shell."""

import re
from pathlib import Path

import typer
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory

from sqlgate.cli import output
from sqlgate.errors import SqlgateError
from sqlgate.store import facade as q

SCHEMA_CMD = re.compile(r"^\.schema\s+(\w+)")


def translate(statement: str) -> str:
    """Expand dot-commands into SQL."""
    m = SCHEMA_CMD.match(statement.strip())
    if m:
        return f"PRAGMA table_info({m.group(1)});"
    return statement


def is_complete(statement: str) -> bool:
    return statement.strip().endswith(";")


class Repl:
    """Read lines until a statement ends with ';', run it, print a table."""

    def __init__(self, conn, prompt: str = "> ", history_file: Path | str | None = None, session=None):
        self.conn = conn
        self.prompt = prompt
        if session is None:
            history = None
            if history_file:
                Path(history_file).parent.mkdir(parents=True, exist_ok=True)
                history = FileHistory(str(history_file))
            session = PromptSession(history=history)
        self.session = session
        self.buffer = ""

    def feed(self, line: str) -> str | None:
        """Add a line; return the full statement once it is complete."""
        if not line.strip():
            return None
        if self.buffer and not self.buffer.endswith(" "):
            self.buffer += " "
        self.buffer += line
        statement = translate(self.buffer)
        if not is_complete(statement):
            return None
        self.buffer = ""
        return statement

    def execute(self, statement: str) -> None:
        try:
            result = q.run(self.conn, statement)
        except SqlgateError as e:
            typer.echo(f"ERROR: {e}")
            return
        output.out_table(result)

    def run(self) -> None:
        while True:
            try:
                line = self.session.prompt(self.prompt)
            except KeyboardInterrupt:
                self.buffer = ""
                continue
            except EOFError:
                return
            statement = self.feed(line)
            if statement is not None:
                self.execute(statement)
