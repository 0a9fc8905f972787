import typer

from sqlgate.store import jsonvalue
from sqlgate.store.materialize import QueryResult

MAX_CELL = 100
ELLIPSIS = "…"


def fmt_cell(value, multi_column: bool) -> str:
    if value is None:
        text = "NULL"
    elif isinstance(value, bytes | bytearray | memoryview):
        text = "x'" + bytes(value).hex() + "'"
    else:
        text = str(value)
    if multi_column:
        text = text.replace("\t", "\\t").replace("\n", "\\n")
        if len(text) >= MAX_CELL:
            text = text[: MAX_CELL - 1] + ELLIPSIS
    return text


def render_table(result: QueryResult) -> str:
    """Align columns with single-space gutters, header first."""
    multi = len(result.columns) > 1
    lines = [list(result.columns)]
    lines += [[fmt_cell(v, multi) for v in row] for row in result.rows]
    widths = [max(len(line[i]) for line in lines) for i in range(len(result.columns))]
    return "\n".join(
        " ".join(cell.ljust(widths[i]) for i, cell in enumerate(line)).rstrip() for line in lines
    )


def rows_as_dicts(result: QueryResult) -> list[dict]:
    return [dict(zip(result.columns, row)) for row in result.rows]


def out_json_lines(result: QueryResult, err: bool = False) -> None:
    for row in rows_as_dicts(result):
        typer.echo(jsonvalue.dumps(row, indent=2), err=err)


def out_table(result: QueryResult, err: bool = False) -> None:
    if not result.columns:
        return
    typer.echo(render_table(result), err=err)
