"""Build typed values from raw query results."""

from dataclasses import dataclass, field
from typing import Any

from sqlgate.errors import ShapeError
from sqlgate.store.coerce import coerce
from sqlgate.store.shapes import MappingShape, RecordShape, ScalarShape, TargetShape


@dataclass
class QueryResult:
    columns: list[str]
    rows: list[tuple] = field(default_factory=list)


def materialize(result: QueryResult, shape: TargetShape) -> list:
    """Convert every row of ``result`` into the element type ``shape`` describes.

    Rows keep the order the engine returned them in.
    """
    match shape:
        case RecordShape():
            return [_record(result.columns, row, shape) for row in result.rows]
        case MappingShape(value_type=value_type):
            return [
                {column: coerce(value, value_type, column) for column, value in zip(result.columns, row)}
                for row in result.rows
            ]
        case ScalarShape(type=tp):
            if len(result.columns) != 1:
                raise ShapeError(
                    f"scalar target {getattr(tp, '__name__', tp)!s} needs exactly one column, "
                    f"query returned {len(result.columns)}: {', '.join(result.columns)}"
                )
            column = result.columns[0]
            return [coerce(row[0], tp, column) for row in result.rows]
    raise ShapeError(f"unknown target shape {shape!r}")


def _record(columns: list[str], row: tuple, shape: RecordShape) -> Any:
    # TODO: make the binding strategy configurable (case-insensitive / aliases)
    # instead of exact field-name matches only.
    values = {}
    for column, raw in zip(columns, row):
        f = shape.fields.get(column)
        if f is None:
            continue
        values[column] = coerce(raw, f.type, column)
    for name, f in shape.fields.items():
        if f.required and name not in values:
            values[name] = None
    return _construct(shape.cls, values)


def _construct(cls: type, values: dict[str, Any]) -> Any:
    construct = getattr(cls, "model_construct", None)
    if construct is not None:
        return construct(**values)
    return cls(**values)
