"""Target shapes: the closed set of destinations query rows can land in.

A shape is built once from the caller's declared ``list[T]`` target, then
matched by the materializer. Record fields bind to columns by exact,
case-sensitive name; there is no tag or case-folding strategy.
"""

import dataclasses
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from sqlgate.errors import ShapeError


@dataclass(frozen=True)
class Field:
    name: str
    type: Any
    required: bool


@dataclass(frozen=True)
class RecordShape:
    cls: type
    fields: dict[str, Field]


@dataclass(frozen=True)
class MappingShape:
    value_type: Any = Any


@dataclass(frozen=True)
class ScalarShape:
    type: Any


TargetShape = RecordShape | MappingShape | ScalarShape


def is_record_type(tp: Any) -> bool:
    if typing.get_origin(tp) is not None:
        return False
    return isinstance(tp, type) and (
        dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)
    )


def record_fields(cls: type) -> dict[str, Field]:
    """Field name -> Field for a dataclass or pydantic model."""
    if issubclass(cls, BaseModel):
        return {
            name: Field(name, info.annotation, info.is_required())
            for name, info in cls.model_fields.items()
        }
    hints = typing.get_type_hints(cls)
    out = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        required = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        out[f.name] = Field(f.name, hints.get(f.name, Any), required)
    return out


def element_type(target: Any) -> Any:
    """Return T for a ``list[T]`` target, raising ShapeError for anything else."""
    if target is list:
        return Any
    if typing.get_origin(target) is list:
        args = typing.get_args(target)
        return args[0] if args else Any
    raise ShapeError(f"cannot materialize query results into {_name(target)}; expected list[T]")


def shape_of(element: Any) -> TargetShape:
    """Build the TargetShape for an element type."""
    if is_record_type(element):
        return RecordShape(element, record_fields(element))
    if element is Any or element is object:
        return MappingShape(Any)
    origin = typing.get_origin(element) or element
    if isinstance(origin, type) and issubclass(origin, Mapping):
        args = typing.get_args(element)
        if args and args[0] is not str:
            raise ShapeError(f"mapping targets must be keyed by str, got {_name(element)}")
        return MappingShape(args[1] if len(args) == 2 else Any)
    return ScalarShape(element)


def shape_for(target: Any) -> TargetShape:
    return shape_of(element_type(target))


def _name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
