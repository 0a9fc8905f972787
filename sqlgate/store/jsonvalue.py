"""Dynamic JSON values whose text columns may hold nested JSON documents."""

import base64
import dataclasses
import json
from datetime import date, time
from typing import Any

from pydantic import BaseModel


def is_json_object_string(s: str) -> bool:
    return len(s) >= 2 and s[0] == "{" and s[-1] == "}"


def is_json_array_string(s: str) -> bool:
    return len(s) >= 2 and s[0] == "[" and s[-1] == "]"


def looks_like_json(s: str) -> bool:
    return is_json_object_string(s) or is_json_array_string(s)


def unwrap(value: Any) -> Any:
    """Parse a string holding a complete JSON object or array.

    Anything else, including strings that only look like JSON, is returned
    untouched.
    """
    if isinstance(value, str) and looks_like_json(value):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def expand(value: Any) -> Any:
    """Recursively unwrap JSON-looking strings at every depth."""
    value = unwrap(value)
    if isinstance(value, dict):
        return {k: expand(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand(v) for v in value]
    return value


class JSONValue:
    """Column value that is re-interpreted as nested JSON on the way in and out.

    Use as a target element type (``list[JSONValue]``) or wrap values before
    serializing with :func:`dumps`.
    """

    __slots__ = ("value",)

    def __init__(self, value: Any = None):
        self.value = expand(value)

    def __eq__(self, other):
        if isinstance(other, JSONValue):
            return self.value == other.value
        return self.value == other

    def __hash__(self):
        return hash(_freeze(self.value))

    def __repr__(self):
        return f"JSONValue({self.value!r})"

    @classmethod
    def __get_pydantic_core_schema__(cls, source, handler):
        from pydantic_core import core_schema

        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.any_schema(),
            serialization=core_schema.plain_serializer_function_ser_schema(lambda v: v.value),
        )


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return frozenset((k, _freeze(v)) for k, v in value.items())
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def encode_default(obj):
    """``json.dumps`` hook for records, blobs and dates nested at any depth."""
    if isinstance(obj, JSONValue):
        return obj.value
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    if isinstance(obj, bytes | bytearray | memoryview):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, date | time):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(value: Any, **kwargs) -> str:
    """Serialize with nested JSON strings expanded into structure."""
    return json.dumps(expand(value), default=encode_default, ensure_ascii=False, **kwargs)
