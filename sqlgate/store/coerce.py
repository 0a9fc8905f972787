"""Scalar coercion from SQLite values into caller-declared types.

Every conversion goes through JSON: the raw value is serialized, then the
JSON text is validated into the target type with pydantic. This keeps numeric
widening, text-to-datetime and text-to-structure rules in one place, at the
cost of precision for some numbers and of blobs, which become base64 text
unless the target is ``bytes``.
"""

import base64
import json
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError

from sqlgate.errors import ConversionError
from sqlgate.store.jsonvalue import looks_like_json, unwrap


def is_dynamic(target: Any) -> bool:
    return target is Any or target is object


@lru_cache(maxsize=512)
def adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def encode(raw: Any, column: str | None = None) -> str:
    """Serialize a raw SQLite value to JSON text."""
    if isinstance(raw, bytes | bytearray | memoryview):
        raw = base64.b64encode(bytes(raw)).decode("ascii")
    try:
        return json.dumps(raw)
    except (TypeError, ValueError) as e:
        raise ConversionError(column, raw, str(e)) from e


def coerce(raw: Any, target: Any = Any, column: str | None = None) -> Any:
    """Convert a raw SQLite value into ``target``.

    Dynamic targets (``Any``/``object``) receive plain JSON values; a text
    value holding a complete JSON object or array is parsed rather than
    returned as an escaped string. NULL stays ``None`` whatever the target.
    """
    if raw is None:
        return None
    if target is bytes and isinstance(raw, bytes | bytearray | memoryview):
        return bytes(raw)

    encoded = encode(raw, column)

    if is_dynamic(target):
        return unwrap(json.loads(encoded))

    try:
        return adapter(target).validate_json(encoded)
    except ValidationError as e:
        if isinstance(raw, str) and looks_like_json(raw):
            try:
                return adapter(target).validate_json(raw)
            except ValidationError:
                pass
        raise ConversionError(column, raw, _reason(e)) from e


def _reason(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    return "; ".join(err.get("msg", "") for err in errors)
