"""Pure SQL functions registered on every connection.

The read-only authorizer allows any function call, so everything here must be
deterministic and free of side effects.
"""

import json
import math
import re
import sqlite3
from functools import lru_cache

EARTH_RADIUS_KM = 6371.0


def json_includes(s: str | None, *values) -> bool:
    """True when the JSON array ``s`` contains every one of ``values``.

    Values compare by their text form, so ``1`` matches ``"1"``.
    """
    if s is None:
        return False
    xs = json.loads(s)
    if not isinstance(xs, list):
        raise ValueError("json_includes expects a JSON array")
    wanted = {_text(v) for v in values}
    wanted.difference_update(_text(x) for x in xs)
    return not wanted


def _text(v) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


@lru_cache(maxsize=128)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def regexp_extract(value: str | None, pattern: str, group: int = 0) -> str:
    """Return capture ``group`` of the first match, or '' when there is none."""
    if value is None:
        return ""
    m = _compile(pattern).search(value)
    if m is None or group > m.re.groups:
        return ""
    return m.group(group) or ""


def geo_haversine(lat_a: float, lng_a: float, lat_b: float, lng_b: float) -> float:
    """Great-circle distance in km."""
    lat_a, lng_a, lat_b, lng_b = map(math.radians, (lat_a, lng_a, lat_b, lng_b))
    d_lat, d_lng = lat_b - lat_a, lng_b - lng_a
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat_a) * math.cos(lat_b) * math.sin(d_lng / 2) ** 2
    return 2 * math.asin(math.sqrt(a)) * EARTH_RADIUS_KM


def _offset(lat: float, lng: float, bearing: float, km: float) -> tuple[float, float]:
    d = km / EARTH_RADIUS_KM
    lat, lng, bearing = map(math.radians, (lat, lng, bearing))
    lat_b = math.asin(math.sin(lat) * math.cos(d) + math.cos(lat) * math.sin(d) * math.cos(bearing))
    lng_b = lng + math.atan2(
        math.sin(bearing) * math.sin(d) * math.cos(lat),
        math.cos(d) - math.sin(lat) * math.sin(lat_b),
    )
    return math.degrees(lat_b), math.degrees(lng_b)


def geo_offset_lat(lat: float, lng: float, bearing: float, km: float) -> float:
    """Latitude reached after travelling ``km`` along ``bearing`` degrees."""
    return _offset(lat, lng, bearing, km)[0]


def geo_offset_lng(lat: float, lng: float, bearing: float, km: float) -> float:
    """Longitude reached after travelling ``km`` along ``bearing`` degrees."""
    return _offset(lat, lng, bearing, km)[1]


# name -> (callable, nargs); -1 means variadic
DEFAULT_FUNCTIONS = {
    "json_includes": (json_includes, -1),
    "regexp_extract": (regexp_extract, 3),
    "geo_haversine": (geo_haversine, 4),
    "geo_offset_lat": (geo_offset_lat, 4),
    "geo_offset_lng": (geo_offset_lng, 4),
}


def register(conn: sqlite3.Connection, functions: dict | None = None) -> None:
    """Register pure functions on ``conn`` as deterministic SQL functions."""
    for name, (fn, nargs) in (functions or DEFAULT_FUNCTIONS).items():
        conn.create_function(name, nargs, fn, deterministic=True)
