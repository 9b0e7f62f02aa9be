"""Query codec: flat state maps to and from query strings.

Wire format: ``key=urlEncode(value)`` pairs joined by ``&``. ``None`` and
empty-string values are left out entirely; booleans are written as
``true``/``false`` so they read back the same way.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any
from urllib.parse import parse_qsl, quote

from pylds.models._base import DataType

# Characters encodeURIComponent leaves alone.
_SAFE_CHARS = "-_.!~*'()"

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})


def is_blank(value: Any) -> bool:
    return value is None or value == ""


def encode_value(value: Any) -> str:
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, Enum):
        text = str(value.value)
    else:
        text = str(value)
    return quote(text, safe=_SAFE_CHARS)


def encode_query_string(params: Mapping[str, Any] | None) -> str:
    """Encode *params* as a query string (without a leading ``?``)."""
    if not params:
        return ""
    return "&".join(f"{key}={encode_value(value)}" for key, value in params.items() if not is_blank(value))


def decode_query_string(query_string: str | None) -> dict[str, str]:
    """Parse a query string into a flat ``{key: value}`` map.

    A leading ``?`` is tolerated; for repeated keys the last value wins.
    """
    if not query_string:
        return {}
    return dict(parse_qsl(query_string.lstrip("?"), keep_blank_values=False))


def coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_STRINGS:
        return True
    if normalized in _FALSE_STRINGS:
        return False
    return None


def coerce_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if number.is_integer() and "." not in str(value) and "e" not in str(value).lower():
        return int(number)
    return number


def coerce_value(value: Any, data_type: str | None) -> Any:
    """Convert a query-string value to *data_type*.

    Values that don't parse as the requested type are kept unchanged;
    unknown types are returned as strings.
    """
    if value is None:
        return None
    if data_type == DataType.NUMBER:
        number = coerce_number(value)
        return value if number is None else number
    if data_type == DataType.BOOLEAN:
        flag = coerce_bool(value)
        return value if flag is None else flag
    if isinstance(value, str):
        return value
    return str(value)


def coerce_params(params: Mapping[str, Any], data_types: Mapping[str, str | None]) -> dict[str, Any]:
    """Coerce every value in *params* using the per-key *data_types*."""
    return {key: coerce_value(value, data_types.get(key)) for key, value in params.items()}
