"""Filter library - named transforms applied with ``expr | name:arg``.

The table is built once at import time and exposed read-only, so
concurrent hydrations never observe a partially registered set.
Every filter is pure and passes unsupported input through unchanged.
"""

from datetime import date
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from .scope import DEFAULT_DATE_FORMAT, format_datetime, parse_datetime


def _capitalize_one(s: Any) -> Any:
    if isinstance(s, str):
        return s[:1].upper() + s[1:]
    return s


def capitalize(value: Any) -> Any:
    """Upper-case the first character of a string or of each string in a list."""
    if isinstance(value, (list, tuple)):
        return [_capitalize_one(s) for s in value]
    return _capitalize_one(value)


def split(value: Any, separator: Optional[str] = None) -> Any:
    """Split a string on a literal separator."""
    if not isinstance(value, str):
        return value
    if separator is None:
        return [value]
    if separator == "":
        return list(value)
    return value.split(str(separator))


def to_upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


def _join_part(item: Any) -> str:
    if item is None:
        return ""
    if isinstance(item, bool):
        return "true" if item else "false"
    return str(item)


def join(value: Any, separator: str = ",") -> Any:
    """Join a list with a literal separator."""
    if not isinstance(value, (list, tuple)):
        return value
    return str(separator).join(_join_part(item) for item in value)


def default(value: Any, fallback: Any = None) -> Any:
    """Replace null, empty string and empty list with ``fallback``."""
    if value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0):
        return fallback
    return value


def format_date(value: Any, pattern: Optional[str] = None) -> Any:
    """Format a parseable date/time; anything unparseable is returned as-is.

    Falsy input (null, empty string) renders as an empty string.
    """
    if not value:
        return ""
    if isinstance(value, (str, date)):
        parsed = parse_datetime(value)
        if parsed is not None:
            return format_datetime(parsed, pattern or DEFAULT_DATE_FORMAT)
    return value


def length(value: Any) -> int:
    if isinstance(value, (str, list, tuple)):
        return len(value)
    return 0


FILTERS: Mapping[str, Callable[..., Any]] = MappingProxyType(
    {
        "capitalize": capitalize,
        "split": split,
        "toUpper": to_upper,
        "join": join,
        "default": default,
        "date": format_date,
        "length": length,
    }
)


def get_filter(name: str) -> Optional[Callable[..., Any]]:
    return FILTERS.get(name)
