"""Expression scope - the closed set of names a formatter expression can read.

Expressions see exactly five names: ``api``, ``colDef``, ``node``,
``value`` and ``dates``. Nothing else from the host process is reachable.
"""

from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional

from dateutil import parser as date_parser

DEFAULT_DATE_FORMAT = "MM/DD/YYYY hh:mm:ss A"

# Substitution order matters: each token is replaced once, left to right.
_DATE_TOKENS = ("YYYY", "MM", "DD", "hh", "HH", "mm", "ss", "A")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date/time value, returning None when it cannot be parsed.

    Timezone-aware values are converted to local time, the way a browser
    displays them.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed


def format_datetime(moment: datetime, pattern: str = DEFAULT_DATE_FORMAT) -> str:
    """Render a datetime with the YYYY/MM/DD/hh/HH/mm/ss/A token pattern."""
    hours = moment.hour
    values = {
        "YYYY": str(moment.year),
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
        "hh": f"{hours % 12 or 12:02d}",
        "HH": f"{hours:02d}",
        "mm": f"{moment.minute:02d}",
        "ss": f"{moment.second:02d}",
        "A": "PM" if hours >= 12 else "AM",
    }
    result = pattern
    for token in _DATE_TOKENS:
        result = result.replace(token, values[token], 1)
    return result


class DateUtils:
    """The ``dates`` namespace exposed to expressions."""

    def parse(self, value: Any) -> Optional[datetime]:
        return parse_datetime(value)

    def format(self, value: Any, pattern: str = DEFAULT_DATE_FORMAT) -> Any:
        parsed = parse_datetime(value)
        if parsed is None:
            return value
        return format_datetime(parsed, pattern)

    def now(self) -> datetime:
        return datetime.now()


DATES = DateUtils()


@dataclass(frozen=True)
class ExpressionScope:
    """Render-time values available to a compiled expression."""

    api: Any = None
    col_def: Any = None
    node: Any = None
    value: Any = None
    dates: DateUtils = DATES

    def as_namespace(self) -> Mapping[str, Any]:
        """Expression-visible names (camelCase, as stored definitions spell them)."""
        return MappingProxyType(
            {
                "api": self.api,
                "colDef": self.col_def,
                "node": self.node,
                "value": self.value,
                "dates": self.dates,
            }
        )
