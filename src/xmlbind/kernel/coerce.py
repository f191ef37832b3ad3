"""String to scalar coercion for attribute, element and text values.

Parsing is locale-invariant: numbers use Python's literal syntax and
dates/times use ISO 8601.
"""

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict

from xmlbind.errors import InternalInvariantViolation


def _parse_bool(value: str) -> bool:
    text = value.strip()
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    # Fallback: any nonzero integer is true
    return int(text) != 0


def _parse_decimal(value: str) -> Decimal:
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        raise ValueError(f"invalid decimal literal: {value!r}")


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))


def _parse_time(value: str) -> time:
    return time.fromisoformat(value.strip().replace("Z", "+00:00"))


_PARSERS: Dict[type, Callable[[str], Any]] = {
    bool: _parse_bool,
    int: lambda value: int(value.strip()),
    float: lambda value: float(value.strip()),
    Decimal: _parse_decimal,
    datetime: _parse_datetime,
    date: lambda value: date.fromisoformat(value.strip()),
    time: _parse_time,
}


def is_string_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, str) and not issubclass(tp, Enum)


def is_supported_scalar(tp: Any) -> bool:
    """Return True if a string can be coerced into ``tp``."""
    if not isinstance(tp, type):
        return False
    if issubclass(tp, Enum):
        return True
    return tp in _PARSERS


def _parse_enum(enum_type: type, value: str) -> Enum:
    wanted = value.strip().lower()
    for member_name, member in enum_type.__members__.items():
        if member_name.lower() == wanted:
            return member
    raise ValueError(f"{value!r} is not a member of {enum_type.__name__}")


def coerce(value: str, tp: Any) -> Any:
    """Convert ``value`` into ``tp``.

    Raises:
        ValueError: If the text is not a valid literal for ``tp``
        InternalInvariantViolation: If ``tp`` was not validated as a scalar kind
    """
    if is_string_type(tp):
        return tp(value)
    if isinstance(tp, type) and issubclass(tp, Enum):
        return _parse_enum(tp, value)
    parser = _PARSERS.get(tp)
    if parser is None:
        # Schema discovery rejects unsupported scalar kinds before any document is read
        raise InternalInvariantViolation(f"No parser registered for {tp!r}")
    return parser(value)
