"""Tests for string to scalar coercion."""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum

import pytest

from xmlbind import InternalInvariantViolation
from xmlbind.kernel.coerce import coerce, is_string_type, is_supported_scalar


class Color(str, Enum):
    RED = "r"
    GREEN = "g"


@pytest.mark.parametrize("text,expected", [
    ("true", True),
    ("True", True),
    ("FALSE", False),
    ("1", True),
    ("-3", True),
    ("0", False),
    (" false ", False),
])
def test_bool(text, expected):
    assert coerce(text, bool) is expected


def test_bool_rejects_garbage():
    with pytest.raises(ValueError):
        coerce("yes", bool)


def test_numbers_are_locale_invariant():
    assert coerce(" 42 ", int) == 42
    assert coerce("2.5", float) == 2.5
    assert coerce("1e3", float) == 1000.0
    assert coerce("0.10", Decimal) == Decimal("0.10")
    with pytest.raises(ValueError):
        coerce("2,5", float)
    with pytest.raises(ValueError):
        coerce("1,000", Decimal)


def test_dates_and_times_use_iso_8601():
    assert coerce("2009-06-01", date) == date(2009, 6, 1)
    assert coerce("2009-06-01T10:20:30Z", datetime) == datetime(2009, 6, 1, 10, 20, 30, tzinfo=timezone.utc)
    assert coerce("10:20", time) == time(10, 20)
    with pytest.raises(ValueError):
        coerce("01/06/2009", date)


def test_enum_by_case_insensitive_member_name():
    assert coerce("green", Color) is Color.GREEN
    assert coerce("RED", Color) is Color.RED
    with pytest.raises(ValueError):
        coerce("g", Color)  # values are not names


def test_strings_are_verbatim():
    assert coerce("  padded ", str) == "  padded "


def test_str_enum_is_not_a_string_type():
    assert is_string_type(str)
    assert not is_string_type(Color)
    assert is_supported_scalar(Color)


def test_unsupported_kinds():
    assert not is_supported_scalar(bytes)
    assert not is_supported_scalar(list)
    with pytest.raises(InternalInvariantViolation):
        coerce("x", bytes)
