import os
import sys
from datetime import UTC, datetime, timedelta, timezone

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from satchel.modules.session.expiration import (
    YEAR,
    is_end_of_visit,
    parse_relative,
    to_duration,
    to_timestamp,
)

NOW = 1_700_000_000.0


@pytest.mark.parametrize("value", [0, 0.0, None, "", "0", " 0 "])
def test_end_of_visit_values(value):
    assert is_end_of_visit(value)
    assert to_timestamp(value, NOW) is None


@pytest.mark.parametrize(
    "text, seconds",
    [
        ("45 seconds", 45),
        ("90 sec", 90),
        ("5 min", 300),
        ("20 minutes", 1200),
        ("+3 hours", 10800),
        ("1 day", 86400),
        ("2 weeks", 1209600),
        ("1.5 hours", 5400),
    ],
)
def test_parse_relative(text, seconds):
    assert parse_relative(text) == seconds
    assert to_timestamp(text, NOW) == NOW + seconds


@pytest.mark.parametrize("text", ["soon", "3 fortnights", "hours", "-5 minutes"])
def test_parse_relative_rejects_unknown(text):
    assert parse_relative(text) is None


def test_small_numbers_are_relative():
    assert to_timestamp(60, NOW) == NOW + 60
    assert to_timestamp(YEAR, NOW) == NOW + YEAR


def test_large_numbers_are_absolute():
    """Test that numbers beyond one year are read as Unix timestamps."""
    assert to_timestamp(YEAR + 1, NOW) == float(YEAR + 1)
    assert to_timestamp(NOW + 500, NOW) == NOW + 500


def test_timedelta_is_relative():
    assert to_timestamp(timedelta(minutes=5), NOW) == NOW + 300


def test_datetime_is_absolute():
    moment = datetime(2030, 1, 1, tzinfo=UTC)
    assert to_timestamp(moment, NOW) == moment.timestamp()


def test_naive_datetime_is_utc():
    naive = datetime(2030, 1, 1, 12, 0)
    assert to_timestamp(naive, NOW) == datetime(2030, 1, 1, 12, 0, tzinfo=UTC).timestamp()


def test_iso_string():
    expected = datetime(2030, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=2))).timestamp()
    assert to_timestamp("2030-01-01T10:00:00+02:00", NOW) == expected


@pytest.mark.parametrize("value", ["whenever", -5, True, object()])
def test_invalid_values(value):
    with pytest.raises(ValueError):
        to_timestamp(value, NOW)


def test_to_duration():
    assert to_duration("1 hour", NOW) == 3600
    assert to_duration(600, NOW) == 600
    assert to_duration(NOW + 120, NOW) == 120
    assert to_duration(0, NOW) is None


@pytest.mark.parametrize("value, expected", [(0.5, 1), ("0.5 sec", 1), (1.5, 2), ("1.5 hours", 5400)])
def test_to_duration_rounds_fractions_up(value, expected):
    assert to_duration(value, NOW) == expected


def test_to_duration_rejects_past():
    with pytest.raises(ValueError):
        to_duration(NOW - 10, NOW)
