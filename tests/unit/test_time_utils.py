from datetime import datetime, timezone

import pytest

from prg_convert.common.time_utils import format_timestamp_ms, parse_timestamp


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2020-01-15T10:20:30Z", datetime(2020, 1, 15, 10, 20, 30, tzinfo=timezone.utc)),
        ("2020-01-15T10:20:30.123456789Z", datetime(2020, 1, 15, 10, 20, 30, 123000, tzinfo=timezone.utc)),
        ("2020-01-15T10:20:30.5+01:00", datetime(2020, 1, 15, 9, 20, 30, 500000, tzinfo=timezone.utc)),
        ("2020-01-15T10:20:30-0230", datetime(2020, 1, 15, 12, 50, 30, tzinfo=timezone.utc)),
        ("2020-01-15T10:20", datetime(2020, 1, 15, 10, 20, tzinfo=timezone.utc)),
        ("2020-01-15", datetime(2020, 1, 15, tzinfo=timezone.utc)),
        (" 2020-01-15 ", datetime(2020, 1, 15, tzinfo=timezone.utc)),
        ("2019-05-01+02:00", datetime(2019, 5, 1, tzinfo=timezone.utc)),
        ("2019-05-01Z", datetime(2019, 5, 1, tzinfo=timezone.utc)),
    ],
)
def test_parse_timestamp_forms(value, expected):
    assert parse_timestamp(value) == expected


def test_parse_timestamp_empty_is_none():
    assert parse_timestamp(None) is None
    assert parse_timestamp("   ") is None


@pytest.mark.parametrize("value", ["15.01.2020", "2020-01-15T25", "yesterday"])
def test_parse_timestamp_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


def test_format_timestamp_ms():
    value = datetime(2020, 1, 15, 9, 20, 30, 123000, tzinfo=timezone.utc)
    assert format_timestamp_ms(value) == "2020-01-15T09:20:30.123Z"
