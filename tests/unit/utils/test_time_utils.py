from datetime import date, datetime, timedelta, timezone

import pytest

from app.utils.time import add_months, coerce_date, coerce_datetime, iso_now, utc_now


def test_coerce_datetime_parses_z_suffix():
    dt = coerce_datetime("2026-01-01T00:00:00Z")
    assert dt is not None
    assert dt.tzinfo is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.isoformat().endswith("+00:00")


def test_coerce_datetime_parses_offset():
    dt = coerce_datetime("2026-01-01T02:00:00+02:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)
    assert dt.hour == 0


def test_coerce_datetime_parses_naive_as_utc():
    dt = coerce_datetime("2026-01-01T00:00:00")
    assert dt is not None
    assert dt.utcoffset() == timedelta(0)

    time_diff = utc_now() - dt
    assert isinstance(time_diff, timedelta)


def test_coerce_datetime_rejects_garbage():
    assert coerce_datetime("yesterday") is None
    assert coerce_datetime(None) is None


def test_iso_now_round_trips():
    assert coerce_datetime(iso_now()).tzinfo is not None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-08", date(2024, 1, 8)),
        ("2024-01-08T09:30:00Z", date(2024, 1, 8)),
        (datetime(2024, 1, 8, 23, 0, tzinfo=timezone.utc), date(2024, 1, 8)),
        (date(2024, 1, 8), date(2024, 1, 8)),
        ("", None),
        ("08/01/2024", None),
        (42, None),
    ],
)
def test_coerce_date(value, expected):
    assert coerce_date(value) == expected


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (date(2024, 1, 15), 1, date(2024, 2, 15)),
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 11, 30), 3, date(2025, 2, 28)),
        (date(2024, 3, 31), 12, date(2025, 3, 31)),
    ],
)
def test_add_months_clamps_to_month_end(start, months, expected):
    assert add_months(start, months) == expected
