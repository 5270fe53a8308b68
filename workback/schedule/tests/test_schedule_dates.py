from datetime import date

import pytest

from workback.schedule.dates import add_days, clamp_int, diff_days, format_iso, parse_iso


@pytest.mark.parametrize(
    "value",
    ["", None, "2024-02-30", "2023-02-29", "2024-13-01", "2024-00-10", "24-3", "abc", "2024-03-xx", 20240310],
)
def test_parse_iso_rejects_malformed_dates(value):
    assert parse_iso(value) is None


def test_parse_iso_accepts_real_dates():
    assert parse_iso("2024-02-29") == date(2024, 2, 29)
    assert parse_iso("2024-3-5") == date(2024, 3, 5)


def test_format_iso_pads_components():
    assert format_iso(date(2024, 3, 5)) == "2024-03-05"
    assert format_iso(None) == ""


def test_add_days_crosses_month_and_leap_day():
    assert format_iso(add_days(date(2024, 3, 1), -1)) == "2024-02-29"
    assert format_iso(add_days(date(2023, 12, 25), 14)) == "2024-01-08"


def test_diff_days():
    assert diff_days("2024-03-01", "2024-03-31") == 30
    assert diff_days("2024-03-31", "2024-03-01") == -30
    assert diff_days("2024-03-01", "") is None


@pytest.mark.parametrize(
    "value,expected",
    [(5, 5), ("7", 7), (3.9, 3), (-2.7, -2), (True, 1), ("x", 0), (None, 0), (float("nan"), 0)],
)
def test_clamp_int(value, expected):
    assert clamp_int(value) == expected


def test_clamp_int_fallback():
    assert clamp_int("nope", 14) == 14
