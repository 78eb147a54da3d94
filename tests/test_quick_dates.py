"""Tests for quick date ranges and explicit date range parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from backoffice.query.quick_dates import (
    DateRange,
    MalformedDateRange,
    parse_explicit_range,
    resolve_date_filter,
    resolve_quick_range,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_today_and_yesterday(now):
    assert resolve_quick_range("today", now) == DateRange(utc(2025, 6, 18), utc(2025, 6, 19))
    assert resolve_quick_range("yesterday", now) == DateRange(utc(2025, 6, 17), utc(2025, 6, 18))


def test_weeks_start_on_monday(now):
    assert resolve_quick_range("this_week", now) == DateRange(utc(2025, 6, 16), utc(2025, 6, 23))
    assert resolve_quick_range("last_week", now) == DateRange(utc(2025, 6, 9), utc(2025, 6, 16))


def test_months_and_year(now):
    assert resolve_quick_range("this_month", now) == DateRange(utc(2025, 6, 1), utc(2025, 7, 1))
    assert resolve_quick_range("last_month", now) == DateRange(utc(2025, 5, 1), utc(2025, 6, 1))
    assert resolve_quick_range("this_year", now) == DateRange(utc(2025, 1, 1), utc(2026, 1, 1))


def test_last_month_in_january_crosses_the_year():
    january = utc(2025, 1, 10, 8, 30)
    assert resolve_quick_range("last_month", january) == DateRange(utc(2024, 12, 1), utc(2025, 1, 1))
    assert resolve_quick_range("this_month", utc(2025, 12, 31)) == DateRange(utc(2025, 12, 1), utc(2026, 1, 1))


def test_rolling_windows_end_now(now):
    assert resolve_quick_range("last_7_days", now) == DateRange(now - timedelta(days=7), now)
    assert resolve_quick_range("last_30_days", now).start == now - timedelta(days=30)


def test_quick_range_names_are_case_insensitive(now):
    assert resolve_quick_range(" Today ", now) == resolve_quick_range("today", now)


def test_unknown_quick_range_is_none(now):
    assert resolve_quick_range("fortnight", now) is None
    assert resolve_date_filter("fortnight", now) is None


def test_non_utc_now_is_normalized():
    # 01:00 on the 19th in UTC+3 is still the 18th in UTC.
    plus_three = timezone(timedelta(hours=3))
    local = datetime(2025, 6, 19, 1, 0, tzinfo=plus_three)
    assert resolve_quick_range("today", local) == DateRange(utc(2025, 6, 18), utc(2025, 6, 19))


def test_explicit_date_range_includes_the_end_day():
    assert parse_explicit_range("2025-06-01,2025-06-10") == DateRange(utc(2025, 6, 1), utc(2025, 6, 11))


def test_explicit_datetime_upper_bound_is_inclusive():
    date_range = parse_explicit_range("2025-06-01T00:00:00Z,2025-06-01T10:00:00Z")
    assert date_range.end == utc(2025, 6, 1, 10) + timedelta(microseconds=1)


def test_single_date_covers_the_whole_day():
    assert parse_explicit_range("2025-06-18") == DateRange(utc(2025, 6, 18), utc(2025, 6, 19))


def test_open_ended_ranges():
    assert parse_explicit_range("2025-06-01,") == DateRange(utc(2025, 6, 1), None)
    assert parse_explicit_range(",2025-06-01") == DateRange(None, utc(2025, 6, 2))


def test_upper_bound_on_the_last_representable_day_is_open():
    assert parse_explicit_range("2025-01-01,9999-12-31") == DateRange(utc(2025, 1, 1), None)
    last_moment = utc(9999, 12, 31, 23, 59, 59, 999999)
    assert parse_explicit_range("9999-12-31T23:59:59.999999Z") == DateRange(last_moment, None)


def test_naive_now_is_taken_as_utc():
    naive = datetime(2025, 6, 18, 23, 30)
    assert resolve_quick_range("today", naive) == DateRange(utc(2025, 6, 18), utc(2025, 6, 19))


@pytest.mark.parametrize(
    "value",
    [
        "2025-06-10,2025-06-01",  # reversed
        "2025-06-01,2025-06-02,2025-06-03",  # too many parts
        "2025-13-01",  # not a date
        "yesterday,2025-06-01",  # name used as a bound
    ],
)
def test_malformed_ranges_raise(value, now):
    with pytest.raises(MalformedDateRange):
        resolve_date_filter(value, now)
