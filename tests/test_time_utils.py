"""Tests for time utilities."""

import pytest
from datetime import datetime, timezone, timedelta

from backoffice.utils.time import ensure_aware, parse_utc, to_utc_z, utc_now_z


def test_utc_now_z_always_ends_with_z():
    """Test that utc_now_z() always ends with Z."""
    result = utc_now_z()
    assert result.endswith('Z'), f"Expected result to end with 'Z', got: {result}"
    assert '+00:00' not in result


def test_to_utc_z_raises_on_naive_datetime():
    """Test that to_utc_z() raises ValueError for naive datetime."""
    with pytest.raises(ValueError, match="Naive datetime not allowed"):
        to_utc_z(datetime.now())


def test_to_utc_z_converts_non_utc_timezone():
    """Test that to_utc_z() converts non-UTC timezone to UTC."""
    est = timezone(timedelta(hours=-5))
    dt_est = datetime(2025, 12, 23, 12, 0, 0, tzinfo=est)
    assert to_utc_z(dt_est) == '2025-12-23T17:00:00.000000Z'


def test_to_utc_z_is_fixed_width():
    """Whole seconds still carry microseconds so stored values sort lexicographically."""
    whole = to_utc_z(datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    fractional = to_utc_z(datetime(2025, 1, 2, 3, 4, 5, 1, tzinfo=timezone.utc))
    assert len(whole) == len(fractional) == 27
    assert whole < fractional


def test_ensure_aware_treats_naive_as_utc():
    assert ensure_aware(datetime(2025, 1, 1)).tzinfo == timezone.utc
    aware = datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=2)))
    assert ensure_aware(aware) is aware


def test_parse_utc_accepts_dates_and_z_suffix():
    assert parse_utc("2025-06-18") == datetime(2025, 6, 18, tzinfo=timezone.utc)
    assert parse_utc("2025-06-18T10:30:00Z") == datetime(2025, 6, 18, 10, 30, tzinfo=timezone.utc)
    assert parse_utc("2025-06-18T12:30:00+02:00") == datetime(2025, 6, 18, 10, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["", "yesterday", "2025-02-30"])
def test_parse_utc_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_utc(value)
