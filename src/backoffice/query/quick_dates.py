"""Named and explicit date ranges for date filters.

Every range is half-open: start <= value < end. Either bound may be None
for an open-ended range. Quick ranges are resolved against a reference
`now` supplied at query time, in UTC; weeks start on Monday.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Dict, NamedTuple, Optional

from ..utils.time import ensure_aware, parse_utc


class DateRange(NamedTuple):
    start: Optional[datetime]
    end: Optional[datetime]


class MalformedDateRange(ValueError):
    """A date filter value that names no valid range."""


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _month_start(day: date) -> date:
    return day.replace(day=1)


def _next_month_start(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def _today(now: datetime) -> DateRange:
    today = now.date()
    return DateRange(_midnight(today), _midnight(today + timedelta(days=1)))


def _yesterday(now: datetime) -> DateRange:
    today = now.date()
    return DateRange(_midnight(today - timedelta(days=1)), _midnight(today))


def _this_week(now: datetime) -> DateRange:
    monday = now.date() - timedelta(days=now.weekday())
    return DateRange(_midnight(monday), _midnight(monday + timedelta(days=7)))


def _last_week(now: datetime) -> DateRange:
    monday = now.date() - timedelta(days=now.weekday())
    return DateRange(_midnight(monday - timedelta(days=7)), _midnight(monday))


def _this_month(now: datetime) -> DateRange:
    today = now.date()
    return DateRange(_midnight(_month_start(today)), _midnight(_next_month_start(today)))


def _last_month(now: datetime) -> DateRange:
    first_of_this = _month_start(now.date())
    first_of_last = _month_start(first_of_this - timedelta(days=1))
    return DateRange(_midnight(first_of_last), _midnight(first_of_this))


def _this_year(now: datetime) -> DateRange:
    year = now.year
    return DateRange(_midnight(date(year, 1, 1)), _midnight(date(year + 1, 1, 1)))


def _last_days(days: int) -> Callable[[datetime], DateRange]:
    # Rolling window ending now, so "last_7_days" at 10:00 starts 7 days ago at 10:00.
    def resolve(now: datetime) -> DateRange:
        return DateRange(now - timedelta(days=days), now)

    return resolve


QUICK_RANGES: Dict[str, Callable[[datetime], DateRange]] = {
    "today": _today,
    "yesterday": _yesterday,
    "this_week": _this_week,
    "last_week": _last_week,
    "this_month": _this_month,
    "last_month": _last_month,
    "this_year": _this_year,
    "last_7_days": _last_days(7),
    "last_30_days": _last_days(30),
    "last_90_days": _last_days(90),
}


def resolve_quick_range(name: str, now: datetime) -> Optional[DateRange]:
    """Resolve a quick range name against `now`; None for unknown names."""
    resolver = QUICK_RANGES.get(name.strip().lower())
    if resolver is None:
        return None
    return resolver(ensure_aware(now).astimezone(timezone.utc))


def _parse_bound(text: str, upper: bool) -> Optional[datetime]:
    text = text.strip()
    if not text:
        return None
    try:
        moment = parse_utc(text)
    except (ValueError, OverflowError) as exc:
        raise MalformedDateRange(f"Invalid date bound: {text!r}") from exc
    if upper:
        # Upper bounds are inclusive: a bare date covers that whole day.
        step = timedelta(days=1) if len(text) == 10 else timedelta(microseconds=1)
        try:
            return moment + step
        except OverflowError:
            # The last representable day: nothing lies beyond it.
            return None
    return moment


def parse_explicit_range(value: str) -> DateRange:
    """
    Parse "<from>,<to>" (or a single ISO date) into a DateRange.

    Raises:
        MalformedDateRange: On unparseable bounds, extra parts, or start after end
    """
    parts = value.split(",")
    if len(parts) == 1:
        start = _parse_bound(parts[0], upper=False)
        end = _parse_bound(parts[0], upper=True)
    elif len(parts) == 2:
        start = _parse_bound(parts[0], upper=False)
        end = _parse_bound(parts[1], upper=True)
    else:
        raise MalformedDateRange(f"Too many parts in date range: {value!r}")

    if start is not None and end is not None and start >= end:
        raise MalformedDateRange(f"Date range starts after it ends: {value!r}")
    return DateRange(start, end)


def resolve_date_filter(value: str, now: datetime) -> Optional[DateRange]:
    """
    Resolve a date filter value: a quick range name or an explicit range.

    Returns:
        DateRange, or None when the value is an unknown quick-range name

    Raises:
        MalformedDateRange: When the value looks like a date range but isn't one
    """
    quick = resolve_quick_range(value, now)
    if quick is not None:
        return quick
    if "," not in value and not any(ch.isdigit() for ch in value):
        return None
    return parse_explicit_range(value)
