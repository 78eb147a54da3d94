"""Reusable query scopes.

Each scope takes a SQLAlchemy Query and returns a narrowed Query, so
scopes chain: `without_trashed(where_equals(q, Post.status, "draft"), Post.deleted_at)`.
"""

from datetime import datetime
from typing import Any, Iterable, Sequence

from sqlalchemy import false, or_
from sqlalchemy.orm import Query

from ..auth import Principal
from ..utils.time import to_utc_z
from .quick_dates import DateRange, resolve_quick_range

LIKE_ESCAPE = "\\"


def _escape_like(term: str) -> str:
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def where_none(query: Query) -> Query:
    """Match nothing."""
    return query.filter(false())


def where_equals(query: Query, column: Any, value: Any) -> Query:
    return query.filter(column == value)


def where_in(query: Query, column: Any, values: Iterable[Any]) -> Query:
    values = list(values)
    if not values:
        return where_none(query)
    return query.filter(column.in_(values))


def where_boolean(query: Query, column: Any, value: bool) -> Query:
    return query.filter(column.is_(True) if value else column.is_(False))


def search_columns(query: Query, columns: Sequence[Any], term: str) -> Query:
    """Case-insensitive substring match on any of `columns`."""
    term = term.strip()
    if not term or not columns:
        return query
    pattern = f"%{_escape_like(term)}%"
    return query.filter(or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns)))


def where_between(query: Query, column: Any, date_range: DateRange) -> Query:
    """Half-open range filter on an ISO-string timestamp column."""
    if date_range.start is not None:
        query = query.filter(column >= to_utc_z(date_range.start))
    if date_range.end is not None:
        query = query.filter(column < to_utc_z(date_range.end))
    return query


def where_quick_date(query: Query, column: Any, name: str, now: datetime) -> Query:
    """Apply a named quick range; unknown names leave the query unchanged."""
    date_range = resolve_quick_range(name, now)
    if date_range is None:
        return query
    return where_between(query, column, date_range)


def where_related(query: Query, relationship_attr: Any, related_column: Any, value: Any) -> Query:
    """Rows with at least one related row whose `related_column` equals `value`."""
    return query.filter(relationship_attr.any(related_column == value))


def owned_by(query: Query, owner_column: Any, principal: Principal) -> Query:
    return query.filter(owner_column == principal.id)


def without_trashed(query: Query, deleted_column: Any) -> Query:
    return query.filter(deleted_column.is_(None))


def only_trashed(query: Query, deleted_column: Any) -> Query:
    return query.filter(deleted_column.isnot(None))
