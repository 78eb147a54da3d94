"""Helpers shared by the repo modules."""

from datetime import datetime
from typing import Any, Callable, Mapping

from sqlalchemy.orm import Session

from ..auth import Principal
from ..query import FilteredQueryBuilder, ListParams, PageResult, QueryDefinition
from ..utils.text import slugify
from ..utils.time import utc_now_z


def run_list_query(
    session: Session,
    definition: QueryDefinition,
    params: ListParams,
    principal: Principal | None = None,
    now: datetime | None = None,
) -> tuple[PageResult, FilteredQueryBuilder]:
    """Run the standard search/filter/sort/paginate pipeline for a resource."""
    builder = FilteredQueryBuilder(session, definition, principal=principal, now=now).apply(params)
    return builder.paginate(params.page, params.per_page), builder


def apply_changes(row: Any, changes: Mapping[str, Any]) -> Any:
    """Set attributes from `changes` and bump updated_at."""
    for key, value in changes.items():
        setattr(row, key, value)
    row.updated_at = utc_now_z()
    return row


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """Slugify `base`, suffixing -2, -3, ... until `exists` says it is free."""
    root = slugify(base)
    candidate = root
    counter = 2
    while exists(candidate):
        candidate = f"{root}-{counter}"
        counter += 1
    return candidate
