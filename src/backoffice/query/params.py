"""Parsing of list-endpoint request parameters."""

import re
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from ..config.loader import PaginationSettings
from .sorting import SortSpec, parse_sort

_FILTER_KEY = re.compile(r"^filter\[([A-Za-z0-9_.-]+)\]$")

SCOPE_ALL = "all"

# SQLite INTEGER is a signed 64-bit value.
MAX_SQL_INTEGER = 2**63 - 1


class ListParams(BaseModel):
    """Normalized list request: always valid, whatever the client sent."""

    search: Optional[str] = None
    filters: Dict[str, str] = Field(default_factory=dict)
    sort: List[SortSpec] = Field(default_factory=list)
    page: int = 1
    per_page: int = 25
    include_all_owners: bool = False


def _coerce_page(value: Any) -> int:
    try:
        page = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def resolve_per_page(value: Any, settings: PaginationSettings) -> int:
    """Return the requested page size if allowed, else the configured default."""
    if value is None or isinstance(value, bool):
        return settings.default_per_page
    try:
        per_page = int(str(value).strip())
    except (TypeError, ValueError):
        return settings.default_per_page
    if per_page not in settings.per_page_options:
        return settings.default_per_page
    return per_page


def parse_list_params(
    raw: Mapping[str, Any],
    settings: PaginationSettings | None = None,
) -> ListParams:
    """
    Build ListParams from a flat request-parameter mapping.

    Recognized keys:
        search / q: free-text search
        filter[<name>]: one named filter each
        filters: nested mapping of filters (CLI and programmatic callers)
        sort: comma-separated sort tokens, '-' prefix for descending
        page, per_page: pagination
        scope: "all" asks to bypass ownership scoping

    Args:
        raw: Request query parameters
        settings: Page-size allow-list and default

    Returns:
        ListParams; never raises on bad input
    """
    settings = settings or PaginationSettings()

    search = raw.get("search")
    if search is None:
        search = raw.get("q")
    search = str(search).strip() if search is not None else None

    filters: Dict[str, str] = {}
    nested = raw.get("filters")
    if isinstance(nested, Mapping):
        for key, value in nested.items():
            if value is not None:
                filters[str(key)] = str(value)
    for key, value in raw.items():
        match = _FILTER_KEY.match(str(key))
        if match and value is not None:
            filters[match.group(1)] = str(value)
    filters = {key: value.strip() for key, value in filters.items() if str(value).strip() != ""}

    sort_value = raw.get("sort")
    return ListParams(
        search=search or None,
        filters=filters,
        sort=parse_sort(str(sort_value)) if sort_value is not None else [],
        page=_coerce_page(raw.get("page", 1)),
        per_page=resolve_per_page(raw.get("per_page"), settings),
        include_all_owners=str(raw.get("scope", "")).strip().lower() == SCOPE_ALL,
    )
