"""Query composition: search, filter, sort and paginate over a model.

Request parameters are parsed into `ListParams`, resources describe what
may be searched, filtered and sorted in a `QueryDefinition`, and
`FilteredQueryBuilder` chains the matching scopes onto a SQLAlchemy query.
Stale or unknown parameters never fail a request: unknown filter keys and
sort fields are ignored, out-of-range page sizes fall back to the default,
and malformed date ranges match nothing.
"""

from .builder import FilterDefinition, FilteredQueryBuilder, QueryDefinition
from .pagination import PageResult
from .params import MAX_SQL_INTEGER, ListParams, parse_list_params
from .sorting import SortSpec, parse_sort

__all__ = [
    "FilterDefinition",
    "FilteredQueryBuilder",
    "ListParams",
    "MAX_SQL_INTEGER",
    "PageResult",
    "QueryDefinition",
    "SortSpec",
    "parse_list_params",
    "parse_sort",
]
