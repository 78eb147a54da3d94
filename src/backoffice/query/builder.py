"""Filtered, sorted, paginated queries over one model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Query, Session

from ..auth import Principal
from ..utils.logging import get_logger
from ..utils.time import utc_now
from . import scopes
from .pagination import PageResult
from .params import MAX_SQL_INTEGER, ListParams
from .quick_dates import MalformedDateRange, resolve_date_filter
from .sorting import SortSpec

logger = get_logger(__name__)

TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
FALSE_VALUES = frozenset({"0", "false", "no", "off"})

FILTER_KINDS = ("exact", "boolean", "choice", "date", "relation", "trashed", "custom")


@dataclass(frozen=True)
class FilterDefinition:
    """
    A named filter a list endpoint accepts.

    kind:
        exact    - equality, value coerced to the column's Python type
        boolean  - 1/true/yes/on or 0/false/no/off; anything else is ignored
        choice   - equality restricted to `choices`; other values match nothing
        date     - quick range name or "<from>,<to>" on an ISO timestamp column
        relation - any related row whose `related_column` equals the value
        trashed  - "with" or "only" for soft-deleted rows
        custom   - `apply(query, value, now)` returns the narrowed query
    """

    kind: str
    column: Any = None
    choices: Tuple[str, ...] = ()
    relationship: Any = None
    related_column: Any = None
    apply: Optional[Callable[[Query, str, datetime], Query]] = None

    def __post_init__(self) -> None:
        if self.kind not in FILTER_KINDS:
            raise ValueError(f"Unknown filter kind: {self.kind}")


@dataclass(frozen=True)
class QueryDefinition:
    """What a resource lets clients search, filter and sort on."""

    model: Any
    primary_key: Any
    searchable: Sequence[Any] = ()
    filters: Mapping[str, FilterDefinition] = field(default_factory=dict)
    sortable: Mapping[str, Any] = field(default_factory=dict)
    default_sort: Tuple[SortSpec, ...] = (SortSpec(field="created_at", descending=True),)
    owner_column: Any = None
    deleted_column: Any = None


def _coerce(column: Any, value: str) -> Any:
    python_type = column.type.python_type
    if python_type is bool:
        lowered = value.lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ValueError(f"Not a boolean: {value!r}")
    coerced = python_type(value)
    if python_type is int and not -MAX_SQL_INTEGER - 1 <= coerced <= MAX_SQL_INTEGER:
        raise ValueError(f"Out of range: {value!r}")
    return coerced


class FilteredQueryBuilder:
    """
    Chainable builder that turns list parameters into a page of rows.

    Usage:
        page = (
            FilteredQueryBuilder(session, POST_QUERY, principal=principal)
            .apply(params)
            .paginate(params.page, params.per_page)
        )
    """

    def __init__(
        self,
        session: Session,
        definition: QueryDefinition,
        principal: Principal | None = None,
        now: datetime | None = None,
    ):
        self.definition = definition
        self.principal = principal
        self.now = now or utc_now()
        self.query: Query = session.query(definition.model)
        self.search_term: Optional[str] = None
        self.applied_filters: Dict[str, str] = {}
        self.applied_sort: List[SortSpec] = []
        self.owner_scoped = False
        self._trashed = "without"

    def search(self, term: Optional[str]) -> "FilteredQueryBuilder":
        if term and term.strip() and self.definition.searchable:
            self.search_term = term.strip()
            self.query = scopes.search_columns(self.query, self.definition.searchable, self.search_term)
        return self

    def filter(self, filters: Mapping[str, str]) -> "FilteredQueryBuilder":
        """Apply every known filter; unknown keys are skipped."""
        for name, value in filters.items():
            definition = self.definition.filters.get(name)
            if definition is None:
                logger.debug("Ignoring unknown filter %r on %s", name, self.definition.model.__name__)
                continue
            if self._apply_filter(definition, str(value)):
                self.applied_filters[name] = str(value)
        return self

    def _apply_filter(self, definition: FilterDefinition, value: str) -> bool:
        """Narrow the query; returns False when the filter was ignored."""
        kind = definition.kind
        if kind == "exact":
            try:
                coerced = _coerce(definition.column, value)
            except (TypeError, ValueError):
                logger.debug("Filter value %r does not fit %s; matching nothing", value, definition.column)
                self.query = scopes.where_none(self.query)
                return True
            self.query = scopes.where_equals(self.query, definition.column, coerced)
        elif kind == "boolean":
            lowered = value.lower()
            if lowered in TRUE_VALUES:
                self.query = scopes.where_boolean(self.query, definition.column, True)
            elif lowered in FALSE_VALUES:
                self.query = scopes.where_boolean(self.query, definition.column, False)
            else:
                return False
        elif kind == "choice":
            if value in definition.choices:
                self.query = scopes.where_equals(self.query, definition.column, value)
            else:
                self.query = scopes.where_none(self.query)
        elif kind == "date":
            try:
                date_range = resolve_date_filter(value, self.now)
            except MalformedDateRange as exc:
                logger.debug("Malformed date filter: %s", exc)
                self.query = scopes.where_none(self.query)
                return True
            if date_range is None:
                return False
            self.query = scopes.where_between(self.query, definition.column, date_range)
        elif kind == "relation":
            try:
                coerced = _coerce(definition.related_column, value)
            except (TypeError, ValueError):
                self.query = scopes.where_none(self.query)
                return True
            self.query = scopes.where_related(
                self.query, definition.relationship, definition.related_column, coerced
            )
        elif kind == "trashed":
            if self.definition.deleted_column is None or value not in ("with", "only"):
                return False
            self._trashed = value
        elif kind == "custom":
            narrowed = definition.apply(self.query, value, self.now)
            if narrowed is None:
                return False
            self.query = narrowed
        return True

    def sort(self, specs: Sequence[SortSpec]) -> "FilteredQueryBuilder":
        for spec in specs:
            if spec.field not in self.definition.sortable:
                logger.debug("Ignoring unknown sort field %r", spec.field)
                continue
            self.applied_sort.append(spec)
        return self

    def scope_to_owner(self, include_all: bool = False) -> "FilteredQueryBuilder":
        """
        Restrict rows to the principal's own.

        Elevated principals see everything only when they ask for it.
        """
        if self.definition.owner_column is None or self.principal is None:
            return self
        if include_all and self.principal.is_elevated:
            return self
        self.query = scopes.owned_by(self.query, self.definition.owner_column, self.principal)
        self.owner_scoped = True
        return self

    def apply(self, params: ListParams) -> "FilteredQueryBuilder":
        return (
            self.scope_to_owner(params.include_all_owners)
            .search(params.search)
            .filter(params.filters)
            .sort(params.sort)
        )

    def _final_query(self) -> Query:
        query = self.query
        deleted = self.definition.deleted_column
        if deleted is not None:
            if self._trashed == "without":
                query = scopes.without_trashed(query, deleted)
            elif self._trashed == "only":
                query = scopes.only_trashed(query, deleted)

        specs = self.applied_sort or list(self.definition.default_sort)
        order_by = []
        for spec in specs:
            column = self.definition.sortable.get(spec.field)
            if column is None:
                continue
            order_by.append(column.desc().nullslast() if spec.descending else column.asc().nullslast())
        # Primary key breaks ties so equal sort values keep a stable order across pages.
        last_descending = specs[-1].descending if specs else False
        pk = self.definition.primary_key
        order_by.append(pk.desc() if last_descending else pk.asc())
        return query.order_by(*order_by)

    @property
    def effective_sort(self) -> List[SortSpec]:
        return self.applied_sort or list(self.definition.default_sort)

    def count(self) -> int:
        return self._final_query().order_by(None).count()

    def all(self) -> List[Any]:
        return self._final_query().all()

    def paginate(self, page: int, per_page: int) -> PageResult:
        page = max(1, int(page))
        per_page = max(1, int(per_page))
        query = self._final_query()
        total = query.order_by(None).count()
        offset = (page - 1) * per_page
        # Past the last page; also keeps OFFSET inside SQLite's integer range.
        items = query.offset(offset).limit(per_page).all() if offset < total else []
        return PageResult(items=items, total=total, page=page, per_page=per_page)
