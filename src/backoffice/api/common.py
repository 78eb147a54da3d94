"""Helpers shared by the *_api modules."""

from typing import TYPE_CHECKING, Any, List, Mapping

from ..config.loader import PaginationSettings
from ..query import ListParams, PageResult, parse_list_params
from .models import AppliedQuery, AttachmentOut, PaginationMeta, Paginated

if TYPE_CHECKING:
    from ..database.schema import Attachment
    from ..query import FilteredQueryBuilder


def parse_params(raw: Mapping[str, Any], settings: PaginationSettings | None) -> ListParams:
    return parse_list_params(raw, settings or PaginationSettings())


def build_paginated(
    result: PageResult,
    builder: "FilteredQueryBuilder",
    items: List[Any],
    settings: PaginationSettings | None,
) -> Paginated:
    settings = settings or PaginationSettings()
    if builder.definition.owner_column is None:
        scope = "none"
    elif builder.owner_scoped:
        scope = "own"
    else:
        scope = "all"
    return Paginated[Any](
        data=items,
        meta=PaginationMeta(
            total=result.total,
            page=result.page,
            per_page=result.per_page,
            last_page=result.last_page,
            from_=result.from_index,
            to=result.to_index,
            per_page_options=list(settings.per_page_options),
        ),
        query=AppliedQuery(
            search=builder.search_term,
            filters=dict(builder.applied_filters),
            sort=[spec.token() for spec in builder.effective_sort],
            scope=scope,
        ),
    )


def attachment_out(row: "Attachment") -> AttachmentOut:
    return AttachmentOut(
        id=row.id,
        path=row.path,
        original_name=row.original_name,
        mime_type=row.mime_type,
        size_bytes=row.size_bytes,
        created_at=row.created_at,
    )
