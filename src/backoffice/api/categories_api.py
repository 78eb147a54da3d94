"""Categories API."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from ..config.loader import PaginationSettings
from ..database.category_repo import count_posts_by_category, find_category_by_id, query_categories
from .common import build_paginated, parse_params
from .models import CategorySummary, Paginated

if TYPE_CHECKING:
    from ..database.schema import Category


def category_summary(row: "Category", posts_count: int = 0) -> CategorySummary:
    return CategorySummary(
        id=row.id,
        name=row.name,
        slug=row.slug,
        description=row.description,
        status=row.status,
        posts_count=posts_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def list_categories(
    session: Session,
    raw_params: Mapping[str, Any],
    settings: PaginationSettings | None = None,
    now: datetime | None = None,
) -> Paginated:
    params = parse_params(raw_params, settings)
    result, builder = query_categories(session, params, now=now)
    counts: Dict[int, int] = count_posts_by_category(session, [row.id for row in result.items])
    items = [category_summary(row, counts.get(row.id, 0)) for row in result.items]
    return build_paginated(result, builder, items, settings)


def get_category(session: Session, category_id: int) -> Optional[CategorySummary]:
    row = find_category_by_id(session, category_id)
    if row is None:
        return None
    counts = count_posts_by_category(session, [row.id])
    return category_summary(row, counts.get(row.id, 0))
