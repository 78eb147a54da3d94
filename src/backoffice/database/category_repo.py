"""Repository functions for categories."""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..query import FilterDefinition, FilteredQueryBuilder, ListParams, PageResult, QueryDefinition
from ..utils.logging import get_logger
from ..utils.time import utc_now_z
from .common import apply_changes, run_list_query
from .schema import Category, Post, post_category

logger = get_logger(__name__)

CATEGORY_QUERY = QueryDefinition(
    model=Category,
    primary_key=Category.id,
    searchable=(Category.name, Category.slug, Category.description),
    filters={
        "status": FilterDefinition(kind="choice", column=Category.status, choices=("active", "inactive")),
        "created": FilterDefinition(kind="date", column=Category.created_at),
        "post": FilterDefinition(kind="relation", relationship=Category.posts, related_column=Post.id),
    },
    sortable={
        "name": Category.name,
        "slug": Category.slug,
        "status": Category.status,
        "created_at": Category.created_at,
    },
)


def query_categories(
    session: Session,
    params: ListParams,
    now: datetime | None = None,
) -> tuple[PageResult, FilteredQueryBuilder]:
    return run_list_query(session, CATEGORY_QUERY, params, now=now)


def find_category_by_id(session: Session, category_id: int) -> Optional[Category]:
    return session.get(Category, category_id)


def category_slug_exists(session: Session, slug: str) -> bool:
    return session.query(Category.id).filter(Category.slug == slug).first() is not None


def find_categories_by_ids(session: Session, ids: Iterable[int]) -> List[Category]:
    ids = list(ids)
    if not ids:
        return []
    return session.query(Category).filter(Category.id.in_(ids)).all()


def list_category_options(session: Session) -> List[Category]:
    """Active categories, by name, for form pickers."""
    return (
        session.query(Category)
        .filter(Category.status == "active")
        .order_by(Category.name.asc(), Category.id.asc())
        .all()
    )


def count_posts_by_category(session: Session, category_ids: Iterable[int]) -> Dict[int, int]:
    ids = list(category_ids)
    if not ids:
        return {}
    rows = (
        session.query(post_category.c.category_id, func.count(Post.id))
        .join(Post, Post.id == post_category.c.post_id)
        .filter(post_category.c.category_id.in_(ids), Post.deleted_at.is_(None))
        .group_by(post_category.c.category_id)
        .all()
    )
    counts = {category_id: 0 for category_id in ids}
    counts.update({category_id: count for category_id, count in rows})
    return counts


def create_category_row(session: Session, **fields: Any) -> Category:
    now_iso = utc_now_z()
    row = Category(created_at=now_iso, updated_at=now_iso, **fields)
    session.add(row)
    session.flush()
    logger.debug(f"Created category {row.id} ({row.slug})")
    return row


def update_category_row(session: Session, row: Category, changes: Dict[str, Any]) -> Category:
    apply_changes(row, changes)
    session.add(row)
    return row


def delete_category_row(session: Session, row: Category) -> None:
    """Delete a category and its post links."""
    row.posts.clear()
    session.delete(row)
