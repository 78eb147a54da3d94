"""Repository functions for posts and their category links."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..auth import Principal
from ..dto.posts import POST_STATUSES
from ..query import FilterDefinition, FilteredQueryBuilder, ListParams, PageResult, QueryDefinition
from ..utils.logging import get_logger
from ..utils.time import utc_now_z
from .common import apply_changes, run_list_query
from .schema import Category, Post

logger = get_logger(__name__)

POST_QUERY = QueryDefinition(
    model=Post,
    primary_key=Post.id,
    searchable=(Post.title, Post.excerpt, Post.body),
    filters={
        "status": FilterDefinition(kind="choice", column=Post.status, choices=POST_STATUSES),
        "category": FilterDefinition(kind="relation", relationship=Post.categories, related_column=Category.id),
        "author": FilterDefinition(kind="exact", column=Post.user_id),
        "featured": FilterDefinition(kind="boolean", column=Post.is_featured),
        "created": FilterDefinition(kind="date", column=Post.created_at),
        "published": FilterDefinition(kind="date", column=Post.published_at),
        "trashed": FilterDefinition(kind="trashed"),
    },
    sortable={
        "title": Post.title,
        "status": Post.status,
        "created_at": Post.created_at,
        "updated_at": Post.updated_at,
        "published_at": Post.published_at,
    },
    owner_column=Post.user_id,
    deleted_column=Post.deleted_at,
)


def query_posts(
    session: Session,
    params: ListParams,
    principal: Principal | None = None,
    now: datetime | None = None,
) -> tuple[PageResult, FilteredQueryBuilder]:
    """
    Query one page of posts.

    Non-elevated principals only ever see their own posts; elevated
    principals see everyone's when params ask for scope=all.
    """
    return run_list_query(session, POST_QUERY, params, principal=principal, now=now)


def find_post_by_id(session: Session, post_id: int, with_trashed: bool = False) -> Optional[Post]:
    q = session.query(Post).filter(Post.id == post_id)
    if not with_trashed:
        q = q.filter(Post.deleted_at.is_(None))
    return q.first()


def find_post_for_principal(
    session: Session,
    post_id: int,
    principal: Principal,
    with_trashed: bool = False,
) -> Optional[Post]:
    """Find a post the principal may see; other authors' posts look missing to non-elevated users."""
    row = find_post_by_id(session, post_id, with_trashed=with_trashed)
    if row is None:
        return None
    if not principal.is_elevated and row.user_id != principal.id:
        return None
    return row


def post_slug_exists(session: Session, slug: str) -> bool:
    """Slugs stay reserved by trashed posts too."""
    return session.query(Post.id).filter(Post.slug == slug).first() is not None


def create_post_row(session: Session, **fields: Any) -> Post:
    now_iso = utc_now_z()
    row = Post(created_at=now_iso, updated_at=now_iso, **fields)
    session.add(row)
    session.flush()
    logger.debug(f"Created post {row.id} ({row.slug})")
    return row


def update_post_row(session: Session, row: Post, changes: Dict[str, Any]) -> Post:
    apply_changes(row, changes)
    session.add(row)
    return row


def sync_post_categories(session: Session, row: Post, categories: List[Category]) -> Post:
    """Replace the post's category links with exactly `categories`."""
    row.categories = list(categories)
    session.add(row)
    session.flush()
    return row


def soft_delete_post_row(session: Session, row: Post) -> Post:
    now_iso = utc_now_z()
    row.deleted_at = now_iso
    row.updated_at = now_iso
    session.add(row)
    return row


def restore_post_row(session: Session, row: Post) -> Post:
    row.deleted_at = None
    row.updated_at = utc_now_z()
    session.add(row)
    return row
