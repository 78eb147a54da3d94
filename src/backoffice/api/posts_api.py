"""Posts API: canonical read surface for post lists and details."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..auth import Principal
from ..config.loader import PaginationSettings
from ..database.attachment_repo import list_attachments
from ..database.post_repo import find_post_for_principal, query_posts
from .common import attachment_out, build_paginated, parse_params
from .models import CategoryRef, Paginated, PostDetail, PostSummary, UserRef

if TYPE_CHECKING:
    from ..database.schema import Post


def _post_fields(row: "Post") -> dict:
    return dict(
        id=row.id,
        title=row.title,
        slug=row.slug,
        excerpt=row.excerpt,
        status=row.status,
        is_featured=bool(row.is_featured),
        is_published=row.is_published,
        is_trashed=row.is_trashed,
        author=UserRef(id=row.author.id, name=row.author.name) if row.author else None,
        categories=[CategoryRef(id=c.id, name=c.name, slug=c.slug) for c in row.categories],
        published_at=row.published_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


def post_summary(row: "Post") -> PostSummary:
    return PostSummary(**_post_fields(row))


def list_posts(
    session: Session,
    raw_params: Mapping[str, Any],
    principal: Principal,
    settings: PaginationSettings | None = None,
    now: datetime | None = None,
) -> Paginated:
    """
    List posts visible to the principal.

    Args:
        session: SQLAlchemy session
        raw_params: Request parameters (search, filter[...], sort, page, per_page, scope)
        principal: Acting user; non-elevated users only see their own posts
        settings: Page-size allow-list and default
        now: Reference time for quick date filters (defaults to current UTC time)

    Returns:
        Paginated[PostSummary]
    """
    params = parse_params(raw_params, settings)
    result, builder = query_posts(session, params, principal=principal, now=now)
    return build_paginated(result, builder, [post_summary(row) for row in result.items], settings)


def get_post(
    session: Session,
    post_id: int,
    principal: Principal,
    with_trashed: bool = False,
) -> Optional[PostDetail]:
    row = find_post_for_principal(session, post_id, principal, with_trashed=with_trashed)
    if row is None:
        return None
    return PostDetail(
        **_post_fields(row),
        body=row.body,
        attachments=[attachment_out(a) for a in list_attachments(session, "post", row.id)],
    )
