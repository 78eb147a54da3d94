"""Write operations for posts."""

from datetime import datetime
from typing import Any, List, Mapping

from sqlalchemy.orm import Session

from ..auth import Principal
from ..config.loader import UploadSettings
from ..database.attachment_repo import create_attachment_row
from ..database.category_repo import find_categories_by_ids
from ..database.common import unique_slug
from ..database.post_repo import (
    create_post_row,
    find_post_for_principal,
    post_slug_exists,
    restore_post_row,
    soft_delete_post_row,
    sync_post_categories,
    update_post_row,
)
from ..database.schema import Attachment, Category, Post
from ..database.user_repo import find_user_by_id
from ..dto import PostCreate, PostUpdate, validate_payload
from ..errors import NotFound, ValidationFailed
from ..fillable import CREATE, POST_FILLABLE, UPDATE
from ..uploads import discard_upload, store_upload
from ..utils.logging import get_logger
from ..utils.time import to_utc_z, utc_now
from .base import atomic_write, to_storage, writable_input

logger = get_logger(__name__)

DATETIME_FIELDS = ("published_at",)


def _resolve_categories(session: Session, category_ids: List[int]) -> List[Category]:
    categories = find_categories_by_ids(session, category_ids)
    found = {category.id for category in categories}
    missing = [cid for cid in category_ids if cid not in found]
    if missing:
        raise ValidationFailed.single(
            "category_ids", f"The selected categories are invalid: {', '.join(map(str, missing))}."
        )
    by_id = {category.id: category for category in categories}
    return [by_id[cid] for cid in category_ids]


def _check_author(session: Session, user_id: int) -> None:
    if find_user_by_id(session, user_id) is None:
        raise ValidationFailed.single("user_id", "The selected author is invalid.")


def _load_post(session: Session, principal: Principal, post_id: int, with_trashed: bool = False) -> Post:
    row = find_post_for_principal(session, post_id, principal, with_trashed=with_trashed)
    if row is None:
        raise NotFound("Post not found.")
    return row


def create_post(
    session: Session,
    principal: Principal,
    payload: Mapping[str, Any],
    now: datetime | None = None,
) -> Post:
    """
    Create a post and link its categories in one transaction.

    Non-elevated principals always author their own posts; `user_id` and
    `is_featured` are only honoured for elevated principals.
    """
    data = validate_payload(PostCreate, writable_input(POST_FILLABLE, payload, principal, CREATE))
    fields = POST_FILLABLE.filter(data.model_dump(), principal, CREATE)
    fields = to_storage(fields, DATETIME_FIELDS)

    category_ids = fields.pop("category_ids", [])
    author_id = fields.pop("user_id", None) or principal.id
    slug = fields.pop("slug", None)

    if fields.get("status") == "published" and not fields.get("published_at"):
        fields["published_at"] = to_utc_z(now or utc_now())

    with atomic_write(session, "Create post"):
        if author_id != principal.id:
            _check_author(session, author_id)
        categories = _resolve_categories(session, category_ids)
        if slug:
            if post_slug_exists(session, slug):
                raise ValidationFailed.single("slug", "The slug has already been taken.")
        else:
            slug = unique_slug(fields["title"], lambda candidate: post_slug_exists(session, candidate))

        row = create_post_row(session, user_id=author_id, slug=slug, **fields)
        sync_post_categories(session, row, categories)

    logger.info(f"Post {row.id} created by user {principal.id}")
    return row


def update_post(
    session: Session,
    principal: Principal,
    post_id: int,
    payload: Mapping[str, Any],
    now: datetime | None = None,
) -> Post:
    """Partially update a post; `category_ids`, when given, replaces all links."""
    row = _load_post(session, principal, post_id)
    data = validate_payload(PostUpdate, writable_input(POST_FILLABLE, payload, principal, UPDATE))
    changes = POST_FILLABLE.filter(data.model_dump(exclude_unset=True), principal, UPDATE)
    changes = to_storage(changes, DATETIME_FIELDS)
    category_ids = changes.pop("category_ids", None)

    if changes.get("status") == "published" and not row.published_at and not changes.get("published_at"):
        changes["published_at"] = to_utc_z(now or utc_now())

    with atomic_write(session, f"Update post {post_id}"):
        if "user_id" in changes:
            _check_author(session, changes["user_id"])
        categories = _resolve_categories(session, category_ids) if category_ids is not None else None
        update_post_row(session, row, changes)
        if categories is not None:
            sync_post_categories(session, row, categories)

    logger.info(f"Post {row.id} updated by user {principal.id}")
    return row


def delete_post(session: Session, principal: Principal, post_id: int) -> Post:
    """Soft-delete: the post leaves every list unless `trashed` is requested."""
    row = _load_post(session, principal, post_id)
    with atomic_write(session, f"Delete post {post_id}"):
        soft_delete_post_row(session, row)
    logger.info(f"Post {row.id} trashed by user {principal.id}")
    return row


def restore_post(session: Session, principal: Principal, post_id: int) -> Post:
    row = _load_post(session, principal, post_id, with_trashed=True)
    if row.deleted_at is None:
        raise NotFound("Post is not in the trash.")
    with atomic_write(session, f"Restore post {post_id}"):
        restore_post_row(session, row)
    logger.info(f"Post {row.id} restored by user {principal.id}")
    return row


def toggle_post_status(
    session: Session,
    principal: Principal,
    post_id: int,
    now: datetime | None = None,
) -> Post:
    """Published posts go back to draft; anything else is published."""
    row = _load_post(session, principal, post_id)
    changes: dict = {}
    if row.status == "published":
        changes["status"] = "draft"
    else:
        changes["status"] = "published"
        if not row.published_at:
            changes["published_at"] = to_utc_z(now or utc_now())
    with atomic_write(session, f"Toggle post {post_id}"):
        update_post_row(session, row, changes)
    return row


def attach_post_file(
    session: Session,
    principal: Principal,
    post_id: int,
    settings: UploadSettings,
    filename: str | None,
    content_type: str | None,
    data: bytes,
) -> Attachment:
    """Store an uploaded file and attach it to the post; the file is removed if the insert fails."""
    row = _load_post(session, principal, post_id)
    stored = store_upload(settings, filename, content_type, data, folder="posts")
    try:
        with atomic_write(session, f"Attach file to post {post_id}"):
            attachment = create_attachment_row(
                session,
                attachable_type="post",
                attachable_id=row.id,
                path=stored.path,
                original_name=stored.original_name,
                mime_type=stored.mime_type,
                size_bytes=stored.size_bytes,
            )
    except Exception:
        discard_upload(settings, stored)
        raise
    return attachment
