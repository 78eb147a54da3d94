"""Write operations for categories (elevated principals only)."""

from typing import Any, Mapping

from sqlalchemy.orm import Session

from ..auth import Principal
from ..database.category_repo import (
    category_slug_exists,
    create_category_row,
    delete_category_row,
    find_category_by_id,
    update_category_row,
)
from ..database.common import unique_slug
from ..database.schema import Category
from ..dto import CategoryCreate, CategoryUpdate, validate_payload
from ..errors import NotFound, ValidationFailed
from ..fillable import CATEGORY_FILLABLE, CREATE, UPDATE
from ..utils.logging import get_logger
from .base import atomic_write, require_elevated, writable_input

logger = get_logger(__name__)


def _load_category(session: Session, category_id: int) -> Category:
    row = find_category_by_id(session, category_id)
    if row is None:
        raise NotFound("Category not found.")
    return row


def create_category(session: Session, principal: Principal, payload: Mapping[str, Any]) -> Category:
    require_elevated(principal, "create category")
    data = validate_payload(CategoryCreate, writable_input(CATEGORY_FILLABLE, payload, principal, CREATE))
    fields = CATEGORY_FILLABLE.filter(data.model_dump(), principal, CREATE)
    slug = fields.pop("slug", None)

    with atomic_write(session, "Create category"):
        if slug:
            if category_slug_exists(session, slug):
                raise ValidationFailed.single("slug", "The slug has already been taken.")
        else:
            slug = unique_slug(fields["name"], lambda candidate: category_slug_exists(session, candidate))
        row = create_category_row(session, slug=slug, **fields)

    logger.info(f"Category {row.id} created by user {principal.id}")
    return row


def update_category(
    session: Session,
    principal: Principal,
    category_id: int,
    payload: Mapping[str, Any],
) -> Category:
    require_elevated(principal, "update category")
    row = _load_category(session, category_id)
    data = validate_payload(CategoryUpdate, writable_input(CATEGORY_FILLABLE, payload, principal, UPDATE))
    changes = CATEGORY_FILLABLE.filter(data.model_dump(exclude_unset=True), principal, UPDATE)
    with atomic_write(session, f"Update category {category_id}"):
        update_category_row(session, row, changes)
    return row


def delete_category(session: Session, principal: Principal, category_id: int) -> None:
    """Hard delete; posts keep existing and just lose the link."""
    require_elevated(principal, "delete category")
    row = _load_category(session, category_id)
    with atomic_write(session, f"Delete category {category_id}"):
        delete_category_row(session, row)
    logger.info(f"Category {category_id} deleted by user {principal.id}")


def toggle_category_status(session: Session, principal: Principal, category_id: int) -> Category:
    require_elevated(principal, "toggle category")
    row = _load_category(session, category_id)
    new_status = "inactive" if row.status == "active" else "active"
    with atomic_write(session, f"Toggle category {category_id}"):
        update_category_row(session, row, {"status": new_status})
    return row
