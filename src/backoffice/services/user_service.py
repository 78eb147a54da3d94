"""Write operations for users (elevated principals only)."""

from typing import Any, Mapping

from sqlalchemy.orm import Session

from ..auth import Principal
from ..database.schema import User
from ..database.user_repo import (
    count_owned_records,
    create_user_row,
    delete_user_row,
    find_user_by_email,
    find_user_by_id,
    update_user_row,
)
from ..dto import UserCreate, UserUpdate, validate_payload
from ..errors import NotFound, ValidationFailed
from ..fillable import CREATE, UPDATE, USER_FILLABLE
from ..utils.logging import get_logger
from .base import atomic_write, require_elevated, writable_input

logger = get_logger(__name__)


def _load_user(session: Session, user_id: int) -> User:
    row = find_user_by_id(session, user_id)
    if row is None:
        raise NotFound("User not found.")
    return row


def create_user(session: Session, principal: Principal, payload: Mapping[str, Any]) -> User:
    require_elevated(principal, "create user")
    data = validate_payload(UserCreate, writable_input(USER_FILLABLE, payload, principal, CREATE))
    fields = USER_FILLABLE.filter(data.model_dump(), principal, CREATE)
    with atomic_write(session, "Create user"):
        if find_user_by_email(session, fields["email"]) is not None:
            raise ValidationFailed.single("email", "The email has already been taken.")
        row = create_user_row(session, **fields)
    logger.info(f"User {row.id} created by user {principal.id}")
    return row


def update_user(session: Session, principal: Principal, user_id: int, payload: Mapping[str, Any]) -> User:
    require_elevated(principal, "update user")
    row = _load_user(session, user_id)
    data = validate_payload(UserUpdate, writable_input(USER_FILLABLE, payload, principal, UPDATE))
    changes = USER_FILLABLE.filter(data.model_dump(exclude_unset=True), principal, UPDATE)
    if row.id == principal.id and (
        changes.get("status") == "inactive" or changes.get("role", row.role) != row.role
    ):
        raise ValidationFailed.single("role", "You cannot demote or deactivate your own account.")
    with atomic_write(session, f"Update user {user_id}"):
        update_user_row(session, row, changes)
    return row


def delete_user(session: Session, principal: Principal, user_id: int) -> None:
    require_elevated(principal, "delete user")
    row = _load_user(session, user_id)
    if row.id == principal.id:
        raise ValidationFailed.single("user", "You cannot delete your own account.")
    with atomic_write(session, f"Delete user {user_id}"):
        if count_owned_records(session, row.id):
            raise ValidationFailed.single(
                "user", "The user still owns posts or advertisements; reassign them or deactivate the user."
            )
        delete_user_row(session, row)
    logger.info(f"User {user_id} deleted by user {principal.id}")


def toggle_user_status(session: Session, principal: Principal, user_id: int) -> User:
    require_elevated(principal, "toggle user")
    row = _load_user(session, user_id)
    if row.id == principal.id:
        raise ValidationFailed.single("status", "You cannot deactivate your own account.")
    new_status = "inactive" if row.status == "active" else "active"
    with atomic_write(session, f"Toggle user {user_id}"):
        update_user_row(session, row, {"status": new_status})
    return row
