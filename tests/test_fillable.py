"""Tests for role-gated writable fields."""

import pytest

from backoffice.auth import Principal
from backoffice.fillable import (
    ADVERTISEMENT_FILLABLE,
    CREATE,
    POST_FILLABLE,
    UPDATE,
    USER_FILLABLE,
)

ADMIN = Principal(id=1, role="admin")
EDITOR = Principal(id=2, role="editor")
AUTHOR = Principal(id=3, role="author")


def test_role_gated_fields_are_stripped_for_non_elevated_principals():
    data = {"title": "Hello", "is_featured": True, "user_id": 1}
    for principal in (EDITOR, AUTHOR):
        assert POST_FILLABLE.filter(data, principal, CREATE) == {"title": "Hello"}


def test_role_gated_fields_are_accepted_for_elevated_principals():
    data = {"title": "Hello", "is_featured": True, "user_id": 3}
    assert POST_FILLABLE.filter(data, ADMIN, CREATE) == data


def test_unknown_keys_are_always_dropped():
    assert POST_FILLABLE.filter({"title": "x", "views": 10, "id": 99}, ADMIN, CREATE) == {"title": "x"}


def test_create_only_fields_are_dropped_on_update():
    assert "slug" in POST_FILLABLE.allowed_fields(AUTHOR, CREATE)
    assert "slug" not in POST_FILLABLE.allowed_fields(AUTHOR, UPDATE)
    assert "email" not in USER_FILLABLE.allowed_fields(ADMIN, UPDATE)


def test_update_only_fields_are_dropped_on_create():
    assert "status" not in ADVERTISEMENT_FILLABLE.allowed_fields(ADMIN, CREATE)
    assert "status" in ADVERTISEMENT_FILLABLE.allowed_fields(ADMIN, UPDATE)
    assert "status" not in ADVERTISEMENT_FILLABLE.allowed_fields(AUTHOR, UPDATE)


def test_user_role_and_status_are_admin_only():
    assert USER_FILLABLE.filter({"name": "N", "role": "admin", "status": "inactive"}, EDITOR, UPDATE) == {
        "name": "N"
    }


def test_unknown_operation_raises():
    with pytest.raises(ValueError, match="Unknown operation"):
        POST_FILLABLE.allowed_fields(ADMIN, "delete")
