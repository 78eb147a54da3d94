"""Tests for user management rules."""

import pytest

from backoffice.errors import Forbidden, ValidationFailed
from backoffice.services.post_service import create_post
from backoffice.services.user_service import create_user, delete_user, toggle_user_status, update_user


def test_create_user_requires_admin_and_unique_email(session, admin, author):
    with pytest.raises(Forbidden):
        create_user(session, author, {"name": "Eve", "email": "eve@example.com"})

    row = create_user(session, admin, {"name": "Eve", "email": "Eve@Example.com", "role": "editor"})
    assert row.email == "eve@example.com"
    assert row.role == "editor"

    with pytest.raises(ValidationFailed) as excinfo:
        create_user(session, admin, {"name": "Eve two", "email": "EVE@example.com"})
    assert "email" in excinfo.value.errors


def test_admin_cannot_demote_or_deactivate_self(session, admin, admin_user):
    with pytest.raises(ValidationFailed):
        update_user(session, admin, admin_user.id, {"role": "author"})
    with pytest.raises(ValidationFailed):
        toggle_user_status(session, admin, admin_user.id)
    update_user(session, admin, admin_user.id, {"name": "Ada Lovelace"})
    assert admin_user.name == "Ada Lovelace"


def test_email_is_not_editable(session, admin, author_user):
    update_user(session, admin, author_user.id, {"email": "new@example.com", "role": "editor"})
    assert author_user.email == "otto@example.com"
    assert author_user.role == "editor"


def test_user_with_content_cannot_be_deleted(session, admin, author, author_user, other_author):
    create_post(session, author, {"title": "Keeps me around"})
    with pytest.raises(ValidationFailed) as excinfo:
        delete_user(session, admin, author_user.id)
    assert "user" in excinfo.value.errors

    delete_user(session, admin, other_author.id)
    with pytest.raises(ValidationFailed):
        delete_user(session, admin, admin.id)
