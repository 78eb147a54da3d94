"""Tests for post writes: atomic create-then-relate, ownership, soft delete."""

import pytest

from backoffice.database.schema import Post, post_category
from backoffice.errors import NotFound, ValidationFailed, WriteFailed
from backoffice.services import post_service
from backoffice.services.post_service import (
    create_post,
    delete_post,
    restore_post,
    toggle_post_status,
    update_post,
)


def link_count(session):
    return session.query(post_category).count()


def test_create_links_categories_and_generates_slug(session, author, make_category):
    news = make_category("News")
    tips = make_category("Tips")
    row = create_post(session, author, {"title": "Hello World", "category_ids": [tips.id, news.id]})

    assert row.id is not None
    assert row.slug == "hello-world"
    assert row.user_id == author.id
    assert sorted(c.id for c in row.categories) == sorted([news.id, tips.id])
    assert link_count(session) == 2

    again = create_post(session, author, {"title": "Hello world"})
    assert again.slug == "hello-world-2"


def test_create_then_relate_is_atomic(session, author, make_category, monkeypatch):
    news = make_category("News")

    def broken_sync(*args, **kwargs):
        raise RuntimeError("link table unavailable")

    monkeypatch.setattr(post_service, "sync_post_categories", broken_sync)

    with pytest.raises(WriteFailed) as excinfo:
        create_post(session, author, {"title": "Doomed post", "category_ids": [news.id]})

    assert excinfo.value.status_code == 500
    assert "link table" not in excinfo.value.message
    assert session.query(Post).count() == 0
    assert link_count(session) == 0


def test_unknown_category_rolls_back_the_insert(session, author, make_category):
    news = make_category("News")
    with pytest.raises(ValidationFailed) as excinfo:
        create_post(session, author, {"title": "Mixed", "category_ids": [news.id, 999]})
    assert "category_ids" in excinfo.value.errors
    assert session.query(Post).count() == 0


def test_validation_failure_writes_nothing(session, author):
    with pytest.raises(ValidationFailed) as excinfo:
        create_post(session, author, {"title": "", "status": "live"})
    assert set(excinfo.value.errors) == {"title", "status"}
    assert session.query(Post).count() == 0


def test_non_elevated_author_cannot_feature_or_reassign(session, author, admin_user):
    row = create_post(session, author, {"title": "Mine", "is_featured": True, "user_id": admin_user.id})
    assert row.user_id == author.id
    assert row.is_featured is False


def test_fields_the_author_may_not_write_are_dropped_before_validation(session, author):
    row = create_post(session, author, {"title": "Hello", "is_featured": "maybe", "user_id": "x"})
    assert row.user_id == author.id
    assert row.is_featured is False

    row = update_post(session, author, row.id, {"title": "Hello again", "is_featured": "maybe"})
    assert row.title == "Hello again"


def test_admin_fields_are_still_validated_for_elevated_principals(session, admin):
    with pytest.raises(ValidationFailed) as excinfo:
        create_post(session, admin, {"title": "Hello", "is_featured": "maybe", "user_id": "x"})
    assert set(excinfo.value.errors) == {"is_featured", "user_id"}


def test_elevated_principal_may_feature_and_reassign(session, admin, author_user):
    row = create_post(session, admin, {"title": "Theirs", "is_featured": True, "user_id": author_user.id})
    assert row.user_id == author_user.id
    assert row.is_featured is True


def test_publishing_stamps_published_at(session, author, now):
    row = create_post(session, author, {"title": "Fresh", "status": "published"}, now=now)
    assert row.published_at == "2025-06-18T12:00:00.000000Z"

    draft = create_post(session, author, {"title": "Later"})
    assert draft.published_at is None
    toggled = toggle_post_status(session, author, draft.id, now=now)
    assert toggled.status == "published"
    assert toggled.published_at == "2025-06-18T12:00:00.000000Z"
    assert toggle_post_status(session, author, draft.id).status == "draft"


def test_update_replaces_categories_and_ignores_slug(session, author, make_category):
    news = make_category("News")
    tips = make_category("Tips")
    row = create_post(session, author, {"title": "Editable", "category_ids": [news.id]})

    update_post(session, author, row.id, {"category_ids": [tips.id], "slug": "changed", "excerpt": "Short"})
    session.refresh(row)
    assert [c.id for c in row.categories] == [tips.id]
    assert row.slug == "editable"
    assert row.excerpt == "Short"


def test_other_authors_posts_look_missing(session, author, other, admin):
    row = create_post(session, author, {"title": "Private"})
    with pytest.raises(NotFound):
        update_post(session, other, row.id, {"title": "Hijacked"})
    with pytest.raises(NotFound):
        delete_post(session, other, row.id)
    update_post(session, admin, row.id, {"title": "Moderated"})
    assert row.title == "Moderated"


def test_soft_delete_and_restore(session, author):
    row = create_post(session, author, {"title": "Trash me"})
    delete_post(session, author, row.id)
    assert row.deleted_at is not None
    assert session.query(Post).count() == 1

    with pytest.raises(NotFound):
        update_post(session, author, row.id, {"title": "Ghost"})

    restore_post(session, author, row.id)
    assert row.deleted_at is None
    with pytest.raises(NotFound):
        restore_post(session, author, row.id)
