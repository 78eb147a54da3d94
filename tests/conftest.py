"""Pytest configuration and fixtures."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.auth import Principal
from backoffice.database.advertisement_repo import create_ad_zone_row, create_advertisement_row
from backoffice.database.category_repo import create_category_row
from backoffice.database.post_repo import create_post_row, sync_post_categories
from backoffice.database.schema import Base
from backoffice.database.sqlite_client import _enable_foreign_keys
from backoffice.database.user_repo import create_user_row

# Fixed reference time for date filters: Wednesday 2025-06-18 12:00 UTC.
NOW = datetime(2025, 6, 18, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (the HTTP test client runs in another thread)."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session(engine):
    """Create a temporary in-memory database session for testing."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now():
    return NOW


def _principal(user) -> Principal:
    return Principal(id=user.id, role=user.role, name=user.name)


@pytest.fixture
def admin_user(session):
    user = create_user_row(session, name="Ada Admin", email="ada@example.com", role="admin")
    session.commit()
    return user


@pytest.fixture
def author_user(session):
    user = create_user_row(session, name="Otto Author", email="otto@example.com", role="author")
    session.commit()
    return user


@pytest.fixture
def other_author(session):
    user = create_user_row(session, name="Olga Other", email="olga@example.com", role="author")
    session.commit()
    return user


@pytest.fixture
def admin(admin_user):
    return _principal(admin_user)


@pytest.fixture
def author(author_user):
    return _principal(author_user)


@pytest.fixture
def other(other_author):
    return _principal(other_author)


@pytest.fixture
def make_category(session):
    def _make(name, status="active", created_at=None):
        row = create_category_row(
            session, name=name, slug=name.lower().replace(" ", "-"), status=status
        )
        if created_at:
            row.created_at = created_at
        session.commit()
        return row

    return _make


@pytest.fixture
def make_post(session):
    counter = {"n": 0}

    def _make(user, title, status="draft", categories=(), created_at=None, **fields):
        counter["n"] += 1
        row = create_post_row(
            session,
            user_id=user.id,
            title=title,
            slug=f"{title.lower().replace(' ', '-')}-{counter['n']}",
            body=fields.pop("body", f"Body of {title}"),
            status=status,
            **fields,
        )
        if created_at:
            row.created_at = created_at
        if categories:
            sync_post_categories(session, row, list(categories))
        session.commit()
        return row

    return _make


@pytest.fixture
def make_zone(session):
    def _make(name="Sidebar", status="active"):
        row = create_ad_zone_row(session, name=name, slug=name.lower(), status=status, width=300, height=250)
        session.commit()
        return row

    return _make


@pytest.fixture
def make_ad(session):
    def _make(user, zone, title, status="inactive", **fields):
        row = create_advertisement_row(
            session, user_id=user.id, ad_zone_id=zone.id, title=title, status=status, **fields
        )
        session.commit()
        return row

    return _make
