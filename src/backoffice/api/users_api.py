"""Users API."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..config.loader import PaginationSettings
from ..database.user_repo import find_user_by_id, query_users
from .common import build_paginated, parse_params
from .models import Paginated, UserSummary

if TYPE_CHECKING:
    from ..database.schema import User


def user_summary(row: "User") -> UserSummary:
    return UserSummary(
        id=row.id,
        name=row.name,
        email=row.email,
        role=row.role,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def list_users(
    session: Session,
    raw_params: Mapping[str, Any],
    settings: PaginationSettings | None = None,
    now: datetime | None = None,
) -> Paginated:
    params = parse_params(raw_params, settings)
    result, builder = query_users(session, params, now=now)
    return build_paginated(result, builder, [user_summary(row) for row in result.items], settings)


def get_user(session: Session, user_id: int) -> Optional[UserSummary]:
    row = find_user_by_id(session, user_id)
    return user_summary(row) if row else None
