"""Repository functions for users."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import ROLES, Principal
from ..query import FilterDefinition, FilteredQueryBuilder, ListParams, PageResult, QueryDefinition
from ..utils.logging import get_logger
from ..utils.time import utc_now_z
from .common import apply_changes, run_list_query
from .schema import Advertisement, Post, User

logger = get_logger(__name__)

USER_QUERY = QueryDefinition(
    model=User,
    primary_key=User.id,
    searchable=(User.name, User.email),
    filters={
        "role": FilterDefinition(kind="choice", column=User.role, choices=ROLES),
        "status": FilterDefinition(kind="choice", column=User.status, choices=("active", "inactive")),
        "created": FilterDefinition(kind="date", column=User.created_at),
    },
    sortable={
        "name": User.name,
        "email": User.email,
        "role": User.role,
        "created_at": User.created_at,
    },
)


def query_users(
    session: Session,
    params: ListParams,
    now: datetime | None = None,
) -> tuple[PageResult, FilteredQueryBuilder]:
    return run_list_query(session, USER_QUERY, params, now=now)


def find_user_by_id(session: Session, user_id: int) -> Optional[User]:
    return session.get(User, user_id)


def find_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.query(User).filter(func.lower(User.email) == email.lower()).first()


def find_active_principal(session: Session, user_id: int) -> Optional[Principal]:
    """Resolve an active user into a Principal; None for unknown or inactive users."""
    user = find_user_by_id(session, user_id)
    if user is None or user.status != "active":
        return None
    return Principal(id=user.id, role=user.role, name=user.name)


def list_user_options(session: Session) -> List[User]:
    """Active users, by name, for owner pickers."""
    return session.query(User).filter(User.status == "active").order_by(User.name.asc(), User.id.asc()).all()


def create_user_row(session: Session, **fields: Any) -> User:
    now_iso = utc_now_z()
    row = User(created_at=now_iso, updated_at=now_iso, **fields)
    session.add(row)
    session.flush()
    logger.debug(f"Created user {row.id} ({row.email})")
    return row


def update_user_row(session: Session, row: User, changes: Dict[str, Any]) -> User:
    apply_changes(row, changes)
    session.add(row)
    return row


def count_users(session: Session) -> int:
    return session.query(func.count(User.id)).scalar() or 0


def count_owned_records(session: Session, user_id: int) -> int:
    """Posts and advertisements (trashed included) that still point at the user."""
    posts = session.query(func.count(Post.id)).filter(Post.user_id == user_id).scalar() or 0
    ads = session.query(func.count(Advertisement.id)).filter(Advertisement.user_id == user_id).scalar() or 0
    return posts + ads


def delete_user_row(session: Session, row: User) -> None:
    session.delete(row)
