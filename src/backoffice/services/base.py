"""Shared write-side plumbing: transactions, authorization, value conversion."""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, Iterable, Mapping

from sqlalchemy.orm import Session

from ..auth import Principal
from ..database.sqlite_client import transaction
from ..errors import BackofficeError, Forbidden, WriteFailed
from ..fillable import FillablePolicy
from ..utils.logging import get_logger
from ..utils.time import ensure_aware, to_utc_z

logger = get_logger(__name__)


@contextmanager
def atomic_write(session: Session, action: str) -> Generator[Session, None, None]:
    """
    Run a multi-step write as one transaction.

    Every change inside the block is rolled back on failure. Errors meant
    for the caller (validation, not found, forbidden) propagate as they
    are; anything else is logged and reported as WriteFailed.
    """
    try:
        with transaction(session):
            yield session
    except BackofficeError:
        raise
    except Exception as exc:
        logger.error(f"{action} failed and was rolled back: {exc}", exc_info=True)
        raise WriteFailed() from exc


def require_elevated(principal: Principal, action: str) -> None:
    if not principal.is_elevated:
        logger.info(f"Denied {action} for user {principal.id} (role={principal.role})")
        raise Forbidden()


def writable_input(policy: FillablePolicy, payload: Any, principal: Principal, operation: str) -> Any:
    """Drop keys the principal may not write, before their values are validated."""
    if not isinstance(payload, Mapping):
        return payload
    return policy.filter(payload, principal, operation)


def to_storage(fields: Dict[str, Any], datetime_fields: Iterable[str]) -> Dict[str, Any]:
    """Convert datetime values to the stored ISO string form."""
    converted = dict(fields)
    for key in datetime_fields:
        value = converted.get(key)
        if isinstance(value, datetime):
            converted[key] = to_utc_z(ensure_aware(value))
    return converted
