"""Request-scoped dependencies: database session, acting principal, settings, payload."""

import json
from typing import Annotated, Any, Dict, Generator

from fastapi import Depends, Path, Request
from sqlalchemy.orm import Session

from ..auth import Principal
from ..config.loader import PaginationSettings, UploadSettings
from ..database.user_repo import find_active_principal
from ..errors import Unauthenticated, ValidationFailed
from ..query import MAX_SQL_INTEGER

PRINCIPAL_HEADER = "X-User-Id"

# Path ids beyond SQLite's integer range are rejected like malformed ones.
RecordId = Annotated[int, Path(le=MAX_SQL_INTEGER)]


def get_session(request: Request) -> Generator[Session, None, None]:
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_principal(request: Request, session: Session = Depends(get_session)) -> Principal:
    """Resolve the acting user from the X-User-Id header; 401 unless it names an active user."""
    raw = request.headers.get(PRINCIPAL_HEADER, "").strip()
    try:
        user_id = int(raw)
    except ValueError:
        raise Unauthenticated()
    principal = find_active_principal(session, user_id)
    if principal is None:
        raise Unauthenticated()
    return principal


def get_pagination(request: Request) -> PaginationSettings:
    return request.app.state.pagination


def get_uploads(request: Request) -> UploadSettings:
    return request.app.state.uploads


def query_params(request: Request) -> Dict[str, Any]:
    return dict(request.query_params)


async def read_payload(request: Request) -> Any:
    """
    Read a write payload from a JSON or form body.

    Repeated form keys (e.g. several category_ids) become lists.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await request.body()
        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except ValueError:
            raise ValidationFailed.single("payload", "The request body must be valid JSON.")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        payload: Dict[str, Any] = {}
        for key in form.keys():
            values = form.getlist(key)
            payload[key] = values if len(values) > 1 or key.endswith("_ids") else values[0]
        return payload
    return {}
