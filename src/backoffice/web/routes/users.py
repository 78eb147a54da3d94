"""User management pages (admin-only)."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...api.forms import form_fields
from ...api.users_api import get_user, list_users
from ...auth import Principal
from ...config.loader import PaginationSettings
from ...errors import NotFound
from ...fillable import CREATE, UPDATE
from ...services import user_service
from ...services.base import require_elevated
from ..dependencies import (
    RecordId,
    get_pagination,
    get_principal,
    get_session,
    query_params,
    read_payload,
)
from ..responses import redirect_with_flash, render_page

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
def index(
    request: Request,
    params: Dict[str, Any] = Depends(query_params),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
    pagination: PaginationSettings = Depends(get_pagination),
):
    require_elevated(principal, "list users")
    users = list_users(session, params, settings=pagination)
    return render_page(request, "Users/Index", {"users": users.model_dump(mode="json", by_alias=True)})


@router.get("/create")
def create(
    request: Request,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    require_elevated(principal, "open user form")
    form = form_fields(session, "users", principal, CREATE)
    return render_page(request, "Users/Create", {"form": form.model_dump(mode="json")})


@router.post("")
def store(
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    user_service.create_user(session, principal, payload)
    return redirect_with_flash("/users", "User created.")


@router.get("/{user_id}/edit")
def edit(
    request: Request,
    user_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    require_elevated(principal, "open user form")
    user = get_user(session, user_id)
    if user is None:
        raise NotFound("User not found.")
    form = form_fields(session, "users", principal, UPDATE)
    return render_page(
        request, "Users/Edit", {"user": user.model_dump(mode="json"), "form": form.model_dump(mode="json")}
    )


@router.api_route("/{user_id}", methods=["PUT", "PATCH"])
def update(
    user_id: RecordId,
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    user_service.update_user(session, principal, user_id, payload)
    return redirect_with_flash("/users", "User updated.")


@router.delete("/{user_id}")
def destroy(
    user_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    user_service.delete_user(session, principal, user_id)
    return redirect_with_flash("/users", "User deleted.")


@router.patch("/{user_id}/status")
def toggle_status(
    user_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    row = user_service.toggle_user_status(session, principal, user_id)
    return redirect_with_flash("/users", f"User is now {row.status}.")
