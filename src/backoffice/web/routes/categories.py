"""Category pages and write endpoints (writes are admin-only)."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...api.categories_api import get_category, list_categories
from ...api.forms import form_fields
from ...auth import Principal
from ...config.loader import PaginationSettings
from ...errors import NotFound
from ...fillable import CREATE, UPDATE
from ...services import category_service
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

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("")
def index(
    request: Request,
    params: Dict[str, Any] = Depends(query_params),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
    pagination: PaginationSettings = Depends(get_pagination),
):
    categories = list_categories(session, params, settings=pagination)
    return render_page(
        request, "Categories/Index", {"categories": categories.model_dump(mode="json", by_alias=True)}
    )


@router.get("/create")
def create(
    request: Request,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    require_elevated(principal, "open category form")
    form = form_fields(session, "categories", principal, CREATE)
    return render_page(request, "Categories/Create", {"form": form.model_dump(mode="json")})


@router.post("")
def store(
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    category_service.create_category(session, principal, payload)
    return redirect_with_flash("/categories", "Category created.")


@router.get("/{category_id}/edit")
def edit(
    request: Request,
    category_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    require_elevated(principal, "open category form")
    category = get_category(session, category_id)
    if category is None:
        raise NotFound("Category not found.")
    form = form_fields(session, "categories", principal, UPDATE)
    return render_page(
        request,
        "Categories/Edit",
        {"category": category.model_dump(mode="json"), "form": form.model_dump(mode="json")},
    )


@router.api_route("/{category_id}", methods=["PUT", "PATCH"])
def update(
    category_id: RecordId,
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    category_service.update_category(session, principal, category_id, payload)
    return redirect_with_flash("/categories", "Category updated.")


@router.delete("/{category_id}")
def destroy(
    category_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    category_service.delete_category(session, principal, category_id)
    return redirect_with_flash("/categories", "Category deleted.")


@router.patch("/{category_id}/status")
def toggle_status(
    category_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    row = category_service.toggle_category_status(session, principal, category_id)
    return redirect_with_flash("/categories", f"Category is now {row.status}.")
