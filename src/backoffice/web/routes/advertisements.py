"""Advertisement pages and write endpoints; owner-scoped like posts."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from ...api.advertisements_api import get_advertisement, list_advertisements
from ...api.forms import form_fields
from ...auth import Principal
from ...config.loader import PaginationSettings, UploadSettings
from ...errors import NotFound
from ...fillable import CREATE, UPDATE
from ...services import advertisement_service
from ...uploads import read_upload
from ..dependencies import (
    RecordId,
    get_pagination,
    get_principal,
    get_session,
    get_uploads,
    query_params,
    read_payload,
)
from ..responses import redirect_with_flash, render_page

router = APIRouter(prefix="/advertisements", tags=["Advertisements"])


@router.get("")
def index(
    request: Request,
    params: Dict[str, Any] = Depends(query_params),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
    pagination: PaginationSettings = Depends(get_pagination),
):
    ads = list_advertisements(session, params, principal, settings=pagination)
    return render_page(
        request, "Advertisements/Index", {"advertisements": ads.model_dump(mode="json", by_alias=True)}
    )


@router.get("/create")
def create(
    request: Request,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    form = form_fields(session, "advertisements", principal, CREATE)
    return render_page(request, "Advertisements/Create", {"form": form.model_dump(mode="json")})


@router.post("")
def store(
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    advertisement_service.create_advertisement(session, principal, payload)
    return redirect_with_flash("/advertisements", "Advertisement created.")


@router.get("/{ad_id}/edit")
def edit(
    request: Request,
    ad_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    ad = get_advertisement(session, ad_id, principal)
    if ad is None:
        raise NotFound("Advertisement not found.")
    form = form_fields(session, "advertisements", principal, UPDATE)
    return render_page(
        request,
        "Advertisements/Edit",
        {"advertisement": ad.model_dump(mode="json"), "form": form.model_dump(mode="json")},
    )


@router.api_route("/{ad_id}", methods=["PUT", "PATCH"])
def update(
    ad_id: RecordId,
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    advertisement_service.update_advertisement(session, principal, ad_id, payload)
    return redirect_with_flash("/advertisements", "Advertisement updated.")


@router.delete("/{ad_id}")
def destroy(
    ad_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    advertisement_service.delete_advertisement(session, principal, ad_id)
    return redirect_with_flash("/advertisements", "Advertisement deleted.")


@router.patch("/{ad_id}/status")
def toggle_status(
    ad_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    row = advertisement_service.toggle_advertisement_status(session, principal, ad_id)
    return redirect_with_flash("/advertisements", f"Advertisement is now {row.status}.")


@router.post("/{ad_id}/image")
def upload_image(
    ad_id: RecordId,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
    uploads: UploadSettings = Depends(get_uploads),
):
    data = read_upload(file.file, uploads)
    advertisement_service.attach_advertisement_image(
        session, principal, ad_id, uploads, file.filename, file.content_type, data
    )
    return redirect_with_flash(f"/advertisements/{ad_id}/edit", "Image uploaded.")
