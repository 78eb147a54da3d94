"""Ad zone pages; zones are managed by admins only."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...api.advertisements_api import get_ad_zone, list_ad_zones
from ...api.forms import form_fields
from ...auth import Principal
from ...config.loader import PaginationSettings
from ...errors import NotFound
from ...fillable import CREATE, UPDATE
from ...services import advertisement_service
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

router = APIRouter(prefix="/ad-zones", tags=["Ad zones"])


@router.get("")
def index(
    request: Request,
    params: Dict[str, Any] = Depends(query_params),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
    pagination: PaginationSettings = Depends(get_pagination),
):
    zones = list_ad_zones(session, params, settings=pagination)
    return render_page(request, "AdZones/Index", {"zones": zones.model_dump(mode="json", by_alias=True)})


@router.get("/create")
def create(
    request: Request,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    require_elevated(principal, "open ad zone form")
    form = form_fields(session, "ad-zones", principal, CREATE)
    return render_page(request, "AdZones/Create", {"form": form.model_dump(mode="json")})


@router.post("")
def store(
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    advertisement_service.create_ad_zone(session, principal, payload)
    return redirect_with_flash("/ad-zones", "Ad zone created.")


@router.get("/{zone_id}/edit")
def edit(
    request: Request,
    zone_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    require_elevated(principal, "open ad zone form")
    zone = get_ad_zone(session, zone_id)
    if zone is None:
        raise NotFound("Ad zone not found.")
    form = form_fields(session, "ad-zones", principal, UPDATE)
    return render_page(
        request, "AdZones/Edit", {"zone": zone.model_dump(mode="json"), "form": form.model_dump(mode="json")}
    )


@router.api_route("/{zone_id}", methods=["PUT", "PATCH"])
def update(
    zone_id: RecordId,
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    advertisement_service.update_ad_zone(session, principal, zone_id, payload)
    return redirect_with_flash("/ad-zones", "Ad zone updated.")


@router.delete("/{zone_id}")
def destroy(
    zone_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    advertisement_service.delete_ad_zone(session, principal, zone_id)
    return redirect_with_flash("/ad-zones", "Ad zone deleted.")


@router.patch("/{zone_id}/status")
def toggle_status(
    zone_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    row = advertisement_service.toggle_ad_zone_status(session, principal, zone_id)
    return redirect_with_flash("/ad-zones", f"Ad zone is now {row.status}.")
