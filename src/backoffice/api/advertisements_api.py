"""Ad zones and advertisements API."""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional

from sqlalchemy.orm import Session

from ..auth import Principal
from ..config.loader import PaginationSettings
from ..database.advertisement_repo import (
    count_ads_by_zone,
    find_ad_zone_by_id,
    find_advertisement_for_principal,
    query_ad_zones,
    query_advertisements,
)
from ..database.attachment_repo import list_attachments
from ..utils.time import utc_now
from .common import attachment_out, build_paginated, parse_params
from .models import AdvertisementDetail, AdvertisementSummary, AdZoneSummary, CategoryRef, Paginated, UserRef

if TYPE_CHECKING:
    from ..database.schema import Advertisement, AdZone


def ad_zone_summary(row: "AdZone", advertisements_count: int = 0) -> AdZoneSummary:
    return AdZoneSummary(
        id=row.id,
        name=row.name,
        slug=row.slug,
        description=row.description,
        width=row.width,
        height=row.height,
        status=row.status,
        advertisements_count=advertisements_count,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _ad_fields(row: "Advertisement", now: datetime) -> dict:
    return dict(
        id=row.id,
        title=row.title,
        target_url=row.target_url,
        image_path=row.image_path,
        status=row.status,
        priority=row.priority,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        impressions=row.impressions,
        clicks=row.clicks,
        ctr=row.ctr,
        is_running=row.is_running(now),
        zone=CategoryRef(id=row.zone.id, name=row.zone.name, slug=row.zone.slug) if row.zone else None,
        owner=UserRef(id=row.owner.id, name=row.owner.name) if row.owner else None,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


def advertisement_summary(row: "Advertisement", now: datetime | None = None) -> AdvertisementSummary:
    return AdvertisementSummary(**_ad_fields(row, now or utc_now()))


def list_ad_zones(
    session: Session,
    raw_params: Mapping[str, Any],
    settings: PaginationSettings | None = None,
    now: datetime | None = None,
) -> Paginated:
    params = parse_params(raw_params, settings)
    result, builder = query_ad_zones(session, params, now=now)
    counts = count_ads_by_zone(session, [row.id for row in result.items])
    items = [ad_zone_summary(row, counts.get(row.id, 0)) for row in result.items]
    return build_paginated(result, builder, items, settings)


def get_ad_zone(session: Session, zone_id: int) -> Optional[AdZoneSummary]:
    row = find_ad_zone_by_id(session, zone_id)
    if row is None:
        return None
    return ad_zone_summary(row, count_ads_by_zone(session, [row.id]).get(row.id, 0))


def list_advertisements(
    session: Session,
    raw_params: Mapping[str, Any],
    principal: Principal,
    settings: PaginationSettings | None = None,
    now: datetime | None = None,
) -> Paginated:
    """List advertisements; owner-scoped exactly like posts."""
    now = now or utc_now()
    params = parse_params(raw_params, settings)
    result, builder = query_advertisements(session, params, principal=principal, now=now)
    items = [advertisement_summary(row, now) for row in result.items]
    return build_paginated(result, builder, items, settings)


def get_advertisement(
    session: Session,
    ad_id: int,
    principal: Principal,
    now: datetime | None = None,
) -> Optional[AdvertisementDetail]:
    row = find_advertisement_for_principal(session, ad_id, principal)
    if row is None:
        return None
    return AdvertisementDetail(
        **_ad_fields(row, now or utc_now()),
        attachments=[attachment_out(a) for a in list_attachments(session, "advertisement", row.id)],
    )
