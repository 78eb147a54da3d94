"""Repository functions for ad zones and advertisements."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, func, not_, or_
from sqlalchemy.orm import Query, Session

from ..auth import Principal
from ..query import FilterDefinition, FilteredQueryBuilder, ListParams, PageResult, QueryDefinition
from ..query.builder import FALSE_VALUES, TRUE_VALUES
from ..utils.logging import get_logger
from ..utils.time import to_utc_z, utc_now_z
from .common import apply_changes, run_list_query
from .schema import Advertisement, AdZone

logger = get_logger(__name__)


def _running_scope(query: Query, value: str, now: datetime) -> Optional[Query]:
    """Ads active right now: status active and inside their start/end window."""
    now_iso = to_utc_z(now)
    running = and_(
        Advertisement.status == "active",
        or_(Advertisement.starts_at.is_(None), Advertisement.starts_at <= now_iso),
        or_(Advertisement.ends_at.is_(None), Advertisement.ends_at > now_iso),
    )
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return query.filter(running)
    if lowered in FALSE_VALUES:
        return query.filter(not_(running))
    return None


AD_ZONE_QUERY = QueryDefinition(
    model=AdZone,
    primary_key=AdZone.id,
    searchable=(AdZone.name, AdZone.slug, AdZone.description),
    filters={
        "status": FilterDefinition(kind="choice", column=AdZone.status, choices=("active", "inactive")),
        "created": FilterDefinition(kind="date", column=AdZone.created_at),
    },
    sortable={
        "name": AdZone.name,
        "slug": AdZone.slug,
        "status": AdZone.status,
        "created_at": AdZone.created_at,
    },
)

ADVERTISEMENT_QUERY = QueryDefinition(
    model=Advertisement,
    primary_key=Advertisement.id,
    searchable=(Advertisement.title, Advertisement.target_url),
    filters={
        "status": FilterDefinition(kind="choice", column=Advertisement.status, choices=("active", "inactive")),
        "zone": FilterDefinition(kind="exact", column=Advertisement.ad_zone_id),
        "owner": FilterDefinition(kind="exact", column=Advertisement.user_id),
        "running": FilterDefinition(kind="custom", apply=_running_scope),
        "created": FilterDefinition(kind="date", column=Advertisement.created_at),
        "starts": FilterDefinition(kind="date", column=Advertisement.starts_at),
        "trashed": FilterDefinition(kind="trashed"),
    },
    sortable={
        "title": Advertisement.title,
        "status": Advertisement.status,
        "priority": Advertisement.priority,
        "impressions": Advertisement.impressions,
        "clicks": Advertisement.clicks,
        "starts_at": Advertisement.starts_at,
        "ends_at": Advertisement.ends_at,
        "created_at": Advertisement.created_at,
    },
    owner_column=Advertisement.user_id,
    deleted_column=Advertisement.deleted_at,
)


# --- ad zones -----------------------------------------------------------------


def query_ad_zones(
    session: Session,
    params: ListParams,
    now: datetime | None = None,
) -> tuple[PageResult, FilteredQueryBuilder]:
    return run_list_query(session, AD_ZONE_QUERY, params, now=now)


def find_ad_zone_by_id(session: Session, zone_id: int) -> Optional[AdZone]:
    return session.get(AdZone, zone_id)


def ad_zone_slug_exists(session: Session, slug: str) -> bool:
    return session.query(AdZone.id).filter(AdZone.slug == slug).first() is not None


def list_ad_zone_options(session: Session) -> List[AdZone]:
    return session.query(AdZone).filter(AdZone.status == "active").order_by(AdZone.name.asc(), AdZone.id.asc()).all()


def count_ads_by_zone(session: Session, zone_ids: List[int]) -> Dict[int, int]:
    """Live (not trashed) advertisements per zone."""
    if not zone_ids:
        return {}
    rows = (
        session.query(Advertisement.ad_zone_id, func.count(Advertisement.id))
        .filter(Advertisement.ad_zone_id.in_(zone_ids), Advertisement.deleted_at.is_(None))
        .group_by(Advertisement.ad_zone_id)
        .all()
    )
    counts = {zone_id: 0 for zone_id in zone_ids}
    counts.update({zone_id: count for zone_id, count in rows})
    return counts


def zone_has_advertisements(session: Session, zone_id: int) -> bool:
    """Any advertisement, trashed ones included, still referencing the zone."""
    return session.query(Advertisement.id).filter(Advertisement.ad_zone_id == zone_id).first() is not None


def create_ad_zone_row(session: Session, **fields: Any) -> AdZone:
    now_iso = utc_now_z()
    row = AdZone(created_at=now_iso, updated_at=now_iso, **fields)
    session.add(row)
    session.flush()
    logger.debug(f"Created ad zone {row.id} ({row.slug})")
    return row


def update_ad_zone_row(session: Session, row: AdZone, changes: Dict[str, Any]) -> AdZone:
    apply_changes(row, changes)
    session.add(row)
    return row


def delete_ad_zone_row(session: Session, row: AdZone) -> None:
    session.delete(row)


# --- advertisements -----------------------------------------------------------


def query_advertisements(
    session: Session,
    params: ListParams,
    principal: Principal | None = None,
    now: datetime | None = None,
) -> tuple[PageResult, FilteredQueryBuilder]:
    return run_list_query(session, ADVERTISEMENT_QUERY, params, principal=principal, now=now)


def find_advertisement_by_id(session: Session, ad_id: int, with_trashed: bool = False) -> Optional[Advertisement]:
    q = session.query(Advertisement).filter(Advertisement.id == ad_id)
    if not with_trashed:
        q = q.filter(Advertisement.deleted_at.is_(None))
    return q.first()


def find_advertisement_for_principal(
    session: Session,
    ad_id: int,
    principal: Principal,
) -> Optional[Advertisement]:
    row = find_advertisement_by_id(session, ad_id)
    if row is None:
        return None
    if not principal.is_elevated and row.user_id != principal.id:
        return None
    return row


def create_advertisement_row(session: Session, **fields: Any) -> Advertisement:
    now_iso = utc_now_z()
    row = Advertisement(created_at=now_iso, updated_at=now_iso, **fields)
    session.add(row)
    session.flush()
    logger.debug(f"Created advertisement {row.id} in zone {row.ad_zone_id}")
    return row


def update_advertisement_row(session: Session, row: Advertisement, changes: Dict[str, Any]) -> Advertisement:
    apply_changes(row, changes)
    session.add(row)
    return row


def soft_delete_advertisement_row(session: Session, row: Advertisement) -> Advertisement:
    now_iso = utc_now_z()
    row.deleted_at = now_iso
    row.updated_at = now_iso
    session.add(row)
    return row
