"""Write operations for ad zones and advertisements."""

from typing import Any, Mapping

from sqlalchemy.orm import Session

from ..auth import Principal
from ..config.loader import UploadSettings
from ..database.advertisement_repo import (
    ad_zone_slug_exists,
    create_ad_zone_row,
    create_advertisement_row,
    delete_ad_zone_row,
    find_ad_zone_by_id,
    find_advertisement_for_principal,
    soft_delete_advertisement_row,
    update_ad_zone_row,
    update_advertisement_row,
    zone_has_advertisements,
)
from ..database.attachment_repo import create_attachment_row
from ..database.schema import Advertisement, AdZone, Attachment
from ..database.user_repo import find_user_by_id
from ..dto import AdvertisementCreate, AdvertisementUpdate, AdZoneCreate, AdZoneUpdate, validate_payload
from ..errors import NotFound, ValidationFailed
from ..fillable import AD_ZONE_FILLABLE, ADVERTISEMENT_FILLABLE, CREATE, UPDATE
from ..uploads import discard_upload, store_upload
from ..utils.logging import get_logger
from .base import atomic_write, require_elevated, to_storage, writable_input

logger = get_logger(__name__)

DATETIME_FIELDS = ("starts_at", "ends_at")


# --- ad zones -----------------------------------------------------------------


def _load_zone(session: Session, zone_id: int) -> AdZone:
    row = find_ad_zone_by_id(session, zone_id)
    if row is None:
        raise NotFound("Ad zone not found.")
    return row


def create_ad_zone(session: Session, principal: Principal, payload: Mapping[str, Any]) -> AdZone:
    require_elevated(principal, "create ad zone")
    data = validate_payload(AdZoneCreate, writable_input(AD_ZONE_FILLABLE, payload, principal, CREATE))
    fields = AD_ZONE_FILLABLE.filter(data.model_dump(), principal, CREATE)
    with atomic_write(session, "Create ad zone"):
        if ad_zone_slug_exists(session, fields["slug"]):
            raise ValidationFailed.single("slug", "The slug has already been taken.")
        row = create_ad_zone_row(session, **fields)
    logger.info(f"Ad zone {row.id} created by user {principal.id}")
    return row


def update_ad_zone(session: Session, principal: Principal, zone_id: int, payload: Mapping[str, Any]) -> AdZone:
    require_elevated(principal, "update ad zone")
    row = _load_zone(session, zone_id)
    data = validate_payload(AdZoneUpdate, writable_input(AD_ZONE_FILLABLE, payload, principal, UPDATE))
    changes = AD_ZONE_FILLABLE.filter(data.model_dump(exclude_unset=True), principal, UPDATE)
    with atomic_write(session, f"Update ad zone {zone_id}"):
        update_ad_zone_row(session, row, changes)
    return row


def delete_ad_zone(session: Session, principal: Principal, zone_id: int) -> None:
    """Hard delete, refused while any advertisement still references the zone."""
    require_elevated(principal, "delete ad zone")
    row = _load_zone(session, zone_id)
    with atomic_write(session, f"Delete ad zone {zone_id}"):
        if zone_has_advertisements(session, zone_id):
            raise ValidationFailed.single("zone", "The zone still has advertisements.")
        delete_ad_zone_row(session, row)
    logger.info(f"Ad zone {zone_id} deleted by user {principal.id}")


def toggle_ad_zone_status(session: Session, principal: Principal, zone_id: int) -> AdZone:
    require_elevated(principal, "toggle ad zone")
    row = _load_zone(session, zone_id)
    new_status = "inactive" if row.status == "active" else "active"
    with atomic_write(session, f"Toggle ad zone {zone_id}"):
        update_ad_zone_row(session, row, {"status": new_status})
    return row


# --- advertisements -----------------------------------------------------------


def _load_ad(session: Session, principal: Principal, ad_id: int) -> Advertisement:
    row = find_advertisement_for_principal(session, ad_id, principal)
    if row is None:
        raise NotFound("Advertisement not found.")
    return row


def _check_zone(session: Session, zone_id: int) -> None:
    zone = find_ad_zone_by_id(session, zone_id)
    if zone is None:
        raise ValidationFailed.single("ad_zone_id", "The selected zone is invalid.")
    if zone.status != "active":
        raise ValidationFailed.single("ad_zone_id", "The selected zone is inactive.")


def _check_owner(session: Session, user_id: int) -> None:
    if find_user_by_id(session, user_id) is None:
        raise ValidationFailed.single("user_id", "The selected owner is invalid.")


def create_advertisement(session: Session, principal: Principal, payload: Mapping[str, Any]) -> Advertisement:
    """
    Create an advertisement in an active zone.

    New advertisements always start inactive; activation is an update.
    """
    writable = writable_input(ADVERTISEMENT_FILLABLE, payload, principal, CREATE)
    data = validate_payload(AdvertisementCreate, writable)
    fields = ADVERTISEMENT_FILLABLE.filter(data.model_dump(), principal, CREATE)
    fields = to_storage(fields, DATETIME_FIELDS)
    owner_id = fields.pop("user_id", None) or principal.id

    with atomic_write(session, "Create advertisement"):
        _check_zone(session, fields["ad_zone_id"])
        if owner_id != principal.id:
            _check_owner(session, owner_id)
        row = create_advertisement_row(session, user_id=owner_id, status="inactive", **fields)

    logger.info(f"Advertisement {row.id} created by user {principal.id}")
    return row


def update_advertisement(
    session: Session,
    principal: Principal,
    ad_id: int,
    payload: Mapping[str, Any],
) -> Advertisement:
    row = _load_ad(session, principal, ad_id)
    writable = writable_input(ADVERTISEMENT_FILLABLE, payload, principal, UPDATE)
    data = validate_payload(AdvertisementUpdate, writable)
    changes = ADVERTISEMENT_FILLABLE.filter(data.model_dump(exclude_unset=True), principal, UPDATE)
    changes = to_storage(changes, DATETIME_FIELDS)

    starts_at = changes.get("starts_at", row.starts_at)
    ends_at = changes.get("ends_at", row.ends_at)
    if starts_at and ends_at and ends_at <= starts_at:
        raise ValidationFailed.single("ends_at", "The end date must be after the start date.")

    with atomic_write(session, f"Update advertisement {ad_id}"):
        if "ad_zone_id" in changes and changes["ad_zone_id"] != row.ad_zone_id:
            _check_zone(session, changes["ad_zone_id"])
        if "user_id" in changes:
            _check_owner(session, changes["user_id"])
        update_advertisement_row(session, row, changes)
    return row


def delete_advertisement(session: Session, principal: Principal, ad_id: int) -> Advertisement:
    row = _load_ad(session, principal, ad_id)
    with atomic_write(session, f"Delete advertisement {ad_id}"):
        soft_delete_advertisement_row(session, row)
    logger.info(f"Advertisement {ad_id} trashed by user {principal.id}")
    return row


def toggle_advertisement_status(session: Session, principal: Principal, ad_id: int) -> Advertisement:
    """Activation is reviewed: only elevated principals flip an ad's status."""
    require_elevated(principal, "toggle advertisement")
    row = _load_ad(session, principal, ad_id)
    new_status = "inactive" if row.status == "active" else "active"
    with atomic_write(session, f"Toggle advertisement {ad_id}"):
        update_advertisement_row(session, row, {"status": new_status})
    return row


def attach_advertisement_image(
    session: Session,
    principal: Principal,
    ad_id: int,
    settings: UploadSettings,
    filename: str | None,
    content_type: str | None,
    data: bytes,
) -> Attachment:
    """Store the creative, record it as an attachment and make it the ad's image."""
    row = _load_ad(session, principal, ad_id)
    stored = store_upload(settings, filename, content_type, data, folder="advertisements")
    try:
        with atomic_write(session, f"Attach image to advertisement {ad_id}"):
            attachment = create_attachment_row(
                session,
                attachable_type="advertisement",
                attachable_id=row.id,
                path=stored.path,
                original_name=stored.original_name,
                mime_type=stored.mime_type,
                size_bytes=stored.size_bytes,
            )
            update_advertisement_row(session, row, {"image_path": stored.path})
    except Exception:
        discard_upload(settings, stored)
        raise
    return attachment
