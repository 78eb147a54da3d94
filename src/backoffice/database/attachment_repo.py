"""Repository functions for polymorphic attachments."""

from typing import List

from sqlalchemy.orm import Session

from ..utils.time import utc_now_z
from .schema import Attachment

ATTACHABLE_TYPES = ("post", "advertisement")


def create_attachment_row(
    session: Session,
    *,
    attachable_type: str,
    attachable_id: int,
    path: str,
    original_name: str | None,
    mime_type: str,
    size_bytes: int,
) -> Attachment:
    if attachable_type not in ATTACHABLE_TYPES:
        raise ValueError(f"Unknown attachable type: {attachable_type}")
    row = Attachment(
        attachable_type=attachable_type,
        attachable_id=attachable_id,
        path=path,
        original_name=original_name,
        mime_type=mime_type,
        size_bytes=size_bytes,
        created_at=utc_now_z(),
    )
    session.add(row)
    session.flush()
    return row


def list_attachments(session: Session, attachable_type: str, attachable_id: int) -> List[Attachment]:
    return (
        session.query(Attachment)
        .filter(Attachment.attachable_type == attachable_type, Attachment.attachable_id == attachable_id)
        .order_by(Attachment.id.asc())
        .all()
    )
