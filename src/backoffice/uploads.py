"""Validated file storage for upload fields."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import BinaryIO

from .config.loader import UploadSettings
from .errors import ValidationFailed
from .utils.id_generator import new_upload_name
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoredFile:
    path: str  # relative to the upload directory
    original_name: str | None
    mime_type: str
    size_bytes: int


# Stored names take their extension from the checked MIME type, never from the client.
IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


def _human_size(size_bytes: int) -> str:
    if size_bytes % (1024 * 1024) == 0:
        return f"{size_bytes // (1024 * 1024)} MB"
    return f"{size_bytes // 1024} KB"


def check_upload(settings: UploadSettings, content_type: str | None, size_bytes: int) -> str:
    """
    Check an upload against the MIME allow-list and size limit.

    Returns:
        The normalized MIME type

    Raises:
        ValidationFailed: On field "file"
    """
    mime_type = (content_type or "").split(";")[0].strip().lower()
    errors = []
    if size_bytes <= 0:
        errors.append("The file is empty.")
    if mime_type not in settings.allowed_mime_types:
        allowed = ", ".join(settings.allowed_mime_types)
        errors.append(f"The file must be one of the following types: {allowed}.")
    if size_bytes > settings.max_size_bytes:
        errors.append(f"The file may not be larger than {_human_size(settings.max_size_bytes)}.")
    if errors:
        raise ValidationFailed({"file": errors})
    return mime_type


def read_upload(stream: BinaryIO, settings: UploadSettings) -> bytes:
    """Read at most one byte past the size limit, enough for check_upload to reject it."""
    return stream.read(settings.max_size_bytes + 1)


def store_upload(
    settings: UploadSettings,
    filename: str | None,
    content_type: str | None,
    data: bytes,
    folder: str = "",
) -> StoredFile:
    """Validate and write an upload under the configured directory with a generated name."""
    mime_type = check_upload(settings, content_type, len(data))

    extension = IMAGE_EXTENSIONS.get(mime_type) or (mimetypes.guess_extension(mime_type) or "").lstrip(".")

    relative = Path(folder) / new_upload_name(extension) if folder else Path(new_upload_name(extension))
    target = settings.directory / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    logger.info(f"Stored upload {relative} ({mime_type}, {len(data)} bytes)")

    return StoredFile(
        path=relative.as_posix(),
        original_name=PurePath(filename).name if filename else None,
        mime_type=mime_type,
        size_bytes=len(data),
    )


def discard_upload(settings: UploadSettings, stored: StoredFile) -> None:
    """Remove a stored file whose database write was rolled back."""
    target = settings.directory / stored.path
    try:
        target.unlink()
    except FileNotFoundError:
        pass
