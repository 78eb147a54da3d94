import uuid
from datetime import UTC, datetime


def new_upload_name(extension: str = "") -> str:
    suffix = f".{extension.lstrip('.').lower()}" if extension else ""
    return f"{datetime.now(UTC).strftime('%Y%m%d')}-{uuid.uuid4().hex[:16]}{suffix}"
