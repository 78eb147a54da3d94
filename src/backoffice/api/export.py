"""Export API: structured data export for external consumption."""

import csv
import json
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping

from sqlalchemy.orm import Session

from ..auth import Principal
from ..config.loader import PaginationSettings
from ..errors import Forbidden
from ..utils.time import utc_now, utc_now_z
from .advertisements_api import list_ad_zones, list_advertisements
from .categories_api import list_categories
from .posts_api import list_posts
from .users_api import list_users

EXPORT_SCHEMA_VERSION = "1"

# CSV: stable column order, nested refs flattened to ids/names
CSV_COLUMNS: Dict[str, List[str]] = {
    "posts": [
        "id", "title", "slug", "status", "is_featured", "author", "categories",
        "published_at", "created_at", "updated_at", "deleted_at",
    ],
    "categories": ["id", "name", "slug", "status", "posts_count", "created_at", "updated_at"],
    "users": ["id", "name", "email", "role", "status", "created_at", "updated_at"],
    "ad-zones": [
        "id", "name", "slug", "width", "height", "status", "advertisements_count", "created_at", "updated_at",
    ],
    "advertisements": [
        "id", "title", "zone", "owner", "status", "priority", "starts_at", "ends_at",
        "impressions", "clicks", "ctr", "created_at", "updated_at",
    ],
}


def _lister(resource: str) -> Callable[..., Any]:
    listers: Dict[str, Callable[..., Any]] = {
        "posts": lambda s, p, who, st, now: list_posts(s, p, who, settings=st, now=now),
        "categories": lambda s, p, who, st, now: list_categories(s, p, settings=st, now=now),
        "users": lambda s, p, who, st, now: list_users(s, p, settings=st, now=now),
        "ad-zones": lambda s, p, who, st, now: list_ad_zones(s, p, settings=st, now=now),
        "advertisements": lambda s, p, who, st, now: list_advertisements(s, p, who, settings=st, now=now),
    }
    if resource not in listers:
        raise ValueError(f"Unknown resource: {resource}")
    return listers[resource]


def collect_rows(
    session: Session,
    resource: str,
    raw_params: Mapping[str, Any],
    principal: Principal,
    settings: PaginationSettings | None = None,
    now: datetime | None = None,
) -> List[Dict[str, Any]]:
    """Walk every page of a filtered listing and return the rows as JSON-ready dicts."""
    settings = settings or PaginationSettings()
    now = now or utc_now()
    lister = _lister(resource)
    params = dict(raw_params)
    params["per_page"] = max(settings.per_page_options)
    rows: List[Dict[str, Any]] = []
    page = 1
    while True:
        params["page"] = page
        result = lister(session, params, principal, settings, now)
        rows.extend(item.model_dump(mode="json") for item in result.data)
        if page >= result.meta.last_page:
            break
        page += 1
    return rows


def _csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, dict):
        return value.get("name", value.get("id", ""))
    if isinstance(value, list):
        return "|".join(str(_csv_value(item)) for item in value)
    return value


def export_resource(
    session: Session,
    resource: str,
    raw_params: Mapping[str, Any],
    principal: Principal,
    format: str = "json",
    out: Path | None = None,
    settings: PaginationSettings | None = None,
    now: datetime | None = None,
) -> str:
    """
    Export a filtered listing.

    The same search, filter, sort and ownership rules as the list pages apply,
    but every page is included.

    Args:
        session: SQLAlchemy session
        resource: posts, categories, users, ad-zones or advertisements
        raw_params: Request-style list parameters (page and per_page are ignored)
        principal: Acting user
        format: Export format ("json" or "csv")
        out: Output file path (if None, returns as string)

    Returns:
        Exported data as string (if out is None) or a confirmation after writing the file

    Raises:
        ValueError: Unknown resource or format
        Forbidden: Exporting users without an elevated principal
    """
    if format not in ("json", "csv"):
        raise ValueError(f"Unsupported format: {format}")
    if resource == "users" and not principal.is_elevated:
        raise Forbidden("Exporting users requires an admin.")
    rows = collect_rows(session, resource, raw_params, principal, settings=settings, now=now)

    if format == "json":
        export_data = {
            "export_schema_version": EXPORT_SCHEMA_VERSION,
            "exported_at_utc": utc_now_z(),
            "resource": resource,
            "data": rows,
        }
        output = json.dumps(export_data, indent=2, sort_keys=True)
        if out:
            out.write_text(output, encoding="utf-8")
            return f"Exported to {out}"
        return output

    columns = CSV_COLUMNS[resource]
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_csv_value(row.get(col)) for col in columns])
    output = buffer.getvalue()
    if out:
        out.write_text(output, encoding="utf-8", newline="")
        return f"Exported to {out}"
    return output
