"""Page payloads and redirect-with-flash responses."""

import base64
import binascii
import json
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse

FLASH_COOKIE = "backoffice_flash"


def encode_flash(message: str, kind: str = "success") -> str:
    raw = json.dumps({"kind": kind, "message": message}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_flash(value: str | None) -> Optional[Dict[str, str]]:
    """Decode a flash cookie; unreadable cookies are treated as absent."""
    if not value:
        return None
    try:
        data = json.loads(base64.urlsafe_b64decode(value.encode("ascii")))
    except (binascii.Error, ValueError, UnicodeError):
        return None
    if not isinstance(data, dict) or "message" not in data:
        return None
    return {"kind": str(data.get("kind", "success")), "message": str(data["message"])}


def page_url(request: Request) -> str:
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def render_page(request: Request, component: str, props: Dict[str, Any]) -> JSONResponse:
    """
    Render a page payload for the frontend.

    The pending flash message (if any) is included once and its cookie cleared.
    """
    flash = decode_flash(request.cookies.get(FLASH_COOKIE))
    response = JSONResponse(
        {"component": component, "props": props, "url": page_url(request), "flash": flash}
    )
    if FLASH_COOKIE in request.cookies:
        response.delete_cookie(FLASH_COOKIE)
    return response


def redirect_with_flash(url: str, message: str, kind: str = "success") -> RedirectResponse:
    response = RedirectResponse(url, status_code=303)
    response.set_cookie(FLASH_COOKIE, encode_flash(message, kind), httponly=True, samesite="lax")
    return response
