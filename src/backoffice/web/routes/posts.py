"""Post pages and write endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from ...api.forms import form_fields
from ...api.posts_api import get_post, list_posts
from ...auth import Principal
from ...config.loader import PaginationSettings, UploadSettings
from ...errors import NotFound
from ...fillable import CREATE, UPDATE
from ...services import post_service
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

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("")
def index(
    request: Request,
    params: Dict[str, Any] = Depends(query_params),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
    pagination: PaginationSettings = Depends(get_pagination),
):
    posts = list_posts(session, params, principal, settings=pagination)
    return render_page(request, "Posts/Index", {"posts": posts.model_dump(mode="json", by_alias=True)})


@router.get("/create")
def create(
    request: Request,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    form = form_fields(session, "posts", principal, CREATE)
    return render_page(request, "Posts/Create", {"form": form.model_dump(mode="json")})


@router.post("")
def store(
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    post_service.create_post(session, principal, payload)
    return redirect_with_flash("/posts", "Post created.")


@router.get("/{post_id}/edit")
def edit(
    request: Request,
    post_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    post = get_post(session, post_id, principal)
    if post is None:
        raise NotFound("Post not found.")
    form = form_fields(session, "posts", principal, UPDATE)
    return render_page(
        request,
        "Posts/Edit",
        {"post": post.model_dump(mode="json"), "form": form.model_dump(mode="json")},
    )


@router.api_route("/{post_id}", methods=["PUT", "PATCH"])
def update(
    post_id: RecordId,
    payload: Any = Depends(read_payload),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    post_service.update_post(session, principal, post_id, payload)
    return redirect_with_flash("/posts", "Post updated.")


@router.delete("/{post_id}")
def destroy(
    post_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    post_service.delete_post(session, principal, post_id)
    return redirect_with_flash("/posts", "Post moved to trash.")


@router.patch("/{post_id}/status")
def toggle_status(
    post_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    row = post_service.toggle_post_status(session, principal, post_id)
    return redirect_with_flash("/posts", f"Post is now {row.status}.")


@router.post("/{post_id}/restore")
def restore(
    post_id: RecordId,
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
):
    post_service.restore_post(session, principal, post_id)
    return redirect_with_flash("/posts", "Post restored.")


@router.post("/{post_id}/attachments")
def upload_attachment(
    post_id: RecordId,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
    uploads: UploadSettings = Depends(get_uploads),
):
    data = read_upload(file.file, uploads)
    post_service.attach_post_file(
        session, principal, post_id, uploads, file.filename, file.content_type, data
    )
    return redirect_with_flash(f"/posts/{post_id}/edit", "File uploaded.")
