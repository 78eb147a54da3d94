"""Tests for upload validation and attachment writes."""

import io
from pathlib import Path

import pytest

from backoffice.api.posts_api import get_post
from backoffice.config.loader import UploadSettings
from backoffice.database.schema import Attachment
from backoffice.errors import ValidationFailed, WriteFailed
from backoffice.services import post_service
from backoffice.services.advertisement_service import (
    attach_advertisement_image,
    create_ad_zone,
    create_advertisement,
)
from backoffice.services.post_service import attach_post_file, create_post
from backoffice.uploads import check_upload, read_upload, store_upload

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def upload_settings(tmp_path):
    return UploadSettings(
        directory=tmp_path / "uploads",
        max_size_bytes=1024,
        allowed_mime_types=("image/png", "image/jpeg"),
    )


def test_check_upload_collects_every_problem(upload_settings):
    with pytest.raises(ValidationFailed) as excinfo:
        check_upload(upload_settings, "application/pdf", 4096)
    messages = excinfo.value.errors["file"]
    assert len(messages) == 2
    assert "image/png, image/jpeg" in messages[0]
    assert "1 KB" in messages[1]


def test_check_upload_normalizes_content_type(upload_settings):
    assert check_upload(upload_settings, "IMAGE/PNG; charset=binary", 10) == "image/png"


def test_empty_file_is_rejected(upload_settings):
    with pytest.raises(ValidationFailed) as excinfo:
        check_upload(upload_settings, "image/png", 0)
    assert excinfo.value.errors == {"file": ["The file is empty."]}


def test_store_upload_writes_generated_name(upload_settings):
    stored = store_upload(upload_settings, "../../evil.png", "image/png", PNG, folder="posts")
    assert stored.path.startswith("posts/")
    assert stored.path.endswith(".png")
    assert ".." not in stored.path
    assert stored.original_name == "evil.png"
    assert (upload_settings.directory / stored.path).read_bytes() == PNG


def test_stored_extension_follows_the_checked_type(upload_settings):
    stored = store_upload(upload_settings, "shell.html", "image/png", PNG, folder="posts")
    assert stored.path.endswith(".png")
    assert stored.original_name == "shell.html"

    jpeg = store_upload(upload_settings, None, "image/jpeg", PNG)
    assert jpeg.path.endswith(".jpg")


def test_read_upload_stops_one_byte_past_the_limit(upload_settings):
    data = read_upload(io.BytesIO(b"x" * 5000), upload_settings)
    assert len(data) == upload_settings.max_size_bytes + 1
    with pytest.raises(ValidationFailed) as excinfo:
        check_upload(upload_settings, "image/png", len(data))
    assert excinfo.value.errors == {"file": ["The file may not be larger than 1 KB."]}

    assert read_upload(io.BytesIO(PNG), upload_settings) == PNG


def test_attach_post_file_records_attachment(session, author, upload_settings):
    post = create_post(session, author, {"title": "With picture"})
    attachment = attach_post_file(session, author, post.id, upload_settings, "cat.png", "image/png", PNG)
    assert attachment.attachable_type == "post"
    detail = get_post(session, post.id, author)
    assert [a.path for a in detail.attachments] == [attachment.path]


def test_failed_attachment_insert_removes_the_file(session, author, upload_settings, monkeypatch):
    post = create_post(session, author, {"title": "Unlucky"})

    def broken_insert(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(post_service, "create_attachment_row", broken_insert)
    with pytest.raises(WriteFailed):
        attach_post_file(session, author, post.id, upload_settings, "cat.png", "image/png", PNG)

    assert session.query(Attachment).count() == 0
    stored_files = [p for p in Path(upload_settings.directory).rglob("*") if p.is_file()]
    assert stored_files == []


def test_advertisement_image_sets_image_path(session, admin, author, upload_settings):
    zone = create_ad_zone(session, admin, {"name": "Side", "slug": "side"})
    ad = create_advertisement(session, author, {"title": "Picture ad", "ad_zone_id": zone.id})
    attachment = attach_advertisement_image(session, author, ad.id, upload_settings, "ad.jpg", "image/jpeg", PNG)
    assert ad.image_path == attachment.path
    assert attachment.path.startswith("advertisements/")
