"""HTTP tests: page payloads, redirects with flash, error shapes."""

from copy import deepcopy

import pytest
from fastapi.testclient import TestClient

from backoffice.config.loader import DEFAULT_CONFIG
from backoffice.database.user_repo import create_user_row
from backoffice.services import post_service
from backoffice.web.app import create_app
from backoffice.web.responses import FLASH_COOKIE, decode_flash, encode_flash

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def client(engine, tmp_path):
    config = deepcopy(DEFAULT_CONFIG)
    config["uploads"]["directory"] = str(tmp_path / "uploads")
    app = create_app(config, engine=engine)
    with TestClient(app) as test_client:
        yield test_client


def as_user(user):
    return {"X-User-Id": str(user.id)}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_missing_or_unknown_principal_is_401(client, session):
    assert client.get("/posts").status_code == 401
    assert client.get("/posts", headers={"X-User-Id": "abc"}).status_code == 401
    assert client.get("/posts", headers={"X-User-Id": "999"}).json() == {"message": "Unauthenticated."}

    inactive = create_user_row(session, name="Gone", email="gone@example.com", status="inactive")
    session.commit()
    assert client.get("/posts", headers=as_user(inactive)).status_code == 401


def test_index_returns_page_payload(client, author_user, make_post):
    make_post(author_user, "Listed", status="published")
    response = client.get("/posts?filter[status]=published&sort=-title", headers=as_user(author_user))
    assert response.status_code == 200
    page = response.json()
    assert page["component"] == "Posts/Index"
    assert page["url"].startswith("/posts?")
    assert page["flash"] is None

    posts = page["props"]["posts"]
    assert [item["title"] for item in posts["data"]] == ["Listed"]
    assert posts["meta"]["from"] == 1
    assert posts["meta"]["to"] == 1
    assert posts["meta"]["per_page_options"] == [10, 25, 50, 100]
    assert posts["query"] == {
        "search": None,
        "filters": {"status": "published"},
        "sort": ["-title"],
        "scope": "own",
    }


def test_store_redirects_with_one_shot_flash(client, author_user):
    response = client.post(
        "/posts", json={"title": "Created over HTTP"}, headers=as_user(author_user), follow_redirects=False
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/posts"
    assert FLASH_COOKIE in response.cookies

    first = client.get("/posts", headers=as_user(author_user)).json()
    assert first["flash"] == {"kind": "success", "message": "Post created."}
    assert [item["title"] for item in first["props"]["posts"]["data"]] == ["Created over HTTP"]

    second = client.get("/posts", headers=as_user(author_user)).json()
    assert second["flash"] is None


def test_form_encoded_store_accepts_repeated_keys(client, author_user, make_category):
    news = make_category("News")
    tips = make_category("Tips")
    response = client.post(
        "/posts",
        data={"title": "Form post", "category_ids": [str(news.id), str(tips.id)]},
        headers=as_user(author_user),
        follow_redirects=False,
    )
    assert response.status_code == 303

    edit = client.get("/posts", headers=as_user(author_user)).json()
    categories = edit["props"]["posts"]["data"][0]["categories"]
    assert sorted(c["name"] for c in categories) == ["News", "Tips"]


def test_validation_errors_are_422_with_field_map(client, author_user):
    response = client.post("/posts", json={"title": "", "status": "live"}, headers=as_user(author_user))
    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "The given data was invalid."
    assert set(body["errors"]) == {"title", "status"}


def test_malformed_json_is_422(client, author_user):
    response = client.post(
        "/posts",
        content=b"{not json",
        headers={**as_user(author_user), "content-type": "application/json"},
    )
    assert response.status_code == 422
    assert response.json()["errors"] == {"payload": ["The request body must be valid JSON."]}


def test_request_validation_errors_use_the_same_shape(client, author_user):
    response = client.get("/posts/abc/edit", headers=as_user(author_user))
    assert response.status_code == 422
    assert list(response.json()["errors"]) == ["post_id"]


def test_out_of_range_query_values_never_fail_the_page(client, author_user, make_post):
    make_post(author_user, "Survivor")
    headers = as_user(author_user)
    huge = "99999999999999999999999"

    by_author = client.get(f"/posts?filter[author]={huge}", headers=headers)
    assert by_author.status_code == 200
    assert by_author.json()["props"]["posts"]["data"] == []

    far_future = client.get("/posts?filter[created]=2025-01-01,9999-12-31", headers=headers)
    assert far_future.status_code == 200

    deep_page = client.get(f"/posts?page={huge}", headers=headers)
    assert deep_page.status_code == 200
    assert deep_page.json()["props"]["posts"]["meta"]["total"] == 1

    edit = client.get(f"/posts/{huge}/edit", headers=headers)
    assert edit.status_code == 422
    assert list(edit.json()["errors"]) == ["post_id"]

    store = client.post("/posts", json={"title": "Overflow", "category_ids": [int(huge)]}, headers=headers)
    assert store.status_code == 422
    assert list(store.json()["errors"]) == ["category_ids.0"]


def test_forbidden_and_not_found(client, author_user, other_author, make_post):
    assert client.post("/categories", json={"name": "Nope"}, headers=as_user(author_user)).status_code == 403
    assert client.get("/users", headers=as_user(author_user)).status_code == 403

    theirs = make_post(other_author, "Not yours")
    response = client.patch(f"/posts/{theirs.id}", json={"title": "Mine now"}, headers=as_user(author_user))
    assert response.status_code == 404
    assert client.delete("/posts/9999", headers=as_user(author_user)).status_code == 404


def test_write_failure_is_generic_500(client, author_user, make_category, monkeypatch):
    news = make_category("News")

    def broken_sync(*args, **kwargs):
        raise RuntimeError("constraint exploded")

    monkeypatch.setattr(post_service, "sync_post_categories", broken_sync)
    response = client.post(
        "/posts", json={"title": "Doomed", "category_ids": [news.id]}, headers=as_user(author_user)
    )
    assert response.status_code == 500
    assert response.json() == {"message": "The operation failed and no changes were saved."}


def test_edit_page_includes_form_schema(client, admin_user, make_post):
    post = make_post(admin_user, "Editable")
    page = client.get(f"/posts/{post.id}/edit", headers=as_user(admin_user)).json()
    assert page["component"] == "Posts/Edit"
    assert page["props"]["post"]["title"] == "Editable"
    form = page["props"]["form"]
    assert "is_featured" in form["fields"]
    assert "slug" not in form["fields"]
    assert [option["value"] for option in form["options"]["status"]] == ["draft", "published", "archived"]


def test_author_create_form_hides_admin_fields(client, author_user):
    form = client.get("/posts/create", headers=as_user(author_user)).json()["props"]["form"]
    assert "user_id" not in form["fields"]
    assert "is_featured" not in form["fields"]
    assert "slug" in form["fields"]


def test_status_toggle_and_restore(client, author_user, make_post):
    post = make_post(author_user, "Toggle me")
    headers = as_user(author_user)
    assert client.patch(f"/posts/{post.id}/status", headers=headers, follow_redirects=False).status_code == 303
    assert client.delete(f"/posts/{post.id}", headers=headers, follow_redirects=False).status_code == 303

    trashed = client.get("/posts?filter[trashed]=only", headers=headers).json()["props"]["posts"]["data"]
    assert [(item["id"], item["status"]) for item in trashed] == [(post.id, "published")]

    assert client.post(f"/posts/{post.id}/restore", headers=headers, follow_redirects=False).status_code == 303
    assert client.get("/posts", headers=headers).json()["props"]["posts"]["meta"]["total"] == 1


def test_upload_endpoint(client, author_user, make_post):
    post = make_post(author_user, "Illustrated")
    headers = as_user(author_user)

    ok = client.post(
        f"/posts/{post.id}/attachments",
        files={"file": ("pic.png", PNG, "image/png")},
        headers=headers,
        follow_redirects=False,
    )
    assert ok.status_code == 303
    assert ok.headers["location"] == f"/posts/{post.id}/edit"

    bad = client.post(
        f"/posts/{post.id}/attachments",
        files={"file": ("doc.txt", b"hello", "text/plain")},
        headers=headers,
    )
    assert bad.status_code == 422
    assert "file" in bad.json()["errors"]

    missing = client.post(f"/posts/{post.id}/attachments", headers=headers)
    assert missing.status_code == 422
    assert "file" in missing.json()["errors"]

    detail = client.get(f"/posts/{post.id}/edit", headers=headers).json()["props"]["post"]
    assert [a["original_name"] for a in detail["attachments"]] == ["pic.png"]


def test_flash_cookie_codec():
    assert decode_flash(encode_flash("Saved.", "info")) == {"kind": "info", "message": "Saved."}
    assert decode_flash("%%%not-base64") is None
    assert decode_flash(None) is None
