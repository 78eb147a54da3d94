"""Tests for export API contracts."""

import csv
import io
import json
from pathlib import Path

import pytest
from jsonschema import Draft202012Validator

from backoffice.api.export import CSV_COLUMNS, export_resource
from backoffice.api.posts_api import list_posts
from backoffice.config.loader import PaginationSettings
from backoffice.errors import Forbidden

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "schemas" / "export.v1.json"


def _seed_posts(make_post, author_user, category, count):
    for i in range(count):
        make_post(
            author_user,
            f"Post {i:02d}",
            status="published" if i % 2 == 0 else "draft",
            categories=[category],
            created_at=f"2025-06-{(i % 28) + 1:02d}T08:00:00.000000Z",
        )


def test_json_export_covers_every_page_and_matches_schema(session, author, author_user, make_post, make_category):
    news = make_category("News")
    _seed_posts(make_post, author_user, news, 15)
    settings = PaginationSettings(per_page_options=(3, 5), default_per_page=3)

    output = export_resource(
        session, "posts", {"filter[status]": "published"}, author, format="json", settings=settings
    )
    export = json.loads(output)

    assert export["export_schema_version"] == "1"
    assert export["resource"] == "posts"
    assert export["exported_at_utc"].endswith("Z")
    assert len(export["data"]) == 8
    assert len({row["id"] for row in export["data"]}) == 8
    assert all(row["status"] == "published" for row in export["data"])

    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    errors = list(Draft202012Validator(schema).iter_errors(export))
    assert errors == []


def test_export_matches_list_api_order(session, author, author_user, make_post, make_category):
    news = make_category("News")
    _seed_posts(make_post, author_user, news, 6)
    listed = list_posts(session, {"sort": "title", "per_page": "10"}, author)
    exported = json.loads(export_resource(session, "posts", {"sort": "title"}, author))
    assert [row["id"] for row in exported["data"]] == [item.id for item in listed.data]


def test_csv_export_has_stable_columns(session, author, author_user, make_post, make_category):
    news = make_category("News")
    _seed_posts(make_post, author_user, news, 3)

    output = export_resource(session, "posts", {}, author, format="csv")
    rows = list(csv.reader(io.StringIO(output)))

    assert rows[0] == CSV_COLUMNS["posts"]
    assert len(rows) == 4
    author_col = rows[0].index("author")
    categories_col = rows[0].index("categories")
    assert {row[author_col] for row in rows[1:]} == {"Otto Author"}
    assert {row[categories_col] for row in rows[1:]} == {"News"}


def test_export_writes_file(session, author, tmp_path):
    out = tmp_path / "posts.json"
    message = export_resource(session, "posts", {}, author, out=out)
    assert message == f"Exported to {out}"
    assert json.loads(out.read_text(encoding="utf-8"))["data"] == []


def test_unknown_resource_and_format_raise(session, author):
    with pytest.raises(ValueError, match="Unknown resource"):
        export_resource(session, "comments", {}, author)
    with pytest.raises(ValueError, match="Unsupported format"):
        export_resource(session, "posts", {}, author, format="xml")


def test_users_export_requires_an_elevated_principal(session, admin, author):
    with pytest.raises(Forbidden):
        export_resource(session, "users", {}, author)

    exported = json.loads(export_resource(session, "users", {}, admin))
    assert {row["email"] for row in exported["data"]} >= {"ada@example.com", "otto@example.com"}
