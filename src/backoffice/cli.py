"""CLI entrypoint for the back-office."""

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from backoffice.auth import ROLE_ADMIN, ROLE_AUTHOR, ROLE_EDITOR, Principal
from backoffice.config.loader import (
    DEFAULT_CONFIG_PATH,
    EXAMPLE_CONFIG,
    get_pagination_settings,
    load_config,
)
from backoffice.database.sqlite_client import get_engine, session_context, transaction
from backoffice.database.user_repo import count_users, create_user_row, find_active_principal
from backoffice.errors import Forbidden
from backoffice.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

RESOURCES = ["posts", "categories", "users", "ad-zones", "advertisements"]


def _config(args: argparse.Namespace) -> Dict[str, Any]:
    config = load_config(args.config)
    configure_logging(config["logging"]["level"])
    return config


def _parse_filters(pairs: Optional[List[str]]) -> Dict[str, str]:
    filters: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"Invalid --filter '{pair}': expected key=value")
        filters[key.strip()] = value.strip()
    return filters


def _raw_params(args: argparse.Namespace) -> Dict[str, Any]:
    raw: Dict[str, Any] = {"filters": _parse_filters(args.filter)}
    if args.search:
        raw["search"] = args.search
    if args.sort:
        raw["sort"] = args.sort
    if getattr(args, "page", None):
        raw["page"] = args.page
    if getattr(args, "per_page", None):
        raw["per_page"] = args.per_page
    if args.all:
        raw["scope"] = "all"
    return raw


def _principal(session, user_id: int) -> Principal:
    principal = find_active_principal(session, user_id)
    if principal is None:
        raise SystemExit(f"User {user_id} does not exist or is inactive")
    return principal


def cmd_init(args: argparse.Namespace) -> None:
    """Write the example config and create the database."""
    config_path = args.config or DEFAULT_CONFIG_PATH
    if config_path.exists() and not args.force:
        print(f"Skipped {config_path} (already exists, use --force to overwrite)")
    else:
        config_path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
        print(f"Created {config_path}")

    config = load_config(config_path)
    sqlite_path = config["storage"]["sqlite_path"]
    get_engine(sqlite_path).dispose()
    print(f"Database ready at {sqlite_path}")
    print("  Next steps:")
    print("  1. Run: backoffice seed")
    print("  2. Run: backoffice serve")


def cmd_seed(args: argparse.Namespace) -> None:
    """Load a small demo data set into an empty database."""
    from backoffice.services.advertisement_service import create_ad_zone, create_advertisement
    from backoffice.services.category_service import create_category
    from backoffice.services.post_service import create_post

    config = _config(args)
    with session_context(config["storage"]["sqlite_path"]) as session:
        if count_users(session) > 0:
            print("Database already has users; skipping seed")
            return
        with transaction(session):
            admin = create_user_row(session, name="Admin", email="admin@example.com", role=ROLE_ADMIN)
            editor = create_user_row(session, name="Editor", email="editor@example.com", role=ROLE_EDITOR)
            author = create_user_row(session, name="Author", email="author@example.com", role=ROLE_AUTHOR)
        admin_principal = Principal(id=admin.id, role=admin.role, name=admin.name)
        author_principal = Principal(id=author.id, role=author.role, name=author.name)

        news = create_category(session, admin_principal, {"name": "News", "slug": "news"})
        guides = create_category(session, admin_principal, {"name": "Guides", "slug": "guides"})
        create_category(session, admin_principal, {"name": "Archive", "slug": "archive", "status": "inactive"})

        create_post(
            session,
            admin_principal,
            {"title": "Welcome", "body": "First post.", "status": "published", "category_ids": [news.id]},
        )
        create_post(
            session,
            author_principal,
            {"title": "Getting started", "body": "A short guide.", "category_ids": [guides.id]},
        )
        create_post(
            session,
            Principal(id=editor.id, role=editor.role, name=editor.name),
            {"title": "Release notes", "body": "What changed.", "category_ids": [news.id, guides.id]},
        )

        zone = create_ad_zone(
            session, admin_principal, {"name": "Sidebar", "slug": "sidebar", "width": 300, "height": 250}
        )
        create_advertisement(
            session,
            author_principal,
            {"title": "Spring sale", "target_url": "https://example.com/sale", "ad_zone_id": zone.id},
        )
    print(f"Seeded 3 users (admin id={admin.id}), 3 categories, 3 posts, 1 ad zone, 1 advertisement")


def cmd_list(args: argparse.Namespace) -> None:
    from backoffice.api.advertisements_api import list_ad_zones, list_advertisements
    from backoffice.api.categories_api import list_categories
    from backoffice.api.posts_api import list_posts
    from backoffice.api.users_api import list_users

    config = _config(args)
    settings = get_pagination_settings(config)
    raw = _raw_params(args)
    with session_context(config["storage"]["sqlite_path"]) as session:
        principal = _principal(session, args.as_user)
        if args.resource == "posts":
            result = list_posts(session, raw, principal, settings=settings)
        elif args.resource == "advertisements":
            result = list_advertisements(session, raw, principal, settings=settings)
        elif args.resource == "categories":
            result = list_categories(session, raw, settings=settings)
        elif args.resource == "ad-zones":
            result = list_ad_zones(session, raw, settings=settings)
        else:
            if not principal.is_elevated:
                raise SystemExit("Listing users requires an admin")
            result = list_users(session, raw, settings=settings)
    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))


def cmd_export(args: argparse.Namespace) -> None:
    """Export a filtered listing (every page) as JSON or CSV."""
    from backoffice.api.export import export_resource

    config = _config(args)
    try:
        with session_context(config["storage"]["sqlite_path"]) as session:
            principal = _principal(session, args.as_user)
            result = export_resource(
                session,
                args.resource,
                _raw_params(args),
                principal,
                format=args.format,
                out=args.out,
                settings=get_pagination_settings(config),
            )
            print(result)
    except SystemExit:
        raise
    except Forbidden as e:
        raise SystemExit(e.message)
    except Exception as e:
        logger.error(f"Error exporting: {e}", exc_info=True)
        raise


def cmd_routes(args: argparse.Namespace) -> None:
    """Print the HTTP routes."""
    from fastapi.routing import APIRoute

    from backoffice.web.app import create_app

    config = load_config(args.config)
    app = create_app(config, engine=get_engine(":memory:"))
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ",".join(sorted(route.methods))
            print(f"{methods:<10} {route.path}")


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    from backoffice.web.app import create_app

    config = _config(args)
    uvicorn.run(create_app(config), host=args.host, port=args.port, log_level=config["logging"]["level"].lower())


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("resource", choices=RESOURCES, help="Resource to query")
    parser.add_argument("--search", type=str, help="Free-text search")
    parser.add_argument(
        "--filter",
        action="append",
        metavar="KEY=VALUE",
        help="Named filter, repeatable (e.g. --filter status=published --filter created=last_7_days)",
    )
    parser.add_argument("--sort", type=str, help="Sort tokens, '-' for descending (e.g. -created_at,title)")
    parser.add_argument("--as-user", type=int, default=1, help="Acting user id (default: 1)")
    parser.add_argument("--all", action="store_true", help="Admins: include records owned by others")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="backoffice",
        description="Content and advertising back-office",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help=f"Config file (default: {DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init", help="Create the config file and the database")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )
    init_parser.set_defaults(func=cmd_init)

    seed_parser = subparsers.add_parser("seed", help="Load demo data into an empty database")
    seed_parser.set_defaults(func=cmd_seed)

    list_parser = subparsers.add_parser("list", help="List one page of a resource")
    _add_query_arguments(list_parser)
    list_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    list_parser.add_argument("--per-page", type=int, help="Page size (must be an allowed option)")
    list_parser.set_defaults(func=cmd_list)

    export_parser = subparsers.add_parser("export", help="Export every matching record")
    _add_query_arguments(export_parser)
    export_parser.add_argument(
        "--format",
        type=str,
        choices=["json", "csv"],
        default="json",
        help="Export format (default: json)",
    )
    export_parser.add_argument(
        "--out",
        type=Path,
        help="Output file path (if not provided, prints to stdout)",
    )
    export_parser.set_defaults(func=cmd_export)

    routes_parser = subparsers.add_parser("routes", help="Print the HTTP routes")
    routes_parser.set_defaults(func=cmd_routes)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    try:
        args.func(args)
    except SystemExit:
        raise
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
