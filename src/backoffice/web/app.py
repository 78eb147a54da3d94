"""Application factory for the back-office HTTP surface."""

from typing import Any, Dict

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from ..config.loader import get_pagination_settings, get_upload_settings, load_config
from ..database.sqlite_client import get_engine, make_session_factory
from ..utils.logging import configure_logging, get_logger
from .errors import register_exception_handlers
from .routes import ROUTERS

logger = get_logger(__name__)


def create_app(config: Dict[str, Any] | None = None, engine: Engine | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        config: Loaded configuration (defaults to load_config())
        engine: SQLAlchemy engine (defaults to one on storage.sqlite_path)
    """
    config = config or load_config()
    configure_logging(config["logging"]["level"])
    if engine is None:
        engine = get_engine(config["storage"]["sqlite_path"])

    app = FastAPI(title="Backoffice")
    app.state.config = config
    app.state.session_factory = make_session_factory(engine)
    app.state.pagination = get_pagination_settings(config)
    app.state.uploads = get_upload_settings(config)

    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok"}

    for router in ROUTERS:
        app.include_router(router)

    logger.debug(f"App created with {len(app.routes)} routes")
    return app
