"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Initialize shared resources (cycle catalog, object URL store)
- Register routes
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppConfig
from observability import logger
from observability.logger import log_event
from playback.object_urls import ObjectUrlStore
from session.catalog import load_catalog

from server.routes import register_routes


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with different configurations
    - Environment-specific setup
    - ASGI server compatibility
    """
    if config is None:
        config = AppConfig.load_from_env()

    logger.configure(enable_json=config.enable_json_logs)

    app = FastAPI(title="Cycle Player API")

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Shared across sessions: the catalog is read-only and object URLs
    # must be reachable from /blob whichever session created them
    app.state.catalog = load_catalog(config.catalog_path) if config.catalog_path else []
    app.state.url_store = ObjectUrlStore()

    log_event({
        "event_type": "APP_STARTED",
        "env": config.env,
        "cycles": len(app.state.catalog),
        "audio_cache_dir": config.audio_cache_dir,
    })

    # Routes
    register_routes(app)

    return app
