"""Litestar application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyPlugin,
)
from litestar import Litestar
from litestar.config.cors import CORSConfig
from litestar.datastructures import State
from litestar.openapi import OpenAPIConfig
from sqlalchemy.ext.asyncio import AsyncEngine

from ogenki_server import __version__
from ogenki_server.api import api_routers
from ogenki_server.core.config import Settings, settings
from ogenki_server.core.database import close_database, create_engine, init_database

logger = structlog.get_logger()


def configure_logging(log_level: str) -> None:
    """Configure structured JSON logging on top of the stdlib logger."""
    logging.basicConfig(format="%(message)s", level=log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: Litestar) -> AsyncIterator[None]:
    """Application lifespan manager.

    Verifies the database is reachable on startup and closes the
    connection pool on shutdown.
    """
    engine: AsyncEngine = app.state.engine

    logger.info("Starting ogenki-server", version=__version__, env=app.state.env)

    await init_database(engine)

    yield

    await close_database(engine)
    logger.info("Shutdown complete")


def create_app(
    app_settings: Settings | None = None,
    engine: AsyncEngine | None = None,
) -> Litestar:
    """Create Litestar application.

    Args:
        app_settings: Settings to use (defaults to the global settings)
        engine: Database engine to use (built from settings when omitted)

    Returns:
        Configured Litestar app instance
    """
    app_settings = app_settings or settings
    engine = engine or create_engine(app_settings)

    configure_logging(app_settings.log_level)

    state = State(
        {
            "engine": engine,
            "env": app_settings.env,
            "history_default_limit": app_settings.history_default_limit,
            "history_max_limit": app_settings.history_max_limit,
            "expose_error_details": not app_settings.is_production(),
        }
    )

    return Litestar(
        route_handlers=api_routers,
        lifespan=[lifespan],
        state=state,
        openapi_config=OpenAPIConfig(
            title="ogenki-server API",
            version=__version__,
            description="Wellness check-ins for tracked persons and their families",
        ),
        plugins=[
            SQLAlchemyPlugin(
                config=SQLAlchemyAsyncConfig(
                    engine_instance=engine,
                    session_dependency_key="session",
                    session_config=AsyncSessionConfig(expire_on_commit=False),
                ),
            ),
        ],
        cors_config=CORSConfig(allow_origins=app_settings.get_cors_origins()),
        debug=app_settings.log_level == "DEBUG",
    )


# Application instance
app = create_app()
