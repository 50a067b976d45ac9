"""Database engine creation and lifecycle."""

from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ogenki_server.core.config import Settings, settings

logger = structlog.get_logger()


def create_engine(app_settings: Settings | None = None) -> AsyncEngine:
    """Create the database engine.

    The pool keeps ``db_pool_size`` idle connections and opens up to
    ``db_max_overflow`` more under load. When the pool is exhausted,
    callers wait ``db_pool_timeout`` seconds before the driver gives up.

    Args:
        app_settings: Settings to build from (defaults to the global settings)

    Returns:
        Async SQLAlchemy engine
    """
    app_settings = app_settings or settings
    url = app_settings.get_database_url()

    connect_args: dict[str, Any] = {}
    if app_settings.database_timezone and url.startswith("postgresql+asyncpg"):
        # CURRENT_DATE and date() follow the session time zone
        connect_args["server_settings"] = {"timezone": app_settings.database_timezone}

    return create_async_engine(
        url,
        echo=False,
        pool_size=app_settings.db_pool_size,
        max_overflow=app_settings.db_max_overflow,
        pool_timeout=app_settings.db_pool_timeout,
        pool_recycle=app_settings.db_pool_recycle,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def get_sync_database_url(app_settings: Settings | None = None) -> str:
    """Get the synchronous database URL used by Alembic.

    Swaps asyncpg for psycopg. asyncpg takes ``ssl=`` while psycopg takes
    ``sslmode=``, so that query parameter is renamed; the rest of the URL is
    left untouched.
    """
    app_settings = app_settings or settings
    url = make_url(app_settings.get_database_url())

    if url.drivername == "postgresql+asyncpg":
        query = dict(url.query)
        ssl_mode = query.pop("ssl", None)
        if ssl_mode is not None:
            query["sslmode"] = ssl_mode
        url = url.set(drivername="postgresql+psycopg", query=query)

    return url.render_as_string(hide_password=False)


async def init_database(engine: AsyncEngine) -> None:
    """Verify the database is reachable.

    Does NOT create tables - run `ogenki-server migrate` for the schema.

    Raises:
        sqlalchemy.exc.OperationalError: If the database cannot be reached
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

    logger.info("Connected to database", url=engine.url.render_as_string(hide_password=True))


async def close_database(engine: AsyncEngine) -> None:
    """Close database connection pool."""
    await engine.dispose()
