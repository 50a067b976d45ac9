"""Command line interface: run the API, apply migrations, check the database."""

import asyncio
from pathlib import Path

import typer
import uvicorn
from alembic import command
from alembic.config import Config
from sqlalchemy import exc as sa_exc

from ogenki_server import __version__
from ogenki_server.core.config import settings
from ogenki_server.core.database import (
    close_database,
    create_engine,
    get_sync_database_url,
    init_database,
)

app = typer.Typer(
    name="ogenki-server",
    help="Wellness check-in API for tracked persons and their families",
    no_args_is_help=True,
)


def alembic_config(config_file: Path) -> Config:
    """Build an Alembic config pointed at the configured database.

    Raises:
        typer.Exit: If the ini file does not exist
    """
    if not config_file.is_file():
        typer.echo(f"Alembic config not found: {config_file}", err=True)
        raise typer.Exit(code=1)

    alembic_cfg = Config(str(config_file))
    # configparser treats % as interpolation; escaped passwords contain %XX
    alembic_cfg.set_main_option("sqlalchemy.url", get_sync_database_url().replace("%", "%%"))
    return alembic_cfg


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides API_HOST)"),
    port: int = typer.Option(None, help="Port to bind to (overrides API_PORT/PORT)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the check-in API.

    Example:
        ogenki-server serve --port 8080
    """
    uvicorn.run(
        "ogenki_server.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def migrate(
    revision: str = typer.Argument("head", help="Target revision"),
    config_file: Path = typer.Option(Path("alembic.ini"), "--config", help="Alembic ini file"),
    sql: bool = typer.Option(False, "--sql", help="Print the SQL instead of running it"),
) -> None:
    """Create or upgrade the check_ins schema.

    Example:
        ogenki-server migrate
        ogenki-server migrate head --sql > schema.sql
    """
    command.upgrade(alembic_config(config_file), revision, sql=sql)


@app.command("check-db")
def check_db() -> None:
    """Verify the check-in database is reachable with the configured pool."""
    engine = create_engine()

    async def ping() -> None:
        try:
            await init_database(engine)
        finally:
            await close_database(engine)

    try:
        asyncio.run(ping())
    except (sa_exc.SQLAlchemyError, OSError) as e:
        typer.echo(f"Database unreachable: {e}", err=True)
        raise typer.Exit(code=1) from e

    typer.echo("Database reachable")


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"ogenki-server v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
