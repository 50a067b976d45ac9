"""Application configuration."""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra env vars without error
        env_parse_none_str="none",  # e.g. HISTORY_MAX_LIMIT=none
    )

    # Environment
    env: str = Field(default="development", description="Deployment environment name")

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(
        default=8080,
        validation_alias=AliasChoices("api_port", "port"),
        description="API port (API_PORT or PORT)",
    )

    # Database
    database_url: str | None = Field(
        default=None,
        description="Full SQLAlchemy URL; overrides the DB_* connection fields when set",
    )
    db_host: str = Field(default="localhost", description="PostgreSQL host")
    db_port: int = Field(default=5432, description="PostgreSQL port")
    db_user: str = Field(default="postgres", description="PostgreSQL user")
    db_password: str = Field(default="", description="PostgreSQL password")
    db_name: str = Field(default="ogenkidesuka", description="PostgreSQL database name")
    db_ssl_mode: str = Field(default="disable", description="SSL mode passed to the driver")
    database_timezone: str | None = Field(
        default=None,
        description="Session time zone used for the 'today' day boundary (e.g. Asia/Tokyo)",
    )

    # Connection pool: pool_size connections stay idle, max_overflow more under load
    db_pool_size: int = Field(default=5, description="Idle connections kept in the pool")
    db_max_overflow: int = Field(default=20, description="Extra connections allowed in bursts")
    db_pool_timeout: int = Field(default=30, description="Seconds to wait for a free connection")
    db_pool_recycle: int = Field(default=300, description="Recycle connections after N seconds")

    # Check-in history
    history_default_limit: int = Field(
        default=30,
        description="Number of check-ins returned when no limit is given",
    )
    history_max_limit: int | None = Field(
        default=365,
        description="Upper bound applied to requested history limits (None = no bound)",
    )

    # CORS
    cors_allowed_origins: str = Field(
        default="*",
        description="Comma separated list of allowed origins",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level",
    )

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env.lower() == "production"

    def get_database_url(self) -> str:
        """Get the async database URL.

        Uses DATABASE_URL verbatim when set, otherwise assembles a
        postgresql+asyncpg URL from the DB_* fields.
        """
        if self.database_url:
            return self.database_url

        url = URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query={"ssl": self.db_ssl_mode},
        )
        return url.render_as_string(hide_password=False)

    def get_cors_origins(self) -> list[str]:
        """Split CORS_ALLOWED_ORIGINS into a list."""
        return [
            origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()
        ]


# Global settings instance
settings = Settings()
