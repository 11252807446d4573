"""
Service settings loaded from environment variables (and an optional .env file).
"""

from functools import lru_cache
from typing import Literal, Optional
from urllib.parse import parse_qs, quote_plus, urlencode, urlparse, urlunparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "PR Reviewer Service"
    app_version: str = "1.0.0"
    debug: bool = False

    # HTTP
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    request_timeout_seconds: float = 10.0
    shutdown_grace_seconds: int = 3

    # Database
    pg_host: str = Field(default="localhost", alias="PGHOST")
    pg_port: int = Field(default=5432, alias="PGPORT")
    pg_user: str = Field(default="postgres", alias="PGUSER")
    pg_password: str = Field(default="postgres", alias="PGPASSWORD")
    pg_database: str = Field(default="pr_reviewer", alias="PGDATABASE")
    pg_sslmode: Literal[
        "disable", "allow", "prefer", "require", "verify-ca", "verify-full"
    ] = Field(default="disable", alias="PGSSLMODE")
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Logging
    log_level: str = "INFO"

    @field_validator("database_url_override", mode="before")
    @classmethod
    def normalize_database_url(cls, v: Optional[str]) -> Optional[str]:
        """Point postgres URLs at the asyncpg driver and drop ``sslmode``.

        asyncpg does not understand ``sslmode`` as a URL parameter; SSL is
        passed through connect args instead (see ``models.database``).
        """
        if not v:
            return None

        v = v.strip()
        if v.startswith("postgres://"):
            v = v.replace("postgres://", "postgresql+asyncpg://", 1)
        elif v.startswith("postgresql://"):
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)

        parsed = urlparse(v)
        if parsed.query:
            query_params = parse_qs(parsed.query)
            query_params.pop("sslmode", None)
            v = urlunparse((
                parsed.scheme,
                parsed.netloc,
                parsed.path,
                parsed.params,
                urlencode(query_params, doseq=True),
                parsed.fragment,
            ))
        return v

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{quote_plus(self.pg_user)}:{quote_plus(self.pg_password)}"
            f"@{self.pg_host}:{self.pg_port}/{self.pg_database}"
        )

    @property
    def database_url_sync(self) -> str:
        """Driverless URL for Alembic running in offline mode."""
        return self.database_url.replace("+asyncpg", "")

    @property
    def ssl_enabled(self) -> bool:
        return self.pg_sslmode not in ("disable", "allow")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
