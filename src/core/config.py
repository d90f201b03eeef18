"""Settings for the inbox service, read from the environment and ``.env``."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Every knob is an environment variable of the same name, upper-cased."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Social Inbox API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Social store
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/social_inbox",
        description="Store holding profiles, groups, friend requests and notifications",
    )
    database_create_tables: bool = Field(
        default=True,
        description="Run create_all for the ORM models at startup",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """``database_url`` with a plain ``postgresql://`` scheme rewritten for asyncpg."""
        prefix = "postgresql://"
        if self.database_url.startswith(prefix):
            return "postgresql+asyncpg://" + self.database_url[len(prefix):]
        return self.database_url

    # Bearer tokens
    jwt_secret_key: str = Field(
        default="CHANGE-ME-IN-PRODUCTION",
        description="HS256 signing key for locally issued tokens",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=30)
    jwks_url: str = Field(
        default="",
        description="Identity provider JWKS endpoint; enables ES256 verification",
    )

    # Live feeds
    friend_request_page_size: int = Field(default=50, ge=1)
    notification_page_size: int = Field(default=50, ge=1)
    feed_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Delay between re-queries of an open feed",
    )

    # Inbox
    alert_display_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Time before an alert for new activity hides itself",
    )
    inbox_load_timeout_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Longest GET /inbox waits for the first snapshots",
    )
    inbox_idle_timeout_seconds: float = Field(
        default=900.0,
        gt=0,
        description="Sessions untouched this long are closed by the sweeper",
    )
    inbox_sweep_interval_seconds: float = Field(default=60.0, ge=1)

    # HTTP surface
    rate_limit_enabled: bool = Field(default=True)
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8081",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
