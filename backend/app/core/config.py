"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration, read from the environment and ``.env``."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Rental Marketplace Booking API"
    api_v1_prefix: str = "/api/v1"

    # Storage
    database_url: str = Field(..., alias="DATABASE_URL")
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")
    read_retry_attempts: int = Field(3, ge=1, alias="READ_RETRY_ATTEMPTS")
    read_retry_base_delay: float = Field(0.1, ge=0, alias="READ_RETRY_BASE_DELAY")

    # Auth
    secret_key: str = Field("change-me", alias="SECRET_KEY")
    jwt_secret_key: str = Field(default="", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        60, ge=1, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # Booking rules
    reservation_hold_hours: int = Field(48, ge=1, alias="RESERVATION_HOLD_HOURS")
    free_tier_favorite_limit: int = Field(3, ge=0, alias="FREE_TIER_FAVORITE_LIMIT")
    free_tier_reservation_limit: int = Field(
        2, ge=0, alias="FREE_TIER_RESERVATION_LIMIT"
    )

    # HTTP edge
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    rate_limit_default: str = Field("100/minute", alias="RATE_LIMIT_DEFAULT")
    rate_limit_login: str = Field("10/minute", alias="RATE_LIMIT_LOGIN")
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allowlist: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"], alias="CORS_ALLOWLIST"
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[3] / ".env",
        case_sensitive=False,
        extra="ignore",
    )

    def model_post_init(self, __context: Any) -> None:
        """Fall back to ``SECRET_KEY`` when no dedicated JWT secret is set."""
        if not self.jwt_secret_key:
            object.__setattr__(self, "jwt_secret_key", self.secret_key)

    @field_validator("cors_allowlist", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
