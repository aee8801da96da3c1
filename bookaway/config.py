"""Centralized application configuration using Pydantic settings."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration shared across services."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    database_url: str = Field(
        default="sqlite:///./bookaway.db",
        description="SQLAlchemy database URL. Defaults to local SQLite for development.",
    )
    run_db_migrations: bool = Field(
        default=False,
        description="Whether this service should create/update database tables on startup.",
    )
    api_prefix: str = Field(default="/api", description="Base path every public route is mounted under")
    jwt_secret: str = Field(default="super-secret", description="JWT signing secret")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=7 * 24 * 60, description="Token lifetime in minutes")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")
    default_rate_limit: str = Field(default="60/minute", description="Global rate limiting rule")
    rate_limiting_enabled: bool = Field(default=True, description="Toggle to disable SlowAPI limits (useful in tests)")
    hotel_cache_ttl: int = Field(default=60, description="TTL (s) for cached hotel listings")

    log_level: str = Field(default="INFO", description="Root log level")
    log_dir: str = Field(default="logs", description="Directory for per-service audit logs")

    sweeper_enabled: bool = Field(default=True, description="Run the daily booking expiry sweep in the bookings service")
    sweep_hour: int = Field(default=12, ge=0, le=23, description="Local hour of day the expiry sweep runs")
    sweep_minute: int = Field(default=0, ge=0, le=59, description="Minute of the hour the expiry sweep runs")

    events_enabled: bool = Field(default=False, description="Publish booking lifecycle events to RabbitMQ")
    rabbitmq_host: str = Field(default="rabbitmq", description="RabbitMQ broker host")
    bookings_queue: str = Field(default="bookings", description="Durable queue booking events are published to")

    users_service_port: int = 8001
    hotels_service_port: int = 8002
    bookings_service_port: int = 8003


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()
