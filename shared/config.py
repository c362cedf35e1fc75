"""
Shared configuration management for the ladder viewer service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="VIEWER_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Backends (empty disables the collaborator)
    redis_url: Optional[str] = Field(default="redis://localhost:6379/0")
    postgres_dsn: Optional[str] = Field(default="postgres://localhost:5432/viewer")

    # Viewer cache
    cache_ttl_seconds: int = Field(default=300, ge=1)

    # Channel configuration
    max_player_profile_count: int = Field(default=5, ge=1)

    # Battle.net community API
    battlenet_client_id: str = Field(default="")
    battlenet_client_secret: str = Field(default="")
    battlenet_locale: str = Field(default="en_US")

    # Upstream pacing and limits
    pacing_base_delay_seconds: float = Field(default=1.0, ge=0)
    upstream_rate_per_second: float = Field(default=25.0, gt=0)
    upstream_burst: int = Field(default=25, ge=1)
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)
    max_in_flight_upstream_calls: int = Field(default=8, ge=1)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
