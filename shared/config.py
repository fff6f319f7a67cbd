"""
Shared configuration management for the cache proxy.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PROXY_",
        case_sensitive=False,
        extra="allow",
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # External services
    redis_url: str = "redis://localhost:6379/0"
    api_host: str = "http://localhost:8080"

    # Comma separated list of origins allowed by CORS
    allowed_origins: str = ""

    # Store copies of rolling entries outlive the client freshness window by
    # this factor, so clients rechecking at expiry still hit the store.
    rolling_buffer_factor: float = Field(default=1.3, gt=1.0)

    # Endpoint catalog
    endpoints_file: Optional[str] = None
    key_prefix: str = "cache_proxy"

    # Session validation
    session_path: str = "/users/is-login"
    session_decision_field: str = "data"

    @field_validator("api_host")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def allowed_origin_list(self) -> List[str]:
        """Return the configured CORS origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


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
