"""
Configuration Management
Environment-based settings for the gateway and its downstream services
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceTarget(str, Enum):
    """Named downstream targets"""
    ACCOUNT_SERVICE = "AccountService"
    TOKEN_SERVICE = "TokenService"


@dataclass(frozen=True)
class DownstreamTarget:
    """Resolved base URL and access key for a downstream service"""
    name: ServiceTarget
    base_url: str
    access_key: Optional[str]

    def url(self, path: str) -> str:
        """Join a service path onto the base URL"""
        return f"{self.base_url}/{path.lstrip('/')}"


class Settings(BaseSettings):
    """Gateway settings"""

    # Service info
    service_name: str = "auth-gateway"
    service_version: str = "1.0.0"
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    logging_config_path: Optional[str] = None

    # Downstream services (base URLs include any path prefix, e.g. /api)
    account_service_url: str = "http://account-service:7071/api"
    account_service_key: Optional[str] = None
    token_service_url: str = "http://token-service:7072/api"
    token_service_key: Optional[str] = None
    access_key_header: str = "x-functions-key"

    # HTTP client pool
    downstream_timeout_seconds: float = 15.0
    downstream_connect_timeout_seconds: float = 5.0
    downstream_max_connections: int = 100
    downstream_max_keepalive: int = 20
    downstream_keepalive_expiry: float = 5.0

    # Request handling
    disconnect_poll_interval_seconds: float = 0.25
    default_role: str = "User"

    # CORS
    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("account_service_url", "token_service_url")
    @classmethod
    def validate_service_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Service URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator(
        "downstream_timeout_seconds",
        "downstream_connect_timeout_seconds",
        "disconnect_poll_interval_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts and intervals must be positive")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    def resolve_target(self, target: ServiceTarget) -> DownstreamTarget:
        """Look up base URL and access key for a named downstream target"""
        if target == ServiceTarget.ACCOUNT_SERVICE:
            return DownstreamTarget(target, self.account_service_url, self.account_service_key)
        if target == ServiceTarget.TOKEN_SERVICE:
            return DownstreamTarget(target, self.token_service_url, self.token_service_key)
        raise ValueError(f"Unknown downstream target: {target}")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
