"""Configuration and environment handling for mlflow_client."""

import os

from pydantic import BaseModel, Field, field_validator

__all__ = [
    "ClientSettings",
    "get_settings",
    "get_tracking_uri",
    "reset_settings",
]


class ClientSettings(BaseModel):
    """Client settings.

    All settings can be customized via environment variables.
    """

    tracking_uri: str = Field(
        default="http://localhost:5000",
        description="Base URI of the MLflow tracking server",
    )

    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for a single HTTP request",
    )

    log_level: str = Field(
        default="INFO",
        description="Level of the mlflow_client logger",
    )

    @field_validator("tracking_uri")
    @classmethod
    def _check_tracking_uri(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"Tracking URI must be an http(s) URL: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Create ClientSettings from environment variables.

        Environment variables:
        - MLFLOW_TRACKING_URI: Tracking server URI (default: http://localhost:5000)
        - MLFLOW_HTTP_REQUEST_TIMEOUT: Request timeout in seconds (default: 30)
        - MLFLOW_CLIENT_LOG_LEVEL: Logger level (default: INFO)
        """
        return cls(
            tracking_uri=os.environ.get("MLFLOW_TRACKING_URI") or cls.model_fields["tracking_uri"].default,
            request_timeout=float(os.environ.get("MLFLOW_HTTP_REQUEST_TIMEOUT", cls.model_fields["request_timeout"].default)),
            log_level=os.environ.get("MLFLOW_CLIENT_LOG_LEVEL", cls.model_fields["log_level"].default),
        )


# Global settings instance
_settings: ClientSettings | None = None


def get_settings() -> ClientSettings:
    """Get client settings.

    Returns cached instance if already initialized.
    """
    global _settings
    if _settings is None:
        _settings = ClientSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


def get_tracking_uri() -> str:
    """Get the tracking server URI.

    Resolution priority:
    1. MLFLOW_TRACKING_URI environment variable (if set)
    2. http://localhost:5000 (fallback)
    """
    return get_settings().tracking_uri
