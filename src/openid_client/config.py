"""Configuration for openid-client.

Uses Pydantic v2 for validation with sensible defaults. Client and issuer
*metadata* live in :mod:`openid_client.models`; this module only holds the
runtime knobs for HTTP and telemetry.
"""

from __future__ import annotations

from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_USER_AGENT = "openid-client/0.1.0 Python"


def _env_flag(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


class HTTPConfig(BaseModel):
    """HTTP settings applied to every request made on behalf of an issuer."""

    model_config = ConfigDict(frozen=True)

    timeout: Annotated[float, Field(gt=0, le=300)] = 30.0
    connect_timeout: Annotated[float, Field(gt=0, le=60)] = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    verify: bool = True
    follow_redirects: bool = False

    def with_overrides(self, **kwargs: Any) -> Self:
        """Create new config with overridden values."""
        data = self.model_dump()
        data.update(kwargs)
        return self.__class__(**data)

    @classmethod
    def from_env(cls, prefix: str = "OPENID_CLIENT_") -> Self:
        """Create config from environment variables."""
        import os

        def get_env(key: str, default: Any = None) -> Any:
            return os.environ.get(f"{prefix}{key}", default)

        return cls(
            timeout=float(get_env("TIMEOUT", "30.0")),
            connect_timeout=float(get_env("CONNECT_TIMEOUT", "10.0")),
            user_agent=get_env("USER_AGENT", DEFAULT_USER_AGENT),
            verify=_env_flag(get_env("VERIFY_TLS"), default=True),
            follow_redirects=_env_flag(get_env("FOLLOW_REDIRECTS"), default=False),
        )


class TelemetryConfig(BaseModel):
    """OpenTelemetry and structured logging configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    service_name: str = "openid-client"
    log_level: str = "INFO"
    json_logs: bool = True

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unsupported log level: {v}"
            raise ValueError(msg)
        return level

    @classmethod
    def from_env(cls, prefix: str = "OPENID_CLIENT_") -> Self:
        """Create config from environment variables."""
        import os

        return cls(
            enabled=_env_flag(os.environ.get(f"{prefix}TELEMETRY_ENABLED"), default=True),
            service_name=os.environ.get(f"{prefix}SERVICE_NAME", "openid-client"),
            log_level=os.environ.get(f"{prefix}LOG_LEVEL", "INFO"),
            json_logs=_env_flag(os.environ.get(f"{prefix}JSON_LOGS"), default=True),
        )
