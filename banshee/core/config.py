"""Client configuration."""

from __future__ import annotations

import os
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, field_validator

from banshee.core.errors import ConfigurationError

DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT = 10.0
DEFAULT_FLUSH_INTERVAL = 5.0
DEFAULT_MAX_QUEUE_SIZE = 50

MIN_TIMEOUT = 1.0
MAX_TIMEOUT = 60.0
MIN_FLUSH_INTERVAL = 0.1

_ENV_PREFIX = "BANSHEE_"
_ENV_FIELDS = (
    "endpoint",
    "license_id",
    "license_name",
    "license_device",
    "app",
    "version",
    "platform",
    "device",
    "enabled",
    "max_retries",
    "timeout",
    "flush_interval",
    "max_queue_size",
)


class ClientConfig(BaseModel):
    """
    Validated configuration for a Banshee client.

    Durations are in seconds. Construction raises ConfigurationError when any
    option is invalid, so a half-configured client can never exist.
    """

    endpoint: str
    license_id: str
    license_device: str
    license_name: str | None = None

    app: str | None = None
    version: str | None = None
    platform: str | None = None
    device: str | None = None

    enabled: bool = True
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0, le=10)
    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=MIN_TIMEOUT, le=MAX_TIMEOUT)
    flush_interval: float = Field(default=DEFAULT_FLUSH_INTERVAL, ge=MIN_FLUSH_INTERVAL)
    max_queue_size: int = Field(default=DEFAULT_MAX_QUEUE_SIZE, ge=1)
    headers: dict[str, str] = Field(default_factory=dict)

    # Install sys/threading excepthooks when the client starts
    capture_unhandled: bool = False

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        v = v.strip()
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"endpoint must be an http(s) URL like https://collector.example.com/events, got {v!r}"
            )
        return v

    @field_validator("license_id", "license_device")
    @classmethod
    def validate_required_label(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("license_name", "app", "version", "platform", "device")
    @classmethod
    def strip_optional_label(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @classmethod
    def from_mapping(cls, options: ClientConfig | dict[str, Any]) -> ClientConfig:
        """Accept either a ready config or a mapping of options."""
        if isinstance(options, ClientConfig):
            return options
        return cls(**options)

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """
        Build configuration from BANSHEE_* environment variables.

        Priority:
          1. Explicit keyword overrides
          2. Environment variables (BANSHEE_ENDPOINT, BANSHEE_LICENSE_ID, ...)
          3. Field defaults
        """
        data: dict[str, Any] = {}
        for name in _ENV_FIELDS:
            raw = os.getenv(_ENV_PREFIX + name.upper())
            if raw is None:
                continue
            data[name] = _parse_flag(raw) if name == "enabled" else raw
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)


def _parse_flag(raw: str) -> bool:
    """
    Interpret a boolean environment value.

    Unknown values disable the client rather than failing the application.
    """
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    return False


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"]) or "config"
        parts.append(f"{location}: {item['msg']}")
    return "invalid client configuration: " + "; ".join(parts)
