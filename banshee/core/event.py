"""Event model for Banshee."""

import json
import re
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

# UUID v4 regex pattern for validation
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# RFC3339, second precision, always UTC
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class EventLevel(str, Enum):
    """Severity of a reported event."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    FATAL = "FATAL"

    @property
    def severity(self) -> int:
        """Rank used to order levels for display."""
        return _SEVERITY[self]


_SEVERITY = {
    EventLevel.DEBUG: 10,
    EventLevel.INFO: 20,
    EventLevel.WARNING: 30,
    EventLevel.ERROR: 40,
    EventLevel.FATAL: 50,
}


class SerializedError(BaseModel):
    """Error sub-record: kind name, message and optional stack text."""

    name: str
    message: str
    stack: str | None = None
    extra: dict[str, Any] | None = None

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class EventContext(BaseModel):
    """Where and on what an event happened."""

    culprit: str
    extra: dict[str, Any] | None = None
    platform: str | None = None
    app: str | None = None
    version: str | None = None
    device: str | None = None
    tags: tuple[str, ...] = ()

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }


class Event(BaseModel):
    """Immutable, validated telemetry event.

    Events are the unit of delivery in Banshee. They are:
    - Immutable (frozen after creation)
    - Validated (all fields checked on construction)
    - Serializable to the collector's wire shape via to_wire()

    Attributes:
        event_id: UUID v4 string, auto-generated if not provided.
        title: Non-empty human readable summary.
        level: Severity of the event.
        event: Serialized error sub-record.
        context: Call-site, metadata and environment labels.
        timestamp: UTC datetime, auto-generated if not provided.
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    level: EventLevel = EventLevel.ERROR
    event: SerializedError
    context: EventContext
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("event_id")
    @classmethod
    def validate_event_id(cls, v: str) -> str:
        """Ensure event_id is a valid UUID v4 string."""
        if not _UUID_PATTERN.match(v):
            raise ValueError(f"event_id must be a valid UUID v4 string, got: {v!r}")
        return v.lower()

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Ensure title is non-empty after whitespace stripping."""
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        """Normalize to an aware UTC datetime."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    def to_wire(self) -> dict[str, Any]:
        """Return the collector's JSON shape, omitting unset fields."""
        data = self.model_dump(mode="python", exclude_none=True)
        data["level"] = self.level.value
        data["timestamp"] = self.timestamp.strftime(TIMESTAMP_FORMAT)
        context = data["context"]
        if context.get("tags"):
            context["tags"] = list(context["tags"])
        else:
            context.pop("tags", None)
        return data

    def to_json(self) -> str:
        """Serialize to_wire() as compact JSON.

        Metadata values that are not JSON-native are rendered with str();
        circular structures raise ValueError.
        """
        return json.dumps(self.to_wire(), default=str, separators=(",", ":"))
