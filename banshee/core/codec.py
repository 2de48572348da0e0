"""Wire encoding: event JSON, gzip + base64 compression and the transport envelope."""

import base64
import gzip
import json

from banshee.core.config import ClientConfig
from banshee.core.errors import SerializationError
from banshee.core.event import Event


def compress_and_encode(data: str) -> str:
    """Gzip a UTF-8 string and return it base64 encoded."""
    compressed = gzip.compress(data.encode("utf-8"))
    return base64.b64encode(compressed).decode("ascii")


def decode_and_decompress(data: str) -> str:
    """Inverse of compress_and_encode."""
    return gzip.decompress(base64.b64decode(data)).decode("utf-8")


def encode_event(event: Event) -> str:
    """Serialize and compress one event.

    Raises:
        SerializationError: If the event cannot be rendered as JSON.
    """
    try:
        return compress_and_encode(event.to_json())
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"failed to serialize event {event.event_id}: {e}") from e


def build_envelope(encoded_event: str, config: ClientConfig) -> bytes:
    """Wrap an encoded event with the license fields the collector expects."""
    payload = {
        "event": encoded_event,
        "license_id": config.license_id,
        "license_device": config.license_device,
    }
    if config.license_name:
        payload["license_name"] = config.license_name
    try:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(f"failed to build transport envelope: {e}") from e
