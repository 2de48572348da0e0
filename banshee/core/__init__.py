"""Core components for the Banshee telemetry client.

Types:
    Event: Immutable, validated event with UUID, level, context and timestamp.
    EventBuilder: Captures culprit, stack text and tags for new events.
    ClientConfig: Validated client configuration.
    EventQueue: Lock-guarded FIFO buffer of pending events.
    BatchDispatcher: Concurrent per-event delivery of one batch.
    Client: Ingestion API, periodic and size-triggered flushing, lifecycle.
    Registry: Named and default clients with coordinated shutdown.

Errors:
    BansheeError: Base class.
    ConfigurationError: Invalid configuration; no client is created.
    SerializationError: Event could not be encoded for the wire.
    TransportError: Delivery failed after the retry ceiling.
    NotFoundError: Registry lookup miss.
    ClientStoppedError: start() on a client that was shut down.
"""

from banshee.core.builder import EventBuilder
from banshee.core.client import Client, ClientState, ClientStats, InMemoryFailedEventStore
from banshee.core.config import ClientConfig
from banshee.core.dispatcher import BatchDispatcher, DispatchResult
from banshee.core.errors import (
    BansheeError,
    ClientStoppedError,
    ConfigurationError,
    NotFoundError,
    SerializationError,
    TransportError,
)
from banshee.core.event import Event, EventContext, EventLevel, SerializedError
from banshee.core.queue import EventQueue
from banshee.core.registry import Registry

__all__ = [
    "Event",
    "EventContext",
    "EventLevel",
    "SerializedError",
    "EventBuilder",
    "ClientConfig",
    "EventQueue",
    "BatchDispatcher",
    "DispatchResult",
    "Client",
    "ClientState",
    "ClientStats",
    "InMemoryFailedEventStore",
    "Registry",
    "BansheeError",
    "ConfigurationError",
    "SerializationError",
    "TransportError",
    "NotFoundError",
    "ClientStoppedError",
]
