"""Banshee - In-process error and event telemetry client for Python."""

from banshee._version import __version__
from banshee.core import (
    BansheeError,
    BatchDispatcher,
    Client,
    ClientConfig,
    ClientState,
    ClientStats,
    ClientStoppedError,
    ConfigurationError,
    DispatchResult,
    Event,
    EventBuilder,
    EventContext,
    EventLevel,
    EventQueue,
    InMemoryFailedEventStore,
    NotFoundError,
    Registry,
    SerializationError,
    SerializedError,
    TransportError,
)
from banshee.hooks import BansheeHandler, install_excepthooks, uninstall_excepthooks
from banshee.transport import HttpxPoster, Poster, RetryingSender

__all__ = [
    # Core
    "Client",
    "ClientConfig",
    "ClientState",
    "ClientStats",
    "Event",
    "EventBuilder",
    "EventContext",
    "EventLevel",
    "SerializedError",
    "EventQueue",
    "BatchDispatcher",
    "DispatchResult",
    "InMemoryFailedEventStore",
    "Registry",
    # Errors
    "BansheeError",
    "ConfigurationError",
    "SerializationError",
    "TransportError",
    "NotFoundError",
    "ClientStoppedError",
    # Transport
    "Poster",
    "HttpxPoster",
    "RetryingSender",
    # Integrations
    "BansheeHandler",
    "install_excepthooks",
    "uninstall_excepthooks",
    # Meta
    "__version__",
]
