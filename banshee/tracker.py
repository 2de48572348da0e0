"""Package-level convenience API over a default Registry.

    from banshee import tracker

    tracker.create({"endpoint": "https://collector.example.com/events",
                    "license_id": "acct-1", "license_device": "web-01"})
    try:
        handle()
    except Exception as exc:
        tracker.error(exc, {"order_id": 42})
    tracker.shutdown()

Every call takes an optional ``name`` to address a named instance instead of
the default. Calls other than create(), has() and shutdown() raise
NotFoundError when that instance does not exist.
"""

from __future__ import annotations

from typing import Any, Mapping

from banshee.core.client import Client
from banshee.core.config import ClientConfig
from banshee.core.event import Event, EventLevel
from banshee.core.registry import Registry

default_registry = Registry()

Metadata = Mapping[str, Any] | None


def create(config: ClientConfig | Mapping[str, Any], name: str | None = None) -> Client:
    return default_registry.create(config, name)


def get(name: str | None = None) -> Client:
    return default_registry.get(name)


def has(name: str | None = None) -> bool:
    return default_registry.has(name)


def capture(
    error: BaseException,
    level: EventLevel | str = EventLevel.ERROR,
    metadata: Metadata = None,
    *,
    name: str | None = None,
) -> Event | None:
    return default_registry.get(name).error(error, level, metadata)


def error(error: BaseException, metadata: Metadata = None, *, name: str | None = None) -> Event | None:
    return capture(error, EventLevel.ERROR, metadata, name=name)


def fatal(error: BaseException, metadata: Metadata = None, *, name: str | None = None) -> Event | None:
    return capture(error, EventLevel.FATAL, metadata, name=name)


def debug(error: BaseException, metadata: Metadata = None, *, name: str | None = None) -> Event | None:
    return capture(error, EventLevel.DEBUG, metadata, name=name)


def event(
    title: str,
    level: EventLevel | str = EventLevel.INFO,
    metadata: Metadata = None,
    *,
    name: str | None = None,
) -> Event | None:
    return default_registry.get(name).event(title, level, metadata)


def info(title: str, metadata: Metadata = None, *, name: str | None = None) -> Event | None:
    return event(title, EventLevel.INFO, metadata, name=name)


def warn(title: str, metadata: Metadata = None, *, name: str | None = None) -> Event | None:
    return event(title, EventLevel.WARNING, metadata, name=name)


def flush(name: str | None = None) -> None:
    default_registry.get(name).force_flush()


def pause(name: str | None = None) -> Client:
    return default_registry.get(name).pause()


def resume(name: str | None = None) -> Client:
    return default_registry.get(name).resume()


def shutdown() -> None:
    """Shut down every instance and empty the default registry."""
    default_registry.shutdown_all()
