"""Client orchestration for Banshee.

The Client is the ingestion front door. It:
- Builds events and pushes them onto its EventQueue
- Runs a background thread that flushes on a fixed interval
- Starts an extra flush whenever the queue reaches max_queue_size
- Hands extracted batches to the BatchDispatcher

IMPORTANT: recording never blocks on, or fails because of, delivery. Only
force_flush() and shutdown() report delivery errors to the caller.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from banshee.core.builder import UNKNOWN_ERROR_MESSAGE, EventBuilder
from banshee.core.config import ClientConfig
from banshee.core.dispatcher import BatchDispatcher, DispatchResult
from banshee.core.errors import ClientStoppedError
from banshee.core.event import Event, EventLevel
from banshee.core.logging import CLIENT_LOGGER, get_logger
from banshee.core.queue import EventQueue
from banshee.transport.base import Poster
from banshee.transport.http import HttpxPoster
from banshee.transport.sender import DEFAULT_BASE_DELAY, DEFAULT_MAX_DELAY, RetryingSender

# Upper bound on a single wait for another thread's flush to finish
_DRAIN_WAIT_SECONDS = 0.5


class ClientState(Enum):
    """Lifecycle of a Client."""

    IDLE = "idle"
    ACTIVE = "active"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class InMemoryFailedEventStore:
    """Bounded record of events whose delivery permanently failed.

    Inspection only: nothing here is ever re-queued.
    """

    def __init__(self, max_size: int = 1000) -> None:
        self._events: list[tuple[Event, Exception]] = []
        self._max_size = max_size
        self._dropped_count = 0
        self._lock = threading.Lock()

    def __bool__(self) -> bool:
        """Always truthy so 'store or default' works correctly."""
        return True

    def store(self, event: Event, error: Exception) -> None:
        with self._lock:
            if len(self._events) >= self._max_size:
                # Drop oldest to make room (FIFO eviction)
                self._events.pop(0)
                self._dropped_count += 1
            self._events.append((event, error))

    def get_failed_events(self) -> list[tuple[Event, Exception]]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    @property
    def dropped_count(self) -> int:
        """Number of records evicted due to the size limit."""
        return self._dropped_count


@dataclass
class ClientStats:
    """Counters from a Client's lifetime."""

    events_recorded: int = 0
    events_ignored: int = 0
    batches_dispatched: int = 0
    events_delivered: int = 0
    events_failed: int = 0
    background_flush_errors: int = 0


class Client:
    """Buffers, batches and delivers events to a remote collector."""

    def __init__(
        self,
        config: ClientConfig | Mapping[str, Any],
        poster: Poster | None = None,
        failed_event_store: InMemoryFailedEventStore | None = None,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        name: str | None = None,
    ) -> None:
        self.config = ClientConfig.from_mapping(config)
        self.name = name or "default"
        self.poster = poster or HttpxPoster(self.config.endpoint, self.config.timeout)
        self.failed_event_store = failed_event_store or InMemoryFailedEventStore()
        self.builder = EventBuilder(
            app=self.config.app,
            version=self.config.version,
            platform=self.config.platform,
            device=self.config.device or self.config.license_device,
        )
        self.sender = RetryingSender(
            self.poster,
            max_retries=self.config.max_retries,
            headers=self.config.headers,
            base_delay=retry_base_delay,
            max_delay=retry_max_delay,
        )
        self.dispatcher = BatchDispatcher(self.sender, self.config)
        self._queue = EventQueue()
        self._log = get_logger(CLIENT_LOGGER)

        self._state = ClientState.IDLE
        self._enabled = self.config.enabled
        self._draining = False
        self._stats = ClientStats()
        self._lock = threading.Lock()
        self._drained = threading.Condition(self._lock)
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is ClientState.ACTIVE

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def draining(self) -> bool:
        return self._draining

    @property
    def queue_length(self) -> int:
        return self._queue.length()

    @property
    def failed_events(self) -> list[tuple[Event, Exception]]:
        return self.failed_event_store.get_failed_events()

    def get_stats(self) -> ClientStats:
        """Return a copy of current statistics."""
        with self._lock:
            return ClientStats(**vars(self._stats))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> Client:
        """Launch the periodic flush thread. No-op when already active.

        Raises:
            ClientStoppedError: If the client has been shut down.
        """
        with self._lock:
            if self._state is ClientState.ACTIVE:
                return self
            if self._state is not ClientState.IDLE:
                raise ClientStoppedError(f"client {self.name!r} has been shut down and cannot restart")
            self._state = ClientState.ACTIVE
            self._thread = threading.Thread(
                target=self._run, name=f"banshee-{self.name}-flush", daemon=True
            )
            self._thread.start()

        if self.config.capture_unhandled:
            from banshee.hooks import install_excepthooks

            install_excepthooks(self)

        self._log.info(
            f"Client started (flush_interval={self.config.flush_interval}s, "
            f"max_queue_size={self.config.max_queue_size})",
            extra={"client": self.name},
        )
        return self

    def pause(self) -> Client:
        """Stop accepting new events. Queued events still flush."""
        self._enabled = False
        return self

    def resume(self) -> Client:
        """Accept new events again. Ignored once shutdown has begun."""
        if self._state in (ClientState.IDLE, ClientState.ACTIVE):
            self._enabled = True
        return self

    def shutdown(self) -> None:
        """Stop the background thread and flush whatever is still queued.

        Raises the first delivery error from the final flush, if any. Calling
        it again on a stopped client does nothing.
        """
        with self._lock:
            if self._state is ClientState.STOPPED:
                return
            self._enabled = False
            self._state = ClientState.SHUTTING_DOWN

        self._stopped.set()
        if self._thread is not None:
            self._thread.join()

        if self.config.capture_unhandled:
            from banshee.hooks import uninstall_excepthooks

            uninstall_excepthooks(self)

        try:
            self.force_flush()
        finally:
            with self._drained:
                # The dispatcher must outlive any batch another thread has taken
                self._drained.wait_for(lambda: not self._draining)
                self._state = ClientState.STOPPED
            self.dispatcher.close()
            self.poster.close()
            self._log.info(f"Client stopped. Stats: {self.get_stats()}", extra={"client": self.name})

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def record(
        self,
        title: str,
        error: BaseException | None = None,
        level: EventLevel | str = EventLevel.ERROR,
        metadata: Mapping[str, Any] | None = None,
    ) -> Event | None:
        """Queue an event for delivery.

        Returns the queued Event, or None when the client is paused or the
        event could not be built. Never raises for delivery problems.
        """
        if not self._enabled:
            with self._lock:
                self._stats.events_ignored += 1
            return None

        try:
            event = self.builder.build(title, error, level, metadata)
        except Exception as e:
            self._log.error(f"Failed to build event: {e}", extra={"client": self.name, "error": str(e)})
            return None

        length = self._queue.push(event)
        with self._lock:
            self._stats.events_recorded += 1

        if length >= self.config.max_queue_size and not self._draining:
            threading.Thread(
                target=self._flush_in_background, name=f"banshee-{self.name}-size-flush", daemon=True
            ).start()
        return event

    def error(
        self,
        error: BaseException,
        level: EventLevel | str = EventLevel.ERROR,
        metadata: Mapping[str, Any] | None = None,
    ) -> Event | None:
        """Record an exception, titled with its message."""
        title = str(error) or UNKNOWN_ERROR_MESSAGE
        return self.record(title, error, level, metadata)

    def event(
        self,
        title: str,
        level: EventLevel | str = EventLevel.INFO,
        metadata: Mapping[str, Any] | None = None,
    ) -> Event | None:
        """Record a custom, non-error event."""
        return self.record(title, None, level, metadata)

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def force_flush(self) -> None:
        """Flush until the queue is empty and no flush is in flight.

        Waits for a flush already in flight rather than starting a second
        one. Raises the first delivery error seen across all batches once
        the queue has drained. Producers recording concurrently may leave
        new events behind.
        """
        first_error: Exception | None = None

        # A batch taken by another thread has left the queue but is not yet delivered
        while self._queue.length() > 0 or self._draining:
            result = self._flush_batch()
            if result is None:
                with self._drained:
                    self._drained.wait_for(lambda: not self._draining, timeout=_DRAIN_WAIT_SECONDS)
                continue
            if first_error is None and result.error is not None:
                first_error = result.error

        if first_error is not None:
            raise first_error

    def _flush_batch(self) -> DispatchResult | None:
        """Extract and dispatch one batch.

        Returns None without doing anything when another flush is in flight
        or the queue is empty.
        """
        with self._lock:
            if self._draining:
                self._log.debug("Flush already in flight, skipping", extra={"client": self.name})
                return None
            batch = self._queue.take_batch(self.config.max_queue_size)
            if not batch:
                return None
            self._draining = True

        try:
            result = self.dispatcher.dispatch(batch)
        finally:
            with self._drained:
                self._draining = False
                self._drained.notify_all()

        for event, error in result.failures:
            self.failed_event_store.store(event, error)

        with self._lock:
            self._stats.batches_dispatched += 1
            self._stats.events_delivered += result.delivered
            self._stats.events_failed += len(result.failures)

        self._log.info(
            f"Dispatched batch: {result.delivered}/{result.batch_size} delivered",
            extra={"client": self.name, "batch_size": result.batch_size},
        )
        return result

    def _flush_in_background(self) -> None:
        """Fire-and-forget flush: failures are logged, never raised."""
        try:
            result = self._flush_batch()
        except Exception as e:
            self._log.error(f"Background flush crashed: {e}", extra={"client": self.name, "error": str(e)})
            with self._lock:
                self._stats.background_flush_errors += 1
            return

        if result is not None and not result.ok:
            with self._lock:
                self._stats.background_flush_errors += 1
            self._log.warning(
                f"Background flush lost {len(result.failures)} event(s): {result.error}",
                extra={"client": self.name, "batch_size": result.batch_size},
            )

    def _run(self) -> None:
        self._log.debug("Flush loop started", extra={"client": self.name})
        while not self._stopped.wait(self.config.flush_interval):
            self._flush_in_background()
        self._log.debug("Flush loop stopped", extra={"client": self.name})

    def __repr__(self) -> str:
        return f"Client(name={self.name!r}, state={self._state.value}, queued={self.queue_length})"
