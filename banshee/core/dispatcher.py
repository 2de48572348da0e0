"""Concurrent dispatch of one batch of events."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from banshee.core import codec
from banshee.core.config import ClientConfig
from banshee.core.event import Event
from banshee.core.logging import DISPATCHER_LOGGER, get_logger
from banshee.transport.sender import RetryingSender

# Upper bound on dispatch threads per client
MAX_DISPATCH_WORKERS = 32


@dataclass
class DispatchResult:
    """Outcome of one batch dispatch.

    failures holds (event, error) pairs in the order they completed, so
    error is the first failure encountered.
    """

    batch_size: int = 0
    delivered: int = 0
    failures: list[tuple[Event, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def error(self) -> Exception | None:
        return self.failures[0][1] if self.failures else None


class BatchDispatcher:
    """Sends every event of a batch concurrently through a RetryingSender.

    dispatch() returns only once each item has been delivered or has
    exhausted its retries. Failed items are reported, never re-queued.
    The dispatcher does not touch the event queue.

    The worker pool holds min(max_queue_size, MAX_DISPATCH_WORKERS) threads,
    so a batch up to that size is sent fully in parallel. Items beyond the
    cap wait for a free worker.
    """

    def __init__(
        self,
        sender: RetryingSender,
        config: ClientConfig,
        max_workers: int | None = None,
    ) -> None:
        self.sender = sender
        self.config = config
        self.max_workers = max_workers or min(config.max_queue_size, MAX_DISPATCH_WORKERS)
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="banshee-dispatch"
        )
        self._log = get_logger(DISPATCHER_LOGGER)

    def _dispatch_one(self, event: Event) -> None:
        encoded = codec.encode_event(event)
        body = codec.build_envelope(encoded, self.config)
        self.sender.send(body)

    def dispatch(self, batch: list[Event]) -> DispatchResult:
        result = DispatchResult(batch_size=len(batch))
        if not batch:
            return result

        futures = {self._executor.submit(self._dispatch_one, event): event for event in batch}
        for future in as_completed(futures):
            event = futures[future]
            error = future.exception()
            if error is None:
                result.delivered += 1
                continue
            result.failures.append((event, error))
            self._log.error(
                f"Event delivery failed: {error}",
                extra={
                    "event_id": event.event_id,
                    "error": str(error),
                    "error_type": type(error).__name__,
                },
            )

        return result

    def close(self) -> None:
        """Wait for in-flight items and release the worker threads."""
        self._executor.shutdown(wait=True)
