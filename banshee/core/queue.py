"""In-memory FIFO buffer of pending events."""

import threading

from banshee.core.event import Event


class EventQueue:
    """Ordered, lock-guarded buffer of events awaiting delivery.

    The queue is owned by a single Client. Every operation holds the lock
    only for the list manipulation itself; nothing here blocks on I/O.

    Growth is not capped: reaching the client's max queue size triggers an
    extra flush but never rejects a push.
    """

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._lock = threading.Lock()

    def push(self, event: Event) -> int:
        """Append an event and return the queue length right after the append."""
        with self._lock:
            self._events.append(event)
            return len(self._events)

    def take_batch(self, max_size: int) -> list[Event]:
        """Remove and return up to max_size of the oldest events, in order.

        Returns an empty list when the queue is empty.
        """
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        with self._lock:
            batch = self._events[:max_size]
            del self._events[:max_size]
            return batch

    def length(self) -> int:
        """Snapshot of the current queue length."""
        with self._lock:
            return len(self._events)

    def __len__(self) -> int:
        return self.length()
