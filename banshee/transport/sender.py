"""Retrying delivery of one serialized payload."""

from __future__ import annotations

import time
from typing import Mapping

from banshee._version import __version__
from banshee.core.errors import TransportError
from banshee.core.logging import TRANSPORT_LOGGER, get_logger
from banshee.transport.base import Poster

DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0

CONTENT_TYPE = "application/json"
USER_AGENT = f"banshee-python/{__version__}"


def build_headers(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Merge configured headers over the defaults.

    Precedence: User-Agent default < configured headers < Content-Type.
    Configured headers may replace User-Agent, but Content-Type is always
    application/json and any configured content-type is discarded.
    """
    headers = {"User-Agent": USER_AGENT}
    for key, value in (extra or {}).items():
        if key.lower() == "content-type":
            continue
        headers[key] = value
    headers["Content-Type"] = CONTENT_TYPE
    return headers


class RetryingSender:
    """Sends a payload with bounded exponential backoff.

    Attempts the POST up to max_retries + 1 times. After failed attempt i
    (0-indexed) it sleeps min(base_delay * 2**i, max_delay) before the next
    one. Any 2xx status is success. Other statuses and any exception raised
    by the poster are failed attempts.
    """

    def __init__(
        self,
        poster: Poster,
        max_retries: int = 3,
        headers: Mapping[str, str] | None = None,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
    ) -> None:
        self.poster = poster
        self.max_retries = max_retries
        self.headers = build_headers(headers)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._log = get_logger(TRANSPORT_LOGGER)

    def backoff(self, attempt: int) -> float:
        """Delay after failed attempt number `attempt` (0-indexed)."""
        return min(self.base_delay * (2**attempt), self.max_delay)

    def send(self, payload: bytes) -> None:
        """Deliver payload, retrying on failure.

        Raises:
            TransportError: When every attempt failed. Carries the last
                status code (None for transport exceptions) and attempt count.
        """
        total = self.max_retries + 1
        last_error: str | None = None
        last_status: int | None = None

        for attempt in range(total):
            try:
                status = self.poster.post(payload, self.headers)
            except Exception as e:
                last_status = None
                last_error = f"{type(e).__name__}: {e}"
            else:
                if 200 <= status < 300:
                    return
                last_status = status
                last_error = f"HTTP {status}"

            if attempt < self.max_retries:
                delay = self.backoff(attempt)
                self._log.warning(
                    f"Delivery attempt failed, retrying in {delay}s ({attempt + 1}/{total})",
                    extra={
                        "attempt": attempt + 1,
                        "status_code": last_status,
                        "error": last_error,
                    },
                )
                time.sleep(delay)

        raise TransportError(
            f"delivery failed after {total} attempts",
            status_code=last_status,
            attempts=total,
            last_error=last_error,
        )
