"""Pytest configuration, Hypothesis profiles and shared fakes."""

import json
import threading
import time
from typing import Any, Callable, Mapping

import pytest
from hypothesis import settings
from hypothesis import strategies as st

from banshee.core.client import Client
from banshee.core.codec import decode_and_decompress
from banshee.core.config import ClientConfig

# Register Hypothesis profiles
settings.register_profile("ci", max_examples=100)
settings.register_profile("dev", max_examples=20)

# Load dev profile by default, CI can override via --hypothesis-profile=ci
settings.load_profile("dev")

BASE_OPTIONS: dict[str, Any] = {
    "endpoint": "https://collector.example.com/events",
    "license_id": "acct-123",
    "license_device": "device-abc",
    # Long interval so the periodic flush stays out of unit tests
    "flush_interval": 60.0,
}


def make_config(**overrides: Any) -> ClientConfig:
    return ClientConfig(**{**BASE_OPTIONS, **overrides})


class RecordingPoster:
    """Poster that records every POST and answers from a script.

    Args:
        statuses: Status codes returned for successive calls; default_status after.
        default_status: Status once statuses is exhausted.
        error: Exception raised on every call instead of returning a status.
        gate: Event each call waits on before answering.
    """

    def __init__(
        self,
        statuses: list[int] | None = None,
        default_status: int = 200,
        error: Exception | None = None,
        gate: threading.Event | None = None,
    ) -> None:
        self.statuses = list(statuses or [])
        self.default_status = default_status
        self.error = error
        self.gate = gate
        self.calls: list[tuple[bytes, dict[str, str]]] = []
        self.closed = False
        self._lock = threading.Lock()

    def post(self, body: bytes, headers: Mapping[str, str]) -> int:
        with self._lock:
            self.calls.append((body, dict(headers)))
            index = len(self.calls) - 1
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        if self.error is not None:
            raise self.error
        if index < len(self.statuses):
            return self.statuses[index]
        return self.default_status

    def close(self) -> None:
        self.closed = True

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def envelopes(self) -> list[dict[str, Any]]:
        with self._lock:
            return [json.loads(body) for body, _ in self.calls]

    def events(self) -> list[dict[str, Any]]:
        """Decoded event payloads, in the order they were posted."""
        return [json.loads(decode_and_decompress(env["event"])) for env in self.envelopes()]


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def poster() -> RecordingPoster:
    return RecordingPoster()


@pytest.fixture
def make_client():
    """Factory for clients with zero retry delays, shut down after the test."""
    created: list[Client] = []

    def factory(poster: RecordingPoster | None = None, **overrides: Any) -> Client:
        client = Client(
            make_config(**overrides),
            poster=poster or RecordingPoster(),
            retry_base_delay=0.0,
            retry_max_delay=0.0,
        )
        created.append(client)
        return client

    yield factory

    for client in created:
        try:
            client.shutdown()
        except Exception:
            pass


# Strategies
valid_titles = st.text(
    alphabet=st.characters(whitelist_categories=("L", "N")), min_size=1, max_size=30
)
metadata_values = st.booleans() | st.integers() | st.text(max_size=20)
valid_metadata = st.dictionaries(
    st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=10),
    metadata_values,
    max_size=5,
)
