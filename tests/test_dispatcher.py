"""Tests for BatchDispatcher."""

import threading

import pytest

from banshee.core.builder import EventBuilder
from banshee.core.dispatcher import MAX_DISPATCH_WORKERS, BatchDispatcher, DispatchResult
from banshee.core.errors import SerializationError, TransportError
from banshee.transport.sender import RetryingSender
from tests.conftest import RecordingPoster, make_config

_builder = EventBuilder(platform="test", device="test")


class BarrierPoster(RecordingPoster):
    """Answers only once `parties` posts are in flight at the same time."""

    def __init__(self, parties: int) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5.0)

    def post(self, body, headers):
        status = super().post(body, headers)
        self.barrier.wait()
        return status


class SelectivePoster(RecordingPoster):
    """Fails posts whose body contains a marker."""

    def __init__(self, marker: bytes) -> None:
        super().__init__()
        self.marker = marker

    def post(self, body, headers):
        super().post(body, headers)
        return 500 if self.marker in body else 200


def make_dispatcher(poster, **config_overrides) -> BatchDispatcher:
    config = make_config(**config_overrides)
    sender = RetryingSender(poster, max_retries=config.max_retries, base_delay=0.0, max_delay=0.0)
    return BatchDispatcher(sender, config)


def test_empty_batch():
    poster = RecordingPoster()
    dispatcher = make_dispatcher(poster)

    result = dispatcher.dispatch([])

    assert result.ok
    assert result.batch_size == 0
    assert poster.call_count == 0
    dispatcher.close()


def test_all_delivered():
    poster = RecordingPoster()
    dispatcher = make_dispatcher(poster)
    events = [_builder.build(f"e{i}") for i in range(5)]

    result = dispatcher.dispatch(events)

    assert result.ok
    assert result.error is None
    assert result.delivered == 5
    assert sorted(e["event_id"] for e in poster.events()) == sorted(e.event_id for e in events)
    dispatcher.close()


def test_items_are_dispatched_concurrently():
    """Every item of a batch is in flight at once; a serial dispatcher would deadlock the barrier."""
    poster = BarrierPoster(parties=4)
    dispatcher = make_dispatcher(poster, max_retries=0)

    result = dispatcher.dispatch([_builder.build(f"e{i}") for i in range(4)])

    assert result.ok
    assert result.delivered == 4
    dispatcher.close()


def test_failures_reported_without_affecting_other_items():
    poster = SelectivePoster(marker=b"license_id")
    dispatcher = make_dispatcher(poster, max_retries=2)

    result = dispatcher.dispatch([_builder.build("a"), _builder.build("b")])

    assert not result.ok
    assert result.delivered == 0
    assert len(result.failures) == 2
    assert isinstance(result.error, TransportError)
    # 2 items x (2 retries + 1)
    assert poster.call_count == 6
    dispatcher.close()


def test_serialization_failure_isolated_to_one_item():
    circular: dict = {}
    circular["self"] = circular
    bad = _builder.build("bad", metadata={"loop": circular})
    good = _builder.build("good")
    poster = RecordingPoster()
    dispatcher = make_dispatcher(poster)

    result = dispatcher.dispatch([bad, good])

    assert result.delivered == 1
    assert len(result.failures) == 1
    failed_event, error = result.failures[0]
    assert failed_event is bad
    assert isinstance(error, SerializationError)
    assert [e["title"] for e in poster.events()] == ["good"]
    dispatcher.close()


def test_worker_pool_bounded():
    assert make_dispatcher(RecordingPoster(), max_queue_size=5).max_workers == 5
    assert make_dispatcher(RecordingPoster(), max_queue_size=500).max_workers == MAX_DISPATCH_WORKERS


def test_dispatch_result_properties():
    event = _builder.build("x")
    error = TransportError("nope")
    result = DispatchResult(batch_size=1, failures=[(event, error)])

    assert not result.ok
    assert result.error is error


def test_dispatch_after_close_raises():
    dispatcher = make_dispatcher(RecordingPoster())
    dispatcher.close()

    with pytest.raises(RuntimeError):
        dispatcher.dispatch([_builder.build("late")])
