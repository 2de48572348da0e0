"""Tests for the logging handler and exception hooks."""

import logging
import sys
import threading

import pytest

from banshee import hooks
from banshee.core.event import EventLevel
from banshee.hooks import BansheeHandler, install_excepthooks, level_for, uninstall_excepthooks


@pytest.fixture
def app_logger():
    logger = logging.getLogger("shop.checkout")
    logger.setLevel(logging.DEBUG)
    yield logger
    logger.handlers.clear()


@pytest.mark.parametrize(
    "levelno,expected",
    [
        (logging.CRITICAL, EventLevel.FATAL),
        (logging.ERROR, EventLevel.ERROR),
        (logging.WARNING, EventLevel.WARNING),
        (logging.INFO, EventLevel.INFO),
        (logging.DEBUG, EventLevel.DEBUG),
        (5, EventLevel.DEBUG),
    ],
)
def test_level_mapping(levelno: int, expected: EventLevel):
    assert level_for(levelno) is expected


class TestBansheeHandler:
    def test_forwards_records_at_or_above_level(self, make_client, app_logger):
        client = make_client()
        app_logger.addHandler(BansheeHandler(client))

        app_logger.info("not forwarded")
        app_logger.warning("low stock for %s", "sku-1")

        assert client.queue_length == 1
        event = client._queue.take_batch(1)[0]
        assert event.title == "low stock for sku-1"
        assert event.level is EventLevel.WARNING
        assert event.context.extra["logger"] == "shop.checkout"

    def test_exception_info_becomes_error(self, make_client, app_logger):
        client = make_client()
        app_logger.addHandler(BansheeHandler(client))

        try:
            1 / 0
        except ZeroDivisionError:
            app_logger.exception("payment math failed")

        event = client._queue.take_batch(1)[0]
        assert event.level is EventLevel.ERROR
        assert event.event.name == "ZeroDivisionError"
        assert "ZeroDivisionError" in event.event.stack

    def test_ignores_banshee_loggers(self, make_client):
        client = make_client()
        handler = BansheeHandler(client)

        handler.emit(logging.makeLogRecord({"name": "banshee.client", "levelno": logging.ERROR, "msg": "x"}))

        assert client.queue_length == 0

    def test_forwards_loggers_that_only_share_the_prefix(self, make_client):
        client = make_client()
        handler = BansheeHandler(client)

        handler.emit(logging.makeLogRecord({"name": "banshee_shop.orders", "levelno": logging.ERROR, "msg": "x"}))

        assert client.queue_length == 1

    def test_handler_errors_do_not_propagate(self, make_client, app_logger, monkeypatch):
        client = make_client()
        handler = BansheeHandler(client)
        app_logger.addHandler(handler)
        failures = []
        monkeypatch.setattr(handler, "handleError", failures.append)

        def broken(*args, **kwargs):
            raise RuntimeError("nope")

        monkeypatch.setattr(client, "record", broken)

        app_logger.error("still fine")

        assert len(failures) == 1


class TestExceptHooks:
    @pytest.fixture(autouse=True)
    def restore_hooks(self):
        original = sys.excepthook, threading.excepthook
        yield
        uninstall_excepthooks()
        sys.excepthook, threading.excepthook = original

    def test_install_and_uninstall(self, make_client):
        before = sys.excepthook, threading.excepthook
        client = make_client()

        install_excepthooks(client)
        assert sys.excepthook is hooks._excepthook
        assert threading.excepthook is hooks._threading_excepthook

        uninstall_excepthooks(client)
        assert (sys.excepthook, threading.excepthook) == before

    def test_uninstall_for_other_client_is_noop(self, make_client):
        install_excepthooks(make_client())

        uninstall_excepthooks(make_client())

        assert sys.excepthook is hooks._excepthook

    def test_excepthook_records_fatal_flushes_and_chains(self, make_client, poster, monkeypatch):
        chained = []
        monkeypatch.setattr(sys, "excepthook", lambda *args: chained.append(args))
        client = make_client(poster)
        install_excepthooks(client)

        try:
            raise RuntimeError("crash")
        except RuntimeError:
            exc_info = sys.exc_info()
        sys.excepthook(*exc_info)

        assert poster.call_count == 1
        sent = poster.events()[0]
        assert sent["level"] == "FATAL"
        assert sent["context"]["extra"] == {"source": "excepthook"}
        assert chained == [exc_info]

    def test_thread_exceptions_reported(self, make_client, poster, monkeypatch):
        chained = []
        monkeypatch.setattr(threading, "excepthook", chained.append)
        client = make_client(poster)
        install_excepthooks(client)

        def worker():
            raise ValueError("worker died")

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert poster.call_count == 1
        assert poster.events()[0]["event"]["name"] == "ValueError"
        assert len(chained) == 1

    def test_capture_unhandled_config_installs_on_start(self, make_client):
        client = make_client(capture_unhandled=True).start()
        assert sys.excepthook is hooks._excepthook

        client.shutdown()
        assert sys.excepthook is not hooks._excepthook
