"""Integrations that feed Banshee from the standard library.

BansheeHandler forwards ``logging`` records to a Client.
install_excepthooks() reports uncaught exceptions from the main thread and
from worker threads as FATAL events.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import TYPE_CHECKING

from banshee.core.event import EventLevel
from banshee.core.logging import HOOKS_LOGGER, get_logger, is_banshee_logger

if TYPE_CHECKING:
    from banshee.core.client import Client

_hook_lock = threading.Lock()
_installed_for: Client | None = None
_previous_excepthook = None
_previous_threading_excepthook = None


def level_for(levelno: int) -> EventLevel:
    """Map a logging level number to an EventLevel."""
    if levelno >= logging.CRITICAL:
        return EventLevel.FATAL
    if levelno >= logging.ERROR:
        return EventLevel.ERROR
    if levelno >= logging.WARNING:
        return EventLevel.WARNING
    if levelno >= logging.INFO:
        return EventLevel.INFO
    return EventLevel.DEBUG


class BansheeHandler(logging.Handler):
    """
    Logging handler that records log records as Banshee events.

    Records from Banshee's own loggers are skipped.
    """

    def __init__(self, client: Client, level: int = logging.WARNING) -> None:
        super().__init__(level=level)
        self.client = client

    def emit(self, record: logging.LogRecord) -> None:
        if is_banshee_logger(record.name):
            return
        try:
            error = None
            if record.exc_info and record.exc_info[1] is not None:
                error = record.exc_info[1]
            self.client.record(
                record.getMessage(),
                error,
                level_for(record.levelno),
                {
                    "logger": record.name,
                    "module": record.module,
                    "lineno": record.lineno,
                },
            )
        except Exception:
            # Never break application logging.
            self.handleError(record)


def install_excepthooks(client: Client) -> None:
    """Report uncaught exceptions to client, then defer to the previous hooks.

    Installing again replaces the target client but keeps the original
    previous hooks, so hooks never chain into themselves.
    """
    global _installed_for, _previous_excepthook, _previous_threading_excepthook

    with _hook_lock:
        if _installed_for is None:
            _previous_excepthook = sys.excepthook
            _previous_threading_excepthook = threading.excepthook
            sys.excepthook = _excepthook
            threading.excepthook = _threading_excepthook
        _installed_for = client


def uninstall_excepthooks(client: Client | None = None) -> None:
    """Restore the hooks that were active before install_excepthooks().

    When client is given, only uninstall if the hooks report to that client.
    """
    global _installed_for, _previous_excepthook, _previous_threading_excepthook

    with _hook_lock:
        if _installed_for is None or (client is not None and client is not _installed_for):
            return
        sys.excepthook = _previous_excepthook
        threading.excepthook = _previous_threading_excepthook
        _installed_for = None
        _previous_excepthook = None
        _previous_threading_excepthook = None


def _report(error: BaseException, source: str) -> None:
    client = _installed_for
    if client is None:
        return
    try:
        client.error(error, EventLevel.FATAL, {"source": source})
        client.force_flush()
    except Exception as e:
        get_logger(HOOKS_LOGGER).error(
            f"Failed to report uncaught exception: {e}",
            extra={"client": client.name, "error": str(e)},
        )


def _excepthook(exc_type, exc_value, exc_tb) -> None:
    if not issubclass(exc_type, KeyboardInterrupt):
        _report(exc_value, "excepthook")
    previous = _previous_excepthook or sys.__excepthook__
    previous(exc_type, exc_value, exc_tb)


def _threading_excepthook(args: threading.ExceptHookArgs) -> None:
    if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
        _report(args.exc_value, "threading.excepthook")
    previous = _previous_threading_excepthook or threading.__excepthook__
    previous(args)
