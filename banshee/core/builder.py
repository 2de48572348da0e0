"""Event construction: culprit, stack text, tags and environment labels."""

from __future__ import annotations

import socket
import sys
import traceback
from types import FrameType
from typing import Any, Mapping

from banshee.core.event import Event, EventContext, EventLevel, SerializedError

UNKNOWN_ERROR_NAME = "UnknownError"
UNKNOWN_ERROR_MESSAGE = "Unknown error"
CUSTOM_EVENT_NAME = "Event"

_PACKAGE = __name__.split(".")[0]


class EventBuilder:
    """Builds immutable Events stamped with this process's labels.

    Args:
        app: Application label.
        version: Application version label.
        platform: Platform label. Defaults to sys.platform.
        device: Device label. Defaults to the host name.
    """

    def __init__(
        self,
        app: str | None = None,
        version: str | None = None,
        platform: str | None = None,
        device: str | None = None,
    ) -> None:
        self.app = app
        self.version = version
        self.platform = platform or sys.platform
        self.device = device or _hostname()

    def build(
        self,
        title: str,
        error: BaseException | None = None,
        level: EventLevel | str = EventLevel.ERROR,
        metadata: Mapping[str, Any] | None = None,
    ) -> Event:
        """Build an Event for an error, or for a custom event when error is None."""
        frame = _caller_frame()
        title = (title or "").strip() or UNKNOWN_ERROR_MESSAGE

        return Event(
            title=title,
            level=EventLevel(level.upper()),
            event=self.serialize_error(error, title, frame),
            context=EventContext(
                culprit=self.extract_culprit(error, frame),
                extra=dict(metadata) if metadata else None,
                platform=self.platform,
                app=self.app,
                version=self.version,
                device=self.device,
                tags=self.extract_tags(error),
            ),
        )

    def serialize_error(
        self,
        error: BaseException | None,
        title: str,
        frame: FrameType | None = None,
    ) -> SerializedError:
        if error is None:
            return SerializedError(name=CUSTOM_EVENT_NAME, message=title)

        if error.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        elif frame is not None:
            stack = "".join(traceback.format_stack(frame))
        else:
            stack = None

        attributes = {
            key: value
            for key, value in getattr(error, "__dict__", {}).items()
            if not key.startswith("_")
        }
        return SerializedError(
            name=type(error).__name__,
            message=str(error) or UNKNOWN_ERROR_MESSAGE,
            stack=stack,
            extra=attributes or None,
        )

    def extract_culprit(self, error: BaseException | None, frame: FrameType | None = None) -> str:
        """Name the code location responsible, as ``module.function:line``."""
        tb = error.__traceback__ if error is not None else None
        if tb is not None:
            while tb.tb_next is not None:
                tb = tb.tb_next
            return _describe_frame(tb.tb_frame, tb.tb_lineno)
        if frame is not None:
            return _describe_frame(frame, frame.f_lineno)
        if error is not None:
            return type(error).__name__
        return "Unknown"

    def extract_tags(self, error: BaseException | None) -> tuple[str, ...]:
        if error is None:
            return ()
        tags = [f"error:{type(error).__name__}"]
        code = getattr(error, "code", None) or getattr(error, "errno", None)
        if code is not None:
            tags.append(f"code:{code}")
        return tuple(tags)


def _caller_frame() -> FrameType | None:
    """First stack frame outside this package."""
    frame = sys._getframe(1)
    while frame is not None:
        module = frame.f_globals.get("__name__", "")
        if module.split(".")[0] != _PACKAGE:
            return frame
        frame = frame.f_back
    return None


def _describe_frame(frame: FrameType, lineno: int) -> str:
    module = frame.f_globals.get("__name__", "<unknown>")
    return f"{module}.{frame.f_code.co_name}:{lineno}"


def _hostname() -> str:
    try:
        return socket.gethostname() or "unknown"
    except OSError:
        return "unknown"
