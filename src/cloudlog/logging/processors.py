"""
Structlog processors that build a log entry.

Chain order: level → label → timestamp → error expansion → message rename.
"""

from __future__ import annotations

import logging
import sys
import traceback

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Most to least severe: critical, error, warn, info, debug.
LEVEL_NUMBERS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def level_number(level: str) -> int:
    """Numeric severity of a level name (``warning`` is accepted for ``warn``)."""
    name = level.lower()
    if name == "warning":
        name = "warn"
    return LEVEL_NUMBERS[name]


def normalize_level(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Render ``warning`` as ``warn`` and ``exception`` as ``error``."""
    level = event_dict.get("level", method_name)
    if level == "warning":
        event_dict["level"] = "warn"
    elif level == "exception":
        event_dict["level"] = "error"
    return event_dict


class LabelInjector:
    """Stamp a fixed label on every entry, unless one was bound explicitly."""

    def __init__(self, label: str):
        self._label = label

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("label", self._label)
        return event_dict


def _format_exception(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()


def expand_errors(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Turn exceptions into a ``stack`` field.

    An exception passed as the event becomes its message plus its traceback.
    A string event logged with ``exc_info`` keeps the message as the first
    line of the stack.
    """
    event = event_dict.get("event")
    if isinstance(event, BaseException):
        event_dict["event"] = str(event)
        event_dict["stack"] = _format_exception(event)
        event_dict.pop("exc_info", None)
        return event_dict

    exc_info = event_dict.pop("exc_info", None)
    if not exc_info:
        return event_dict

    if isinstance(exc_info, BaseException):
        exc = exc_info
    elif isinstance(exc_info, tuple):
        exc = exc_info[1]
    else:
        exc = sys.exc_info()[1]

    if exc is not None:
        event_dict["stack"] = f"{event}\n{_format_exception(exc)}"
    return event_dict


def rename_event_key(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def build_processors(label: str) -> list[Processor]:
    """Processors shared by every sink, in rendering order."""
    return [
        structlog.stdlib.add_log_level,
        normalize_level,
        LabelInjector(label),
        structlog.processors.TimeStamper(fmt=TIMESTAMP_FORMAT, utc=False, key="timestamp"),
        expand_errors,
        rename_event_key,
    ]
