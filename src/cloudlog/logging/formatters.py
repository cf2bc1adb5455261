"""
Log line formatters and color utilities.
"""

from __future__ import annotations

from typing import Any

import orjson
from structlog.typing import EventDict

# =============================================================================
# ANSI Colors
# =============================================================================

RESET = "\x1b[0m"

LEVEL_COLORS = {
    "debug": "\x1b[34m",
    "info": "\x1b[32m",
    "warn": "\x1b[33m",
    "error": "\x1b[31m",
    "critical": "\x1b[1;31m",
}


def colorize(text: str, level: str) -> str:
    """Wrap text in the ANSI color of a level; unknown levels pass through."""
    color = LEVEL_COLORS.get(level)
    if not color:
        return text
    return f"{color}{text}{RESET}"


# =============================================================================
# JSON Serialization
# =============================================================================


def orjson_dumps(v: Any, *, default: Any = str) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(v, default=default, option=orjson.OPT_NAIVE_UTC).decode()


# =============================================================================
# Line Formatter
# =============================================================================


class LineFormatter:
    """Renders ``<timestamp> [<label>] <level>: <stack-or-message>``.

    Bound key/values that are not part of the line itself are appended as
    ``key=value`` pairs to the first line, so a multi-line stack stays
    intact below them.
    """

    EXCLUDED_KEYS = {"level", "message", "event", "label", "timestamp", "stack"}

    @classmethod
    def _extras(cls, event_dict: EventDict) -> str:
        return " ".join(f"{k}={v}" for k, v in event_dict.items() if k not in cls.EXCLUDED_KEYS)

    @classmethod
    def format(cls, event_dict: EventDict, *, use_color: bool = False) -> str:
        level = str(event_dict.get("level", "info"))
        body = str(event_dict.get("stack") or event_dict.get("message", event_dict.get("event", "")))
        first, newline, rest = body.partition("\n")

        line = f"{event_dict.get('timestamp', '')} [{event_dict.get('label', '')}] {level}: {first}"
        extras = cls._extras(event_dict)
        if extras:
            line = f"{line} {extras}"
        line = f"{line}{newline}{rest}"

        if use_color:
            return colorize(line, level)
        return line


class JsonFormatter:
    """Renders one JSON object per line."""

    @staticmethod
    def format(event_dict: EventDict, *, use_color: bool = False) -> str:
        return orjson_dumps(event_dict)
