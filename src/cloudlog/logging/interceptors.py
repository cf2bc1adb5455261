"""
Interceptors for capturing standard library logs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .core import Logger

_LEVEL_METHODS = {
    logging.CRITICAL: "critical",
    logging.ERROR: "error",
    logging.WARNING: "warning",
    logging.INFO: "info",
    logging.DEBUG: "debug",
}


class RedirectStdLibHandler(logging.Handler):
    """
    Redirect standard library logging records into a `Logger`, so
    third-party libraries end up in the same console and file sinks.

    Records from ``cloudlog.*`` report sink and upload failures and must not
    feed back into the sinks. They go to `logging.lastResort` (stderr)
    instead, which the root logger no longer reaches once this handler is
    installed.
    """

    def __init__(self, target: "Logger", level: int = logging.NOTSET):
        super().__init__(level)
        self._target = target

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.name == "cloudlog" or record.name.startswith("cloudlog."):
                self._fallback(record)
                return

            msg = record.getMessage()
            method = getattr(self._target, self._method_name(record.levelno))
            kw = {"logger": self._simplify_logger_name(record.name)}
            if record.exc_info:
                kw["exc_info"] = record.exc_info
            method(msg, **kw)
        except Exception:
            self.handleError(record)

    @staticmethod
    def _fallback(record: logging.LogRecord) -> None:
        handler = logging.lastResort
        if handler is not None and record.levelno >= handler.level:
            handler.handle(record)

    @staticmethod
    def _method_name(levelno: int) -> str:
        for threshold in sorted(_LEVEL_METHODS, reverse=True):
            if levelno >= threshold:
                return _LEVEL_METHODS[threshold]
        return "debug"

    @staticmethod
    def _simplify_logger_name(name: str) -> str:
        """
        Simplify a logger name for display.

        - "" -> "stdlib"
        - "uvicorn.access" -> "uvicorn.access"
        - "botocore.credentials.provider" -> "credentials.provider"
        """
        if not name:
            return "stdlib"
        parts = name.split(".")
        if len(parts) <= 2:
            return name
        return ".".join(parts[-2:])
