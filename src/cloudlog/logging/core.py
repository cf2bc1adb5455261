"""
Logger factory and the logger object it returns.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping

import structlog
from structlog.typing import EventDict, WrappedLogger

from ..config import LoggerConfig
from ..storage import CloudUploader, create_uploader
from .processors import build_processors, level_number
from .sinks import BaseSink, ConsoleSink, RotatingFileSink

_internal = logging.getLogger("cloudlog.logging")


# =============================================================================
# Sink fan-out
# =============================================================================


class SinkDispatcher:
    """Final processor: renders an event to every sink.

    Returns an empty string so the wrapped logger has nothing to print.
    """

    def __init__(self, sinks: list[BaseSink]):
        self.sinks = sinks

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        for sink in self.sinks:
            try:
                sink.emit(event_dict)
            except Exception:
                _internal.exception("Log sink %s failed", type(sink).__name__)
        return ""


class _NopFile:
    def write(self, s: str) -> None:
        pass

    def flush(self) -> None:
        pass


_NOP_FILE = _NopFile()


# =============================================================================
# Logger
# =============================================================================


class Logger:
    """Leveled logger writing to the console and the rotating file sinks.

    Level methods (``error``, ``warn``, ``info``, ``debug``, ...) are those of
    the underlying structlog bound logger.
    """

    def __init__(
        self,
        bound: Any,
        sinks: list[BaseSink],
        file_sinks: dict[str, RotatingFileSink],
        uploader: CloudUploader | None = None,
    ):
        self._bound = bound
        self.sinks = sinks
        self.file_sinks = file_sinks
        self.uploader = uploader

    def __getattr__(self, name: str) -> Any:
        if name == "_bound":
            raise AttributeError(name)
        return getattr(self._bound, name)

    def _wrap(self, bound: Any) -> "Logger":
        return Logger(bound, self.sinks, self.file_sinks, self.uploader)

    def bind(self, **kw: Any) -> "Logger":
        """Return a logger with `kw` added to every entry, sharing the sinks."""
        return self._wrap(self._bound.bind(**kw))

    def new(self, **kw: Any) -> "Logger":
        """Like `bind`, but starting from an empty context."""
        return self._wrap(self._bound.new(**kw))

    def unbind(self, *keys: str) -> "Logger":
        return self._wrap(self._bound.unbind(*keys))

    def try_unbind(self, *keys: str) -> "Logger":
        return self._wrap(self._bound.try_unbind(*keys))

    def rotate(self) -> None:
        """Finalize the current file of every file sink."""
        for sink in self.file_sinks.values():
            sink.rotate()

    def capture_stdlib(self, level: int = logging.INFO) -> logging.Handler:
        """Route standard library log records through this logger."""
        from .interceptors import RedirectStdLibHandler

        handler = RedirectStdLibHandler(self)
        root_logger = logging.getLogger()
        root_logger.addHandler(handler)
        root_logger.setLevel(level)
        return handler

    def close(self, wait: bool = True, finalize: bool = True) -> None:
        """Close every sink, then wait for in-flight uploads when `wait`.

        With `finalize`, the files still being written are finalized (and so
        uploaded) like rotated ones. Empty files are left in place.
        """
        for sink in self.sinks:
            if isinstance(sink, RotatingFileSink):
                sink.close(finalize=finalize)
            else:
                sink.close()
        if self.uploader is not None:
            self.uploader.shutdown(wait=wait)


# =============================================================================
# Factory
# =============================================================================


def _resolve_config(config: LoggerConfig | Mapping[str, Any] | None, overrides: Mapping[str, Any]) -> LoggerConfig:
    if config is None:
        return LoggerConfig(**overrides)
    if isinstance(config, LoggerConfig):
        if not overrides:
            return config
        return LoggerConfig.model_validate({**config.model_dump(), **overrides})
    return LoggerConfig(**{**config, **overrides})


def create_logger(config: LoggerConfig | Mapping[str, Any] | None = None, **overrides: Any) -> Logger:
    """
    Create a logger with console output, rotating error/info files and
    optional cloud upload of finalized files.

    Args:
        config: A `LoggerConfig`, a mapping of its fields, or None for defaults
        **overrides: Fields applied on top of `config`

    Raises:
        pydantic.ValidationError: If a field has an invalid value
        OSError: If the log directory cannot be created
    """
    cfg = _resolve_config(config, overrides)

    log_dir = Path(cfg.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    rotation = cfg.rotation
    file_sinks = {
        name: RotatingFileSink(
            log_dir,
            prefix=name,
            level=name,
            date_pattern=rotation.date_pattern,
            max_size=rotation.max_size,
            retention_days=rotation.retention_days,
            compress=rotation.compress,
            fmt=cfg.file_format,
        )
        for name in ("error", "info")
    }

    uploader = create_uploader(cfg.cloud, cfg.s3_config, cfg.azure_config)
    if uploader is not None:
        for sink in file_sinks.values():
            sink.add_finalize_listener(uploader.on_file_finalized)

    for sink in file_sinks.values():
        sink.finalize_stale_files()

    sinks: list[BaseSink] = []
    if cfg.console:
        sinks.append(ConsoleSink(stream=sys.stdout, use_color=cfg.console_color))
    sinks.extend(file_sinks.values())

    bound = structlog.wrap_logger(
        structlog.PrintLogger(file=_NOP_FILE),
        processors=build_processors(cfg.label) + [SinkDispatcher(sinks)],
        wrapper_class=structlog.make_filtering_bound_logger(level_number(cfg.level.value)),
        context_class=dict,
    )
    return Logger(bound, sinks, file_sinks, uploader)
