"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

import gzip
import logging
import shutil
import sys
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Literal, TextIO

from structlog.typing import EventDict

from .formatters import JsonFormatter, LineFormatter
from .processors import level_number

FinalizeListener = Callable[[str], Any]
Clock = Callable[[], datetime]

_SECONDS_PER_DAY = 24 * 60 * 60

_internal = logging.getLogger("cloudlog.logging")


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks.

    A sink drops entries below its own minimum level before rendering.
    """

    def __init__(self, level: str = "debug"):
        self.level = level
        self._level_no = level_number(level)

    def accepts(self, event_dict: EventDict) -> bool:
        return level_number(str(event_dict.get("level", "info"))) >= self._level_no

    def emit(self, event_dict: EventDict) -> None:
        """Emit a log event to the sink if it passes the level filter."""
        if self.accepts(event_dict):
            self.write(event_dict)

    @abstractmethod
    def write(self, event_dict: EventDict) -> None:
        """Render and write an event that already passed the level filter."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class ConsoleSink(BaseSink):
    """Standard output sink, colored by level.

    Args:
        level: Minimum level written
        stream: Output stream (default: stdout)
        use_color: Force colors on or off; None colors only TTY streams
    """

    def __init__(self, level: str = "debug", stream: TextIO | None = None, use_color: bool | None = None):
        super().__init__(level)
        self._stream = stream or sys.stdout
        if use_color is None:
            use_color = bool(getattr(self._stream, "isatty", lambda: False)())
        self._use_color = use_color

    def write(self, event_dict: EventDict) -> None:
        self._stream.write(LineFormatter.format(event_dict, use_color=self._use_color) + "\n")
        self._stream.flush()

    def close(self) -> None:
        pass


class RotatingFileSink(BaseSink):
    """Daily file sink with size roll-over, gzip and retention.

    Writes ``<directory>/<prefix>-<date>.log``. A file that grows past
    ``max_size`` within one day is closed and the sink continues in
    ``<prefix>-<date>.<n>.log``. Closing a file for either reason finalizes
    it on a background worker: it is compressed (when enabled) and every
    finalize listener is called with the path of the finished file. The
    caller only pays for opening the next file.

    Args:
        directory: Directory holding the log files
        prefix: File name prefix, e.g. "error"
        level: Minimum level written
        date_pattern: strftime pattern for the date part of the name
        max_size: Size in bytes that triggers a roll-over
        retention_days: Rotated files older than this are deleted (0 keeps all)
        compress: gzip finalized files
        fmt: "text" lines or "json" objects
        clock: Source of the current time
        executor: Runs finalization (default: a private single worker)
    """

    def __init__(
        self,
        directory: str | Path,
        prefix: str,
        level: str = "info",
        *,
        date_pattern: str = "%Y-%m-%d",
        max_size: int = 20 * 1024 * 1024,
        retention_days: int = 30,
        compress: bool = True,
        fmt: Literal["text", "json"] = "text",
        clock: Clock = datetime.now,
        executor: Executor | None = None,
    ):
        super().__init__(level)
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._prefix = prefix
        self._date_pattern = date_pattern
        self._max_size = max_size
        self._retention_days = retention_days
        self._compress = compress
        self._formatter = JsonFormatter if fmt == "json" else LineFormatter
        self._clock = clock
        self._listeners: list[FinalizeListener] = []
        self._lock = threading.RLock()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"cloudlog-{prefix}")
        self._pending: set[Future] = set()

        self._date = self._current_date()
        self._index, self._path = self._next_path(self._date)
        self._file: TextIO | None = open(self._path, "a", encoding="utf-8")

    # -------------------------------------------------------------------------
    # Finalize listeners
    # -------------------------------------------------------------------------

    def add_finalize_listener(self, listener: FinalizeListener) -> None:
        """Register a callback invoked with the path of each finalized file."""
        self._listeners.append(listener)

    def remove_finalize_listener(self, listener: FinalizeListener) -> None:
        self._listeners.remove(listener)

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    @property
    def path(self) -> Path:
        """Path of the file currently being written."""
        return self._path

    def _current_date(self) -> str:
        return self._clock().strftime(self._date_pattern)

    def _candidate(self, date: str, index: int) -> Path:
        if index == 0:
            return self._dir / f"{self._prefix}-{date}.log"
        return self._dir / f"{self._prefix}-{date}.{index}.log"

    def _next_path(self, date: str, start: int = 0) -> tuple[int, Path]:
        """First index and name for `date`, from `start`, that is not archived and still has room."""
        index = start
        while True:
            candidate = self._candidate(date, index)
            archived = candidate.with_name(candidate.name + ".gz").exists()
            full = candidate.exists() and candidate.stat().st_size >= self._max_size
            if not archived and not full:
                return index, candidate
            index += 1


    # -------------------------------------------------------------------------
    # Writing and rotation
    # -------------------------------------------------------------------------

    def write(self, event_dict: EventDict) -> None:
        line = self._formatter.format(event_dict) + "\n"
        with self._lock:
            if self._file is None:
                return
            if self._current_date() != self._date:
                self._try_rotate()
            self._file.write(line)
            self._file.flush()
            if self._file.tell() >= self._max_size:
                self._try_rotate()

    def rotate(self) -> None:
        """Finalize the current file now and continue in a new one."""
        with self._lock:
            if self._file is not None:
                self._rotate()

    def _try_rotate(self) -> None:
        try:
            self._rotate()
        except OSError:
            _internal.exception("Rotation of %s failed, still writing to it", self._path)

    def _rotate(self) -> None:
        # Open the next file first: a failure leaves the current one in use.
        date = self._current_date()
        start = self._index + 1 if date == self._date else 0
        index, path = self._next_path(date, start)
        next_file = open(path, "a", encoding="utf-8")

        self._file.close()
        finished = self._path
        self._date, self._index, self._path, self._file = date, index, path, next_file
        self._submit_finalize(finished)

    # -------------------------------------------------------------------------
    # Finalization (background worker)
    # -------------------------------------------------------------------------

    def _submit_finalize(self, path: Path) -> None:
        future = self._executor.submit(self._finalize, path)
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    def wait_finalized(self, timeout: float | None = None) -> None:
        """Block until every file handed off so far is compressed and announced."""
        wait(list(self._pending), timeout=timeout)

    def finalize_stale_files(self) -> None:
        """Finalize files of earlier dates left behind by a previous process.

        Empty leftovers are deleted instead.
        """
        today = f"{self._prefix}-{self._date}."
        for candidate in sorted(self._dir.glob(f"{self._prefix}-*.log")):
            if candidate.name.startswith(today):
                continue
            if candidate.with_name(candidate.name + ".gz").exists():
                continue
            try:
                if candidate.stat().st_size == 0:
                    candidate.unlink()
                    continue
            except FileNotFoundError:
                continue
            self._submit_finalize(candidate)

    def _finalize(self, path: Path) -> None:
        finished = path
        if self._compress:
            try:
                finished = self._compress_file(path)
            except OSError:
                _internal.exception("Compression of %s failed, keeping it uncompressed", path)

        for listener in list(self._listeners):
            try:
                listener(str(finished))
            except Exception:
                _internal.exception("Finalize listener failed for %s", finished)

        self._purge_expired()

    @staticmethod
    def _compress_file(path: Path) -> Path:
        archive = path.with_name(path.name + ".gz")
        try:
            with open(path, "rb") as src, gzip.open(archive, "wb") as dst:
                shutil.copyfileobj(src, dst)
        except OSError:
            archive.unlink(missing_ok=True)
            raise
        path.unlink()
        return archive

    def _purge_expired(self) -> None:
        if self._retention_days <= 0:
            return
        cutoff = time.time() - self._retention_days * _SECONDS_PER_DAY
        for candidate in self._dir.glob(f"{self._prefix}-*.log*"):
            if candidate == self._path:
                continue
            try:
                if candidate.stat().st_mtime < cutoff:
                    candidate.unlink(missing_ok=True)
            except FileNotFoundError:
                continue
            except OSError:
                _internal.exception("Could not purge expired log file %s", candidate)

    def close(self, finalize: bool = False) -> None:
        """Close the current file and wait for pending finalization.

        With `finalize`, a non-empty current file is finalized like a
        rotated one before the worker stops.
        """
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
                if finalize and self._path.exists() and self._path.stat().st_size > 0:
                    self._submit_finalize(self._path)
        self.wait_finalized()
        if self._owns_executor:
            self._executor.shutdown(wait=True)
