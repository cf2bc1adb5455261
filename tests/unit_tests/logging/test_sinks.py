"""
Sink tests: level filtering, console rendering and file rotation.
"""

from __future__ import annotations

import gzip
import io
import logging
import os
import threading
import time
from datetime import datetime
from unittest.mock import patch

import orjson

from cloudlog.logging.sinks import ConsoleSink, RotatingFileSink


def _entry(level: str = "info", message: str = "hello") -> dict:
    return {"level": level, "timestamp": "2024-01-01 12:00:00", "label": "app", "message": message}


class TestConsoleSink:
    def test_writes_plain_line(self) -> None:
        stream = io.StringIO()
        ConsoleSink(stream=stream).emit(_entry())
        assert stream.getvalue() == "2024-01-01 12:00:00 [app] info: hello\n"

    def test_colors_when_forced(self) -> None:
        stream = io.StringIO()
        ConsoleSink(stream=stream, use_color=True).emit(_entry(level="error"))
        assert stream.getvalue().startswith("\x1b[31m")

    def test_non_tty_stream_is_not_colored(self) -> None:
        stream = io.StringIO()
        ConsoleSink(stream=stream).emit(_entry(level="error"))
        assert "\x1b[" not in stream.getvalue()

    def test_level_filter(self) -> None:
        stream = io.StringIO()
        sink = ConsoleSink(level="warn", stream=stream)
        sink.emit(_entry(level="info"))
        sink.emit(_entry(level="warn", message="careful"))
        assert stream.getvalue() == "2024-01-01 12:00:00 [app] warn: careful\n"


class TestRotatingFileSinkWriting:
    def test_file_named_by_prefix_and_date(self, log_dir, clock) -> None:
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        assert sink.path == log_dir / "info-2024-01-01.log"
        sink.close()

    def test_creates_directory(self, tmp_path, clock) -> None:
        target = tmp_path / "a" / "b"
        RotatingFileSink(target, "info", clock=clock).close()
        assert target.is_dir()

    def test_level_filter(self, log_dir, clock) -> None:
        sink = RotatingFileSink(log_dir, "error", level="error", clock=clock)
        sink.emit(_entry(level="info", message="skip me"))
        sink.emit(_entry(level="warn", message="skip me too"))
        sink.emit(_entry(level="error", message="keep me"))
        sink.close()

        assert sink.path.read_text() == "2024-01-01 12:00:00 [app] error: keep me\n"

    def test_info_sink_accepts_more_severe_levels(self, log_dir, clock) -> None:
        sink = RotatingFileSink(log_dir, "info", level="info", clock=clock)
        for level in ("debug", "info", "warn", "error"):
            sink.emit(_entry(level=level, message=level))
        sink.close()

        lines = sink.path.read_text().splitlines()
        assert [line.rsplit(": ", 1)[1] for line in lines] == ["info", "warn", "error"]

    def test_json_format(self, log_dir, clock) -> None:
        sink = RotatingFileSink(log_dir, "info", fmt="json", clock=clock)
        sink.emit(_entry(message="structured"))
        sink.close()

        assert orjson.loads(sink.path.read_text())["message"] == "structured"

    def test_appends_to_existing_file(self, log_dir, clock) -> None:
        first = RotatingFileSink(log_dir, "info", clock=clock)
        first.emit(_entry(message="one"))
        first.close()

        second = RotatingFileSink(log_dir, "info", clock=clock)
        second.emit(_entry(message="two"))
        second.close()

        assert second.path == first.path
        assert len(second.path.read_text().splitlines()) == 2

    def test_writes_after_close_are_dropped(self, log_dir, clock) -> None:
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.close()
        sink.emit(_entry())
        assert sink.path.read_text() == ""


class TestRotatingFileSinkRotation:
    def test_date_change_finalizes_and_compresses(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)

        sink.emit(_entry(message="day one"))
        clock.now = datetime(2024, 1, 2, 0, 0, 1)
        sink.emit(_entry(message="day two"))
        sink.close()

        archive = log_dir / "info-2024-01-01.log.gz"
        assert finalized == [str(archive)]
        assert not (log_dir / "info-2024-01-01.log").exists()
        with gzip.open(archive, "rt", encoding="utf-8") as fh:
            assert "day one" in fh.read()
        assert sink.path == log_dir / "info-2024-01-02.log"
        assert "day two" in sink.path.read_text()

    def test_size_rollover_uses_next_index(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", max_size=100, clock=clock)
        sink.add_finalize_listener(finalized.append)

        sink.emit(_entry(message="x" * 100))
        sink.wait_finalized()
        assert finalized == [str(log_dir / "info-2024-01-01.log.gz")]
        assert sink.path == log_dir / "info-2024-01-01.1.log"

        sink.emit(_entry(message="y" * 100))
        sink.wait_finalized()
        assert finalized[-1] == str(log_dir / "info-2024-01-01.1.log.gz")
        assert sink.path == log_dir / "info-2024-01-01.2.log"
        sink.close()

    def test_small_writes_do_not_rotate(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        for _ in range(10):
            sink.emit(_entry())
        sink.close()
        assert finalized == []

    def test_without_compression(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "error", compress=False, clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.rotate()
        sink.close()

        assert finalized == [str(log_dir / "error-2024-01-01.log")]
        assert sink.path == log_dir / "error-2024-01-01.1.log"

    def test_every_listener_called_once_per_file(self, log_dir, clock) -> None:
        first, second = [], []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(first.append)
        sink.add_finalize_listener(second.append)
        sink.rotate()
        sink.close()

        assert len(first) == 1
        assert first == second

    def test_removed_listener_not_called(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.remove_finalize_listener(finalized.append)
        sink.rotate()
        sink.close()
        assert finalized == []

    def test_rotate_after_close_is_noop(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.close()
        sink.rotate()
        assert finalized == []

    def test_retention_purges_old_files(self, log_dir, clock) -> None:
        log_dir.mkdir(parents=True)
        expired = log_dir / "info-2023-11-01.log.gz"
        recent = log_dir / "info-2023-12-30.log.gz"
        other = log_dir / "error-2023-11-01.log.gz"
        for path in (expired, recent, other):
            path.write_bytes(b"")
        old = time.time() - 40 * 24 * 60 * 60
        os.utime(expired, (old, old))
        os.utime(other, (old, old))

        sink = RotatingFileSink(log_dir, "info", retention_days=30, clock=clock)
        sink.rotate()
        sink.close()

        assert not expired.exists()
        assert recent.exists()
        assert other.exists()

    def test_zero_retention_keeps_everything(self, log_dir, clock) -> None:
        log_dir.mkdir(parents=True)
        expired = log_dir / "info-2020-01-01.log.gz"
        expired.write_bytes(b"")
        old = time.time() - 400 * 24 * 60 * 60
        os.utime(expired, (old, old))

        sink = RotatingFileSink(log_dir, "info", retention_days=0, clock=clock)
        sink.rotate()
        sink.close()

        assert expired.exists()

    def test_purge_errors_do_not_stop_finalization(self, log_dir, clock, caplog) -> None:
        log_dir.mkdir(parents=True)
        stuck = log_dir / "info-2023-11-01.log.d"
        stuck.mkdir()
        old = time.time() - 40 * 24 * 60 * 60
        os.utime(stuck, (old, old))

        finalized = []
        sink = RotatingFileSink(log_dir, "info", retention_days=30, clock=clock)
        sink.add_finalize_listener(finalized.append)
        with caplog.at_level(logging.ERROR, logger="cloudlog.logging"):
            sink.rotate()
            sink.close()

        assert finalized == [str(log_dir / "info-2024-01-01.log.gz")]
        assert stuck.exists()
        assert any("Could not purge" in record.getMessage() for record in caplog.records)


class TestRotatingFileSinkFailures:
    def test_compression_failure_keeps_sink_writable(self, log_dir, clock, caplog) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.emit(_entry(message="before"))

        with patch("cloudlog.logging.sinks.gzip.open", side_effect=OSError("disk full")), caplog.at_level(
            logging.ERROR, logger="cloudlog.logging"
        ):
            sink.rotate()
            sink.wait_finalized()
        sink.emit(_entry(message="after"))
        sink.close()

        first = log_dir / "info-2024-01-01.log"
        assert finalized == [str(first)]
        assert "before" in first.read_text()
        assert not (log_dir / "info-2024-01-01.log.gz").exists()
        assert "after" in sink.path.read_text()
        assert any("Compression" in record.getMessage() for record in caplog.records)

    def test_failed_rollover_keeps_current_file(self, log_dir, clock, caplog) -> None:
        sink = RotatingFileSink(log_dir, "info", max_size=100, clock=clock)
        current = sink.path

        with patch.object(RotatingFileSink, "_next_path", side_effect=OSError("no space")), caplog.at_level(
            logging.ERROR, logger="cloudlog.logging"
        ):
            sink.emit(_entry(message="x" * 100))
            sink.emit(_entry(message="still here"))
        sink.close()

        assert sink.path == current
        assert "still here" in current.read_text()
        assert any("Rotation" in record.getMessage() for record in caplog.records)

    def test_listener_errors_do_not_reach_other_listeners(self, log_dir, clock) -> None:
        finalized = []

        def broken(path: str) -> None:
            raise RuntimeError("listener down")

        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(broken)
        sink.add_finalize_listener(finalized.append)
        sink.rotate()
        sink.close()

        assert finalized == [str(log_dir / "info-2024-01-01.log.gz")]


class TestRotatingFileSinkFinalization:
    def test_compression_runs_off_the_calling_thread(self, log_dir, clock) -> None:
        threads = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(lambda path: threads.append(threading.current_thread().name))
        sink.rotate()
        sink.close()

        assert len(threads) == 1
        assert threads[0] != threading.current_thread().name
        assert threads[0].startswith("cloudlog-info")

    def test_slow_listener_does_not_block_writes(self, log_dir, clock) -> None:
        release = threading.Event()
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(lambda path: release.wait(10))

        sink.rotate()
        sink.emit(_entry(message="not blocked"))
        assert "not blocked" in sink.path.read_text()

        release.set()
        sink.close()

    def test_close_with_finalize(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.emit(_entry(message="last words"))
        sink.close(finalize=True)

        archive = log_dir / "info-2024-01-01.log.gz"
        assert finalized == [str(archive)]
        with gzip.open(archive, "rt", encoding="utf-8") as fh:
            assert "last words" in fh.read()

    def test_close_with_finalize_skips_empty_file(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.close(finalize=True)

        assert finalized == []
        assert sink.path.exists()

    def test_close_without_finalize_leaves_file(self, log_dir, clock) -> None:
        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.emit(_entry())
        sink.close()

        assert finalized == []
        assert sink.path.read_text()

    def test_stale_files_from_earlier_dates(self, log_dir, clock) -> None:
        log_dir.mkdir(parents=True)
        stale = log_dir / "info-2023-12-31.log"
        stale.write_text("from yesterday\n")
        empty = log_dir / "info-2023-12-30.log"
        empty.write_text("")
        today = log_dir / "info-2024-01-01.log"
        today.write_text("from this morning\n")

        finalized = []
        sink = RotatingFileSink(log_dir, "info", clock=clock)
        sink.add_finalize_listener(finalized.append)
        sink.finalize_stale_files()
        sink.close()

        assert finalized == [str(log_dir / "info-2023-12-31.log.gz")]
        assert not stale.exists()
        assert not empty.exists()
        assert today.exists()
