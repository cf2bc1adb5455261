"""
Line formatter tests.
"""

from __future__ import annotations

import orjson

from cloudlog.logging.formatters import RESET, JsonFormatter, LineFormatter, colorize


def _entry(**kw):
    entry = {
        "level": "info",
        "timestamp": "2024-01-01 12:00:00",
        "label": "test",
        "message": "Hello from test",
    }
    entry.update(kw)
    return entry


class TestLineFormatter:
    def test_renders_timestamp_label_level_message(self) -> None:
        assert LineFormatter.format(_entry()) == "2024-01-01 12:00:00 [test] info: Hello from test"

    def test_stack_replaces_message(self) -> None:
        line = LineFormatter.format(_entry(level="error", stack="Traceback ...\nValueError: boom"))
        assert line == "2024-01-01 12:00:00 [test] error: Traceback ...\nValueError: boom"

    def test_extra_fields_are_appended(self) -> None:
        line = LineFormatter.format(_entry(user="ada", attempt=2))
        assert line == "2024-01-01 12:00:00 [test] info: Hello from test user=ada attempt=2"

    def test_extra_fields_stay_on_first_line_of_stack(self) -> None:
        line = LineFormatter.format(
            _entry(level="error", stack="request failed\nTraceback ...\nValueError: boom", request_id="abc")
        )
        assert line.splitlines() == [
            "2024-01-01 12:00:00 [test] error: request failed request_id=abc",
            "Traceback ...",
            "ValueError: boom",
        ]

    def test_color_wraps_whole_line(self) -> None:
        line = LineFormatter.format(_entry(level="error"), use_color=True)
        assert line == "\x1b[31m2024-01-01 12:00:00 [test] error: Hello from test" + RESET

    def test_no_color_by_default(self) -> None:
        assert "\x1b[" not in LineFormatter.format(_entry(level="warn"))


class TestColorize:
    def test_known_levels(self) -> None:
        assert colorize("x", "warn") == "\x1b[33mx" + RESET
        assert colorize("x", "debug") == "\x1b[34mx" + RESET

    def test_unknown_level_is_untouched(self) -> None:
        assert colorize("x", "trace") == "x"


class TestJsonFormatter:
    def test_one_object_per_entry(self) -> None:
        line = JsonFormatter.format(_entry(count=3))
        assert "\n" not in line
        assert orjson.loads(line) == _entry(count=3)

    def test_non_serializable_values_fall_back_to_str(self) -> None:
        line = JsonFormatter.format(_entry(obj=object))
        assert orjson.loads(line)["obj"] == str(object)
