"""
Leveled, labeled logging to the console and rotating files.

Sinks:
- console: stdout, colored by level
- error / info: daily files with size roll-over, gzip and retention

Finalized files can be shipped to S3 or Azure Blob Storage through the
listener interface of `RotatingFileSink`.

Design Pattern: Strategy Pattern for sinks and upload targets.
Library: structlog processors + orjson for the JSON file format.
"""

from .core import Logger, create_logger
from .sinks import BaseSink, ConsoleSink, RotatingFileSink

__all__ = ["BaseSink", "ConsoleSink", "Logger", "RotatingFileSink", "create_logger"]
