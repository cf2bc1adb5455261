"""Storage client interface shared by the cloud providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

KEY_PREFIX = "logs"


def object_key(filename: str) -> str:
    """Object key for a finalized log file: ``logs/<basename>``."""
    return f"{KEY_PREFIX}/{Path(filename).name}"


def content_type_for(filename: str) -> str:
    if filename.endswith(".gz"):
        return "application/gzip"
    return "text/plain"


class StorageClient(ABC):
    """Uploads a local file to an object store."""

    @abstractmethod
    def upload_file(self, path: str, key: str) -> str:
        """Upload `path` to `key` and return the object URI.

        Raises:
            StorageError: If the upload fails
        """
        ...
