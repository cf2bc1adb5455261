"""
Cloud upload of finalized log files.

Each finalized file becomes one background task on a thread pool. A failed
upload is reported on the ``cloudlog.storage`` logger and never retried;
nothing is raised back to the code that produced the log line.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional

from ..config import AzureConfig, CloudProvider, S3Config
from .base import StorageClient, object_key

logger = logging.getLogger("cloudlog.storage")


def create_storage_client(
    cloud: CloudProvider | str | None,
    s3_config: Optional[S3Config] = None,
    azure_config: Optional[AzureConfig] = None,
) -> Optional[StorageClient]:
    """Select the storage strategy for `cloud`.

    Returns None, without touching the network, when no provider is selected
    or when its config block is missing.
    """
    if cloud is None:
        return None
    provider = CloudProvider(cloud)

    if provider is CloudProvider.S3 and s3_config is not None:
        from .s3_client import S3StorageClient

        return S3StorageClient(s3_config)

    if provider is CloudProvider.AZURE and azure_config is not None:
        from .azure_client import AzureBlobStorageClient

        return AzureBlobStorageClient(azure_config)

    return None


class CloudUploader:
    """Uploads finalized files with a `StorageClient` in the background.

    Args:
        client: Storage strategy
        executor: Executor running the uploads (default: a private thread pool)
        max_workers: Size of the private thread pool
    """

    def __init__(self, client: StorageClient, executor: Optional[Executor] = None, max_workers: int = 4):
        self._client = client
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cloudlog-upload")
        self._lock = threading.Lock()
        self._closed = False

    @property
    def client(self) -> StorageClient:
        return self._client

    def on_file_finalized(self, filename: str) -> Optional[Future]:
        """Schedule one upload of `filename` to ``logs/<basename>``."""
        key = object_key(filename)
        with self._lock:
            if self._closed:
                logger.warning("Uploader closed, skipping %s", filename)
                return None
            return self._executor.submit(self._upload, filename, key)

    def _upload(self, filename: str, key: str) -> bool:
        try:
            self._client.upload_file(filename, key)
        except Exception:
            logger.exception("Upload of %s to %s failed", filename, key)
            return False
        return True

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting files; with `wait`, block until pending uploads finish."""
        with self._lock:
            self._closed = True
        if self._owns_executor:
            self._executor.shutdown(wait=wait)


def create_uploader(
    cloud: CloudProvider | str | None,
    s3_config: Optional[S3Config] = None,
    azure_config: Optional[AzureConfig] = None,
    *,
    executor: Optional[Executor] = None,
) -> Optional[CloudUploader]:
    """Build an uploader for the configured provider, or None when upload is off."""
    client = create_storage_client(cloud, s3_config, azure_config)
    if client is None:
        return None
    return CloudUploader(client, executor=executor)


_default_executor: Optional[ThreadPoolExecutor] = None
_default_executor_lock = threading.Lock()


def _get_default_executor() -> ThreadPoolExecutor:
    global _default_executor
    with _default_executor_lock:
        if _default_executor is None:
            _default_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="cloudlog-upload")
        return _default_executor


def on_file_finalized(
    filename: str,
    cloud: CloudProvider | str | None,
    s3_config: Optional[S3Config] = None,
    azure_config: Optional[AzureConfig] = None,
    *,
    executor: Optional[Executor] = None,
) -> Optional[Future]:
    """One-shot upload of a finalized file.

    Returns the upload future, or None when no upload is configured. Loggers
    built by `create_logger` use a `CloudUploader` instead, which owns its
    pool and can be shut down with the logger.
    """
    client = create_storage_client(cloud, s3_config, azure_config)
    if client is None:
        return None
    uploader = CloudUploader(client, executor=executor or _get_default_executor())
    return uploader.on_file_finalized(filename)
