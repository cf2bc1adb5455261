"""Azure Blob Storage Client for finalized log files."""

from __future__ import annotations

import logging
from typing import Optional

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

from ..config import AzureConfig
from .base import StorageClient, content_type_for
from .exceptions import StorageError

logger = logging.getLogger("cloudlog.storage.azure")


class AzureBlobStorageClient(StorageClient):
    """Azure Blob storage client bound to one container.

    The container client is created on first upload.
    """

    def __init__(self, config: AzureConfig):
        self._config = config
        self._container: Optional[ContainerClient] = None

    @property
    def container(self) -> str:
        return self._config.container

    def _ensure_client(self) -> ContainerClient:
        """Lazy initialization of the container client."""
        if self._container is None:
            service = BlobServiceClient.from_connection_string(self._config.connection_string.get_secret_value())
            self._container = service.get_container_client(self.container)
            logger.debug("Azure container client initialized for %s", self.container)
        return self._container

    def upload_file(self, path: str, key: str) -> str:
        """Upload a local file to a block blob at `key`, replacing any existing blob.

        Returns:
            Blob URL

        Raises:
            StorageError: If the upload fails
        """
        try:
            container = self._ensure_client()
            blob = container.get_blob_client(key)
            with open(path, "rb") as data:
                blob.upload_blob(
                    data,
                    overwrite=True,
                    content_settings=ContentSettings(content_type=content_type_for(path)),
                )
        except (AzureError, ValueError) as exc:
            raise StorageError(f"Failed to upload {path} to Azure container {self.container}: {exc}") from exc

        logger.info("Azure upload completed: %s/%s", self.container, key)
        return blob.url
