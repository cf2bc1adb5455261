"""Storage module for shipping finalized log files to S3 or Azure Blob Storage."""

from .base import StorageClient, object_key
from .exceptions import StorageError
from .uploader import CloudUploader, create_storage_client, create_uploader, on_file_finalized

__all__ = [
    "CloudUploader",
    "StorageClient",
    "StorageError",
    "create_storage_client",
    "create_uploader",
    "object_key",
    "on_file_finalized",
]
