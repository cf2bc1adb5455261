"""S3 Storage Client for finalized log files.

Wraps a boto3 S3 client built from the static credentials in `S3Config`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import S3Config
from .base import StorageClient, content_type_for
from .exceptions import StorageError

logger = logging.getLogger("cloudlog.storage.s3")


class S3StorageClient(StorageClient):
    """S3 storage client.

    The boto3 client is created on first upload.
    """

    def __init__(self, config: S3Config):
        self._config = config
        self._client: Optional[Any] = None

    @property
    def bucket(self) -> str:
        return self._config.bucket

    def _ensure_client(self) -> Any:
        """Lazy initialization of the boto3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                aws_access_key_id=self._config.access_key_id,
                aws_secret_access_key=self._config.secret_access_key.get_secret_value(),
                region_name=self._config.region,
            )
            logger.debug("S3 client initialized for bucket %s (%s)", self.bucket, self._config.region)
        return self._client

    def upload_file(self, path: str, key: str) -> str:
        """Stream a local file to ``s3://<bucket>/<key>``.

        Args:
            path: Local file path
            key: Object key

        Returns:
            Object URI (s3://bucket/key)

        Raises:
            StorageError: If the upload fails
        """
        try:
            client = self._ensure_client()
            with open(path, "rb") as body:
                client.upload_fileobj(
                    body,
                    self.bucket,
                    key,
                    ExtraArgs={"ContentType": content_type_for(path)},
                )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload {path} to S3: {exc}") from exc

        uri = f"s3://{self.bucket}/{key}"
        logger.info("S3 upload completed: %s", uri)
        return uri
