"""
cloudlog: leveled logging to console and rotating files, with finalized
files shipped to S3 or Azure Blob Storage.

Usage:
    from cloudlog import create_logger

    logger = create_logger(label="api", level="debug", cloud="s3", s3_config={...})
    logger.info("service started", port=8080)
"""

from .config import AzureConfig, LoggerConfig, S3Config
from .logging import Logger, create_logger

__all__ = ["AzureConfig", "Logger", "LoggerConfig", "S3Config", "create_logger"]
