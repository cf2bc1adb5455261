"""
cloudlog Configuration Module.

`LoggerConfig` is the programmatic configuration passed to `create_logger`.
`LoggingSettings` loads the same values from `CLOUDLOG_*` environment
variables for applications that prefer env-driven setup.

Usage:
    from cloudlog import create_logger
    from cloudlog.config import LoggingSettings

    logger = create_logger(LoggingSettings().to_logger_config())
"""

from .logging import LoggingSettings
from .models import (
    AzureConfig,
    CloudProvider,
    FileFormat,
    LoggerConfig,
    LogLevel,
    RotationPolicy,
    S3Config,
    parse_size,
)

__all__ = [
    "AzureConfig",
    "CloudProvider",
    "FileFormat",
    "LoggerConfig",
    "LogLevel",
    "LoggingSettings",
    "RotationPolicy",
    "S3Config",
    "parse_size",
]
