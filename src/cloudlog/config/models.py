"""
Logger Configuration Models.

Programmatic configuration for `create_logger`. Every field is optional and
carries the documented default; cloud credentials are kept as `SecretStr`.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class LogLevel(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class CloudProvider(str, Enum):
    S3 = "s3"
    AZURE = "azure"


FileFormat = Literal["text", "json"]

_SIZE_UNITS = {"": 1, "k": 1024, "m": 1024**2, "g": 1024**3}
_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([kmg]?)b?\s*$", re.IGNORECASE)


def parse_size(value: int | str) -> int:
    """Parse a size such as ``20m``, ``512k`` or ``1g`` into bytes."""
    if isinstance(value, int):
        return value
    match = _SIZE_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid size: {value!r}")
    number, unit = match.groups()
    return int(number) * _SIZE_UNITS[unit.lower()]


class S3Config(BaseModel):
    """Static credentials and target bucket for S3 uploads."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    access_key_id: str
    secret_access_key: SecretStr
    region: str


class AzureConfig(BaseModel):
    """Connection string and container for Azure Blob uploads."""

    model_config = ConfigDict(frozen=True)

    connection_string: SecretStr
    container: str


class RotationPolicy(BaseModel):
    """Rotation policy shared by the file sinks."""

    model_config = ConfigDict(frozen=True)

    date_pattern: str = Field(default="%Y-%m-%d", description="strftime pattern for the file date")
    max_size: int = Field(default=20 * 1024 * 1024, description="Roll over once a file exceeds this size")
    retention_days: int = Field(default=30, ge=0, description="Delete rotated files older than this (0 keeps all)")
    compress: bool = Field(default=True, description="gzip finalized files")

    @field_validator("max_size", mode="before")
    @classmethod
    def _parse_max_size(cls, value: int | str) -> int:
        size = parse_size(value)
        if size <= 0:
            raise ValueError("max_size must be positive")
        return size


class LoggerConfig(BaseModel):
    """Configuration accepted by `cloudlog.create_logger`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str = "app"
    level: LogLevel = LogLevel.INFO
    log_dir: str = "logs"
    cloud: Optional[CloudProvider] = None
    s3_config: Optional[S3Config] = None
    azure_config: Optional[AzureConfig] = None

    rotation: RotationPolicy = Field(default_factory=RotationPolicy)
    console: bool = True
    console_color: Optional[bool] = Field(default=None, description="None colours only when stdout is a TTY")
    file_format: FileFormat = "text"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "warning":
                return LogLevel.WARN
        return value

    @field_validator("cloud", mode="before")
    @classmethod
    def _normalize_cloud(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip().lower()
            if value in {"", "none"}:
                return None
        return value

    @property
    def upload_enabled(self) -> bool:
        """Whether the selected provider has the config block it needs."""
        if self.cloud is CloudProvider.S3:
            return self.s3_config is not None
        if self.cloud is CloudProvider.AZURE:
            return self.azure_config is not None
        return False
