"""
Logging Configuration from the environment.

Loads `LoggerConfig` values from `CLOUDLOG_*` variables (or a `.env` file).
Provider blocks are only built when all of their fields are present, so an
incomplete set of credentials disables upload instead of failing.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import AzureConfig, CloudProvider, FileFormat, LoggerConfig, RotationPolicy, S3Config


class LoggingSettings(BaseSettings):
    """Logger settings read from the environment.

    Prefix: CLOUDLOG_
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOUDLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    label: str = Field(default="app", description="Label injected into every line")
    level: str = Field(default="info", description="Minimum level emitted by the logger (error, warn, info, debug)")
    log_dir: str = Field(default="logs", description="Directory for rotated log files")
    cloud: Optional[CloudProvider] = Field(default=None, description="Upload target (s3, azure)")
    file_format: FileFormat = Field(default="text", description="Rendering used by the file sinks")
    console: bool = Field(default=True, description="Also write to stdout")
    console_color: Optional[bool] = Field(default=None, description="Force console colours on or off")

    # Rotation
    max_size: str = Field(default="20m", description="Size that triggers a roll-over")
    retention_days: int = Field(default=30, description="Days to keep rotated files")
    compress: bool = Field(default=True, description="gzip rotated files")

    # S3
    s3_bucket: Optional[str] = None
    s3_access_key_id: Optional[str] = None
    s3_secret_access_key: Optional[SecretStr] = None
    s3_region: Optional[str] = None

    # Azure
    azure_connection_string: Optional[SecretStr] = None
    azure_container: Optional[str] = None

    @field_validator("cloud", mode="before")
    @classmethod
    def _normalize_cloud(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in {"", "none"}:
            return None
        return value

    def _s3_config(self) -> Optional[S3Config]:
        if not (self.s3_bucket and self.s3_access_key_id and self.s3_secret_access_key and self.s3_region):
            return None
        return S3Config(
            bucket=self.s3_bucket,
            access_key_id=self.s3_access_key_id,
            secret_access_key=self.s3_secret_access_key,
            region=self.s3_region,
        )

    def _azure_config(self) -> Optional[AzureConfig]:
        if not (self.azure_connection_string and self.azure_container):
            return None
        return AzureConfig(
            connection_string=self.azure_connection_string,
            container=self.azure_container,
        )

    def to_logger_config(self) -> LoggerConfig:
        return LoggerConfig(
            label=self.label,
            level=self.level,
            log_dir=self.log_dir,
            cloud=self.cloud,
            s3_config=self._s3_config(),
            azure_config=self._azure_config(),
            rotation=RotationPolicy(
                max_size=self.max_size,
                retention_days=self.retention_days,
                compress=self.compress,
            ),
            console=self.console,
            console_color=self.console_color,
            file_format=self.file_format,
        )
