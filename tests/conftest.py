from datetime import datetime

import pytest

from cloudlog.config import S3Config, AzureConfig


class FakeClock:
    """Settable clock for rotating file sinks."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "logs"


@pytest.fixture
def s3_config():
    return S3Config(
        bucket="test-bucket",
        access_key_id="AKIATEST",
        secret_access_key="secret",
        region="us-east-1",
    )


@pytest.fixture
def azure_config():
    return AzureConfig(
        connection_string="DefaultEndpointsProtocol=https;AccountName=test;AccountKey=a2V5;EndpointSuffix=core.windows.net",
        container="logs-container",
    )
