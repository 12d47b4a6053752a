import sys
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws
from prometheus_client import REGISTRY

# Ensure src/ is on sys.path for local test runs without installation
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from s3rolling.config import S3RollingConfig  # noqa: E402
from s3rolling.rolling.storage import S3StorageBackend  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast unit tests")
    config.addinivalue_line(
        "markers",
        "integration: tests that exercise several components or real threads",
    )
    config.addinivalue_line("markers", "s3: tests that interact with S3 or moto S3")
    config.addinivalue_line("markers", "slow: slow-running tests")


def metric_value(name: str, labels: Optional[Dict[str, str]] = None) -> float:
    """Current value of a Prometheus sample, 0.0 when it was never touched."""
    value = REGISTRY.get_sample_value(name, labels or {})
    return value or 0.0


def error_count(kind: str) -> float:
    return metric_value("s3rolling_errors_total", {"kind": kind})


class RecordingClient:
    """S3 client double that records upload_file calls in order."""

    def __init__(
        self,
        delay: float = 0.0,
        fail_keys: Optional[set] = None,
        gate: Optional[threading.Event] = None,
    ) -> None:
        self.delay = delay
        self.gate = gate
        self.fail_keys = fail_keys or set()
        self.calls: List[tuple] = []
        self.started: List[str] = []
        self.bodies: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def upload_file(self, local_path: str, bucket: str, key: str) -> None:
        with self._lock:
            self.started.append(key)
        if self.gate is not None:
            self.gate.wait(30)
        if self.delay:
            threading.Event().wait(self.delay)
        if key in self.fail_keys:
            raise RuntimeError(f"simulated failure for {key}")
        with open(local_path, "rb") as fh:
            body = fh.read()
        with self._lock:
            self.calls.append((local_path, bucket, key))
            self.bodies[key] = body

    @property
    def keys(self) -> List[str]:
        with self._lock:
            return [call[2] for call in self.calls]


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def make_storage() -> Callable[..., S3StorageBackend]:
    def _make(client, bucket: str = "test-logs", prefix: Optional[str] = None):
        provider = Mock()
        provider.get.return_value = client
        return S3StorageBackend(provider, bucket=bucket, prefix=prefix)

    return _make


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fake credentials so boto3 never reaches for real ones."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3_client_mock(aws_credentials):
    """Moto-backed S3 client with a test bucket."""
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket="test-logs")
        yield s3


@pytest.fixture
def test_config() -> S3RollingConfig:
    return S3RollingConfig(
        s3_bucket_name="test-logs",
        s3_folder_name="logs/2024",
        region_name="us-east-1",
        compression_timeout=5.0,
        shutdown_timeout=10.0,
    )
