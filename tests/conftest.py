from concurrent.futures import Future
from unittest.mock import Mock

import pytest

from carabiner.config import SettingsStore
from carabiner.connection import ConnectionManager
from carabiner.models import (
    ControlSettings,
    DeviceFamily,
    DeviceKind,
    DeviceRecord,
    SharedSettings,
)


class SyncWorker:
    """Runs submitted work immediately so tests can assert on its effects."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn, *args):
        self.submitted.append((fn, args))
        future = Future()
        future.set_result(fn(*args))
        return future

    def shutdown(self, wait=True, cancel_futures=False):
        pass


@pytest.fixture
def mock_subprocess(mocker):
    """Mocks subprocess.run for all tests."""
    return mocker.patch("subprocess.run")

@pytest.fixture
def worker():
    return SyncWorker()

@pytest.fixture
def mock_executor():
    return Mock()

@pytest.fixture
def connection(mock_executor, worker):
    return ConnectionManager(adb_path="/usr/bin/adb", executor=mock_executor, worker=worker)

@pytest.fixture
def store(tmp_path):
    return SettingsStore(tmp_path / "settings.toml")

@pytest.fixture
def sample_settings():
    """Returns a SharedSettings object with one device of each family."""
    return SharedSettings(
        control=ControlSettings(
            device_list=[
                DeviceRecord(address="10.0.0.5", family=DeviceFamily.ECP_HTTP, kind=DeviceKind.ROKU, alias="Den"),
                DeviceRecord(address="10.0.0.9", family=DeviceFamily.ADB_SHELL, kind=DeviceKind.FIRETV, linked="cam-1"),
            ],
            device_id="10.0.0.5|ecp-http",
            adb_path="/usr/bin/adb",
        ),
    )
