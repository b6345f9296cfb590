"""Shared fixtures for sony_av tests."""

import time
from unittest.mock import MagicMock, patch

import pytest

from sony_av.config.loader import ENV_MAPPINGS

PS5_ADDRESS = "192.168.1.50"
TV_HOST = "192.168.1.51"

MOCK_PS5_CONFIG = {
    "type": "ps5",
    "host": PS5_ADDRESS,
    "credential": "1234abcd",
    "refresh_interval": 10,
}

MOCK_TV_CONFIG = {
    "type": "tv",
    "host": TV_HOST,
    "psk": "0000",
    "refresh_interval": 5,
    "offline_timeout": 10,
}


def wait_until(predicate, timeout: float = 2.0) -> bool:
    """Poll `predicate` until it holds or `timeout` seconds pass."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            return False
        time.sleep(0.01)
    return True


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler_factory():
    """Scheduler factory that never runs anything on its own."""
    return MagicMock(name="scheduler_factory")


@pytest.fixture
def on_state():
    return MagicMock(name="on_state")


@pytest.fixture
def on_status():
    return MagicMock(name="on_status")


@pytest.fixture
def mock_transport():
    """Mock DDPSocket."""
    return MagicMock(name="DDPSocket")


@pytest.fixture
def mock_resolve():
    """Resolve every hostname to the test console address."""
    with patch("sony_av.playstation.resolve_host", return_value=PS5_ADDRESS) as mock:
        yield mock


@pytest.fixture
def mock_bravia_client():
    """Mock BraviaClient with a TV in standby."""
    client = MagicMock(name="BraviaClient")
    client.get_power_status.return_value = False
    return client


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run without config files or environment overrides."""
    for env_var in ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.setattr("sony_av.config.loader.CONFIG_SEARCH_PATHS", [])
    monkeypatch.setattr("sony_av.config.loader._cached_config", None)
    monkeypatch.chdir(tmp_path)
    return tmp_path
