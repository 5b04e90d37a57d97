"""Pytest fixtures for celerity-config tests."""

import pytest

from celerity_config.env import CelerityEnv
from celerity_config.testing import MockConfigBackend


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


@pytest.fixture
def clock():
    """Provide a fake clock."""
    return FakeClock()


@pytest.fixture
def db_backend():
    """Provide a backend serving a small database snapshot."""
    return MockConfigBackend({"DB_HOST": "localhost", "DB_PORT": "5432"})


@pytest.fixture
def make_env():
    """Build a CelerityEnv over an isolated environment mapping."""
    def _make(**variables: str) -> CelerityEnv:
        return CelerityEnv(environ=dict(variables))
    return _make
