"""Testing utilities for celerity-config."""

from .mocks import MockConfigBackend, network_error

__all__ = [
    "MockConfigBackend",
    "network_error",
]
