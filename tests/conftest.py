"""Pytest fixtures shared across the suite.

All tests are network-isolated - socket connections are blocked by default.
"""

from __future__ import annotations

import socket
from datetime import date

import pytest

from tests.fakes import InMemoryFileSystem, InMemoryOpportunitySource, InMemorySettingsRepository
from tests.support.errors import NetworkIsolationError

# =============================================================================
# Network Isolation - Block all socket connections in tests
# =============================================================================


def _blocked_socket_connect(self: socket.socket, *args: object, **kwargs: object) -> None:
    """Raise an error if any test tries to make a real network connection."""
    _ = (self, kwargs)
    raise NetworkIsolationError(str(args))


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch: pytest.MonkeyPatch) -> None:
    """Block all network access in tests.

    The engine never talks to the network; any attempted connection is a bug.
    """
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)


@pytest.fixture
def in_memory_fs() -> InMemoryFileSystem:
    """Provide an in-memory filesystem for tests."""
    return InMemoryFileSystem()


@pytest.fixture
def settings_repository() -> InMemorySettingsRepository:
    """Provide an empty in-memory settings repository."""
    return InMemorySettingsRepository()


@pytest.fixture
def opportunity_source() -> InMemoryOpportunitySource:
    """Provide an empty in-memory opportunity source."""
    return InMemoryOpportunitySource()


@pytest.fixture
def today() -> date:
    """Fixed evaluation date (mid second quarter)."""
    return date(2026, 5, 15)
