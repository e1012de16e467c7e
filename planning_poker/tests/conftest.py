"""
Test configuration and fixtures for the planning poker test suite.

Environment variables are set before any application module reads its
configuration, and the config cache is reset around every test.
"""

import os
from collections.abc import Generator

import pytest

os.environ.setdefault("SERVER_PORT", "54731")
os.environ.setdefault("SERVER_HOST", "127.0.0.1")
os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")
os.environ.setdefault("LOGGING_LEVEL", "DEBUG")
os.environ.setdefault("SESSION_ADMIN_GRACE_PERIOD_SECONDS", "30")

# pylint: disable=wrong-import-position
from planning_poker.config import reset_config  # noqa: E402
from planning_poker.realtime.connection_registry import ConnectionRegistry  # noqa: E402
from planning_poker.realtime.disconnect_grace_period import SessionReaper  # noqa: E402
from planning_poker.realtime.event_router import SessionEventRouter  # noqa: E402
from planning_poker.realtime.session_registry import SessionRegistry  # noqa: E402
from planning_poker.tests.fixtures.recording_transport import RecordingTransport  # noqa: E402

# Short enough that expiry tests finish quickly, long enough that a rejoin
# inside the same test reliably lands before it fires.
TEST_GRACE_PERIOD = 0.05


@pytest.fixture(autouse=True)
def reset_config_cache() -> Generator[None, None, None]:
    """Ensure every test sees freshly loaded configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def transport() -> RecordingTransport:
    """In-memory transport that records every emitted event."""
    return RecordingTransport()


@pytest.fixture
def registry() -> SessionRegistry:
    """Empty session registry."""
    return SessionRegistry()


@pytest.fixture
def connections() -> ConnectionRegistry:
    """Empty connection registry."""
    return ConnectionRegistry()


@pytest.fixture
def reaper(registry, transport) -> SessionReaper:  # pylint: disable=redefined-outer-name
    """Reaper with a very short grace period."""
    return SessionReaper(registry, transport, grace_period=TEST_GRACE_PERIOD)


@pytest.fixture
def router(registry, connections, transport, reaper) -> SessionEventRouter:  # pylint: disable=redefined-outer-name
    """Event router wired to the recording transport."""
    return SessionEventRouter(registry, connections, transport, reaper)
