"""
Pytest configuration and fixtures for testing.

Every test gets its own registry, transport and broadcaster, so no state
leaks between tests through the module-level default instances.
"""

import pytest

from relay.broadcaster import RoomBroadcaster
from relay.registry import ConnectionRegistry
from tests.mocks.transport_mocks import RecordingObserver, RecordingTransport


@pytest.fixture
def registry():
    """
    Provides an empty ConnectionRegistry.

    Returns:
        ConnectionRegistry: Fresh registry instance
    """
    return ConnectionRegistry()


@pytest.fixture
def transport():
    """
    Provides a transport that records every emit.

    Returns:
        RecordingTransport: Fresh recording transport
    """
    return RecordingTransport()


@pytest.fixture
def observer():
    """
    Provides an observer that records every relay event.

    Returns:
        RecordingObserver: Fresh recording observer
    """
    return RecordingObserver()


@pytest.fixture
def broadcaster(registry, transport, observer):
    """
    Provides a RoomBroadcaster wired to the recording fixtures.

    Args:
        registry: Registry fixture
        transport: Recording transport fixture
        observer: Recording observer fixture

    Returns:
        RoomBroadcaster: Broadcaster under test
    """
    return RoomBroadcaster(
        registry=registry, transport=transport, observers=[observer]
    )
