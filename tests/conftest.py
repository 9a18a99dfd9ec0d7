"""Central test fixtures - imports from the shared test bot."""

import pytest

from turnstile import InMemoryTransport, TransportSettings, TurnContext


@pytest.fixture
def settings() -> TransportSettings:
    """Default transport settings (the fixed test identity)."""
    return TransportSettings()


@pytest.fixture
def transport(settings: TransportSettings) -> InMemoryTransport:
    """Create an in-memory transport with the default test conversation."""
    return InMemoryTransport(settings=settings)


@pytest.fixture
def trace_transport(settings: TransportSettings) -> InMemoryTransport:
    """Create an in-memory transport that forwards trace activities."""
    return InMemoryTransport(send_trace_activity=True, settings=settings)


@pytest.fixture
def context(transport: InMemoryTransport) -> TurnContext:
    """Create a turn context for a message from the default user."""
    return TurnContext(transport, transport.make_activity("hello"))


@pytest.fixture
def execution_log() -> list[tuple[str, str]]:
    """Shared log that several ExecutionTrackers append to."""
    return []
