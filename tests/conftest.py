"""
Pytest Configuration and Shared Test Fixtures

Every fixture builds fresh gateway components, so tests never share
sessions, ledger records or event history.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from chart_gateway.charts.services.chart_orchestrator import ChartLifecycleOrchestrator  # noqa: E402
from chart_gateway.charts.services.request_ledger import RequestLedger  # noqa: E402
from chart_gateway.core.config.settings import Settings  # noqa: E402
from chart_gateway.streaming.broadcaster import EventBroadcaster  # noqa: E402
from chart_gateway.streaming.connection_registry import ConnectionRegistry  # noqa: E402
from chart_gateway.streaming.event_store import EventStore  # noqa: E402
from chart_gateway.streaming.models import EventSequence  # noqa: E402
from tests.test_fixtures.provider_factory import ProviderTestFactory  # noqa: E402
from tests.test_fixtures.streams import RecordingStream  # noqa: E402

# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """Settings for an isolated gateway backed by the fake provider."""
    return Settings(
        _env_file=None,
        CHART_PROVIDER="fake",
        CHART_IMG_API_KEY=None,
        API_KEY=None,
        FAKE_RENDER_LATENCY=0.0,
        ENVIRONMENT="development",
        LOG_LEVEL="WARNING",
        LOG_FORMAT="console",
    )


@pytest.fixture
def sample_chart_config():
    """Minimal valid chart config as it arrives on the wire."""
    return {"symbol": "NASDAQ:AAPL", "interval": "1D", "chartType": "candlestick"}


# ============================================================================
# Streaming Fixtures
# ============================================================================


@pytest.fixture
def sequence():
    return EventSequence()


@pytest.fixture
async def registry(sequence):
    registry = ConnectionRegistry(sequence=sequence, heartbeat_interval=30)
    yield registry
    await registry.close_all()


@pytest.fixture
def event_store():
    return EventStore()


@pytest.fixture
def broadcaster(registry, event_store, sequence):
    return EventBroadcaster(registry, event_store, sequence=sequence)


@pytest.fixture
def make_stream():
    """Factory for recording streams."""
    return RecordingStream


# ============================================================================
# Lifecycle Fixtures
# ============================================================================


@pytest.fixture
def ledger():
    return RequestLedger()


@pytest.fixture
def provider():
    return ProviderTestFactory.success_provider()


@pytest.fixture
async def make_orchestrator(ledger, broadcaster, registry):
    """Build an orchestrator over the shared fixtures with a chosen provider."""
    created: list[ChartLifecycleOrchestrator] = []

    def _make(provider, render_timeout=None) -> ChartLifecycleOrchestrator:
        orchestrator = ChartLifecycleOrchestrator(
            ledger=ledger,
            broadcaster=broadcaster,
            registry=registry,
            provider=provider,
            render_timeout=render_timeout,
        )
        created.append(orchestrator)
        return orchestrator

    yield _make

    for orchestrator in created:
        await orchestrator.shutdown()


@pytest.fixture
def orchestrator(make_orchestrator, provider):
    return make_orchestrator(provider)
