"""
Gateway State

All mutable gateway state (sessions, ledger, event history) is built once at
startup and hung off ``app.state``. There are no module-level singletons
for it, so every test can build a fresh, isolated set.
"""

from dataclasses import dataclass

from chart_gateway.charts.providers.base_provider import RenderProvider, create_provider
from chart_gateway.charts.services.chart_orchestrator import ChartLifecycleOrchestrator
from chart_gateway.charts.services.request_ledger import RequestLedger
from chart_gateway.core.config.settings import Settings
from chart_gateway.core.logging import get_logger
from chart_gateway.infrastructure.monitoring.health_checker import HealthChecker
from chart_gateway.streaming.broadcaster import EventBroadcaster
from chart_gateway.streaming.connection_registry import ConnectionRegistry
from chart_gateway.streaming.event_store import EventStore
from chart_gateway.streaming.models import EventSequence

logger = get_logger(__name__)


@dataclass
class GatewayState:
    settings: Settings
    registry: ConnectionRegistry
    event_store: EventStore
    broadcaster: EventBroadcaster
    ledger: RequestLedger
    provider: RenderProvider
    orchestrator: ChartLifecycleOrchestrator
    health_checker: HealthChecker

    async def close(self) -> None:
        await self.orchestrator.shutdown()
        await self.registry.close_all()
        await self.provider.close()


def build_state(settings: Settings, provider: RenderProvider | None = None) -> GatewayState:
    """
    Wire the gateway components together.

    STAGE-0.4: Component assembly

    Args:
        settings: Application settings
        provider: Render provider override (defaults to CHART_PROVIDER)
    """
    sequence = EventSequence()
    registry = ConnectionRegistry(
        sequence=sequence,
        heartbeat_interval=settings.streaming.SSE_HEARTBEAT_INTERVAL,
    )
    event_store = EventStore()
    broadcaster = EventBroadcaster(registry, event_store, sequence=sequence)
    ledger = RequestLedger(max_entries=settings.lifecycle.LEDGER_MAX_ENTRIES)
    provider = provider or create_provider(settings)

    orchestrator = ChartLifecycleOrchestrator(
        ledger=ledger,
        broadcaster=broadcaster,
        registry=registry,
        provider=provider,
        render_timeout=settings.lifecycle.RENDER_TIMEOUT_SECONDS,
    )

    health_checker = HealthChecker(settings)
    health_checker.initialize(orchestrator)

    logger.info(
        "gateway_state_built",
        stage="0.4",
        provider=provider.name,
        upstream_configured=provider.is_configured,
    )
    return GatewayState(
        settings=settings,
        registry=registry,
        event_store=event_store,
        broadcaster=broadcaster,
        ledger=ledger,
        provider=provider,
        orchestrator=orchestrator,
        health_checker=health_checker,
    )
