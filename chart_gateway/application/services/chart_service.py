"""
Chart Service
=============

Business logic shared by the REST (``/api/v2``) and MCP (``/mcp``) surfaces.
Both talk to the same orchestrator, so a chart requested over MCP shows up
in the REST recent list and vice versa.

ARCHITECTURE:
-------------
Route → ChartService → ChartLifecycleOrchestrator → RequestLedger
                                                  → EventBroadcaster
                                                  → RenderProvider

The service turns ledger records and events into response models; it never
mutates lifecycle state itself.
"""

from datetime import datetime, timezone
from typing import Any

import structlog

from chart_gateway.application.api.models.charts import (
    ApiHealthResponse,
    ChartMetadata,
    ChartStatusResponse,
    ChartSummary,
    EventHistoryEntry,
    GenerateChartResponse,
    RenderedChart,
)
from chart_gateway.charts.models import ChartRequest
from chart_gateway.charts.services.chart_orchestrator import ChartLifecycleOrchestrator
from chart_gateway.core.config.constants import ChartStatus
from chart_gateway.core.config.settings import Settings
from chart_gateway.core.exceptions import ValidationError
from chart_gateway.infrastructure.monitoring.metrics_collector import get_metrics_collector
from chart_gateway.streaming.models import format_timestamp

logger = structlog.get_logger(__name__)


def _fmt(value: datetime | None) -> str | None:
    return format_timestamp(value) if value is not None else None


def status_view(request: ChartRequest) -> ChartStatusResponse:
    """Status view of a ledger record."""
    config = request.config
    view = ChartStatusResponse(
        request_id=request.request_id,
        status=request.status.value,
        symbol=config.symbol,
        interval=config.interval.value,
        chart_type=config.chart_type.value,
        created_at=format_timestamp(request.created_at),
        completed_at=_fmt(request.completed_at),
    )

    if request.status is ChartStatus.COMPLETED and request.result is not None:
        view.chart = RenderedChart(
            url=request.result.url,
            base64=request.result.base64,
            metadata=ChartMetadata(
                symbol=config.symbol,
                interval=config.interval.value,
                chart_type=config.chart_type.value,
                width=config.width,
                height=config.height,
                generated_at=_fmt(request.completed_at),
                indicators=[i.model_dump(exclude_none=True) for i in config.indicators],
                drawings=[d.model_dump(exclude_none=True) for d in config.drawings],
            ),
        )
        view.processing_time = request.processing_time

    if request.status is ChartStatus.FAILED:
        view.error = request.error_message

    return view


def summary_view(request: ChartRequest) -> ChartSummary:
    return ChartSummary(
        request_id=request.request_id,
        symbol=request.config.symbol,
        interval=request.config.interval.value,
        chart_type=request.config.chart_type.value,
        status=request.status.value,
        created_at=format_timestamp(request.created_at),
        completed_at=_fmt(request.completed_at),
        processing_time=request.processing_time,
    )


class ChartService:
    """
    Chart request use cases for the HTTP edges.

    Usage:
        service = ChartService(orchestrator, settings)
        accepted = await service.generate(body, client_id="client_1")
        view = await service.status(accepted.request_id)
    """

    def __init__(self, orchestrator: ChartLifecycleOrchestrator, settings: Settings):
        self.orchestrator = orchestrator
        self.settings = settings
        self.metrics = get_metrics_collector()

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(self, raw_config: Any, client_id: str | None, surface: str) -> ChartRequest:
        try:
            return await self.orchestrator.submit(raw_config, client_id=client_id)
        except ValidationError as e:
            self.metrics.record_validation_failure(surface)
            logger.info("chart_request_rejected", surface=surface, errors=e.details.get("errors"))
            raise

    async def generate(self, raw_config: Any, client_id: str | None = None) -> GenerateChartResponse:
        request = await self.submit(raw_config, client_id, surface="rest")
        return GenerateChartResponse(request_id=request.request_id, status=request.status.value)

    async def generate_and_wait(self, raw_config: Any) -> ChartRequest:
        """Submit and block until the terminal state (MCP synchronous tool call)."""
        request = await self.submit(raw_config, None, surface="mcp")
        final = await self.orchestrator.wait_for(request.request_id)
        return final or request

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_request(self, request_id: str) -> ChartRequest | None:
        return await self.orchestrator.get_status(request_id)

    async def status(self, request_id: str) -> ChartStatusResponse | None:
        request = await self.orchestrator.get_status(request_id)
        if request is None:
            return None
        return status_view(request)

    def clamp_limit(self, limit: int | None) -> int:
        lifecycle = self.settings.lifecycle
        if not limit or limit < 1:
            return lifecycle.RECENT_REQUESTS_DEFAULT_LIMIT
        return min(limit, lifecycle.RECENT_REQUESTS_MAX_LIMIT)

    async def recent_requests(self, limit: int | None) -> list[ChartRequest]:
        return await self.orchestrator.list_recent(self.clamp_limit(limit))

    async def recent(self, limit: int | None) -> list[ChartSummary]:
        return [summary_view(r) for r in await self.recent_requests(limit)]

    async def history(self, request_id: str) -> list[EventHistoryEntry]:
        events = await self.orchestrator.event_history(request_id)
        return [EventHistoryEntry(**event.history_view()) for event in events]

    async def symbols(self) -> list[str]:
        return await self.orchestrator.list_symbols()

    def health(self) -> ApiHealthResponse:
        snapshot = self.orchestrator.health_snapshot()
        return ApiHealthResponse(
            status="healthy",
            timestamp=format_timestamp(datetime.now(timezone.utc)),
            chart_service_configured=snapshot["upstreamConfigured"],
            sse_clients=snapshot["liveSessionCount"],
        )
