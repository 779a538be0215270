"""
Chart Lifecycle Orchestrator - Educational Documentation
========================================================

WHAT IS THE LIFECYCLE ORCHESTRATOR?
-----------------------------------
The orchestrator drives every chart request through its state machine and
tells the world about each step. It is the only component that mutates the
request ledger.

THE COMPLETE REQUEST LIFECYCLE:
-------------------------------

┌─────────────────────────────────────────────────────────────────┐
│ STAGE 1: VALIDATION (synchronous, inside submit)                │
│ - Raw config validated; failure raises, nothing is recorded     │
└─────────────────────────────────────────────────────────────────┘
                            ↓
┌─────────────────────────────────────────────────────────────────┐
│ STAGE 2: LEDGER ENTRY                                           │
│ - Record created (pending) and moved to processing              │
│ - "request" event: Chart generation started for <symbol>        │
│ - submit() returns here; the caller's HTTP cycle is done        │
└─────────────────────────────────────────────────────────────────┘
                            ↓  (detached task)
┌─────────────────────────────────────────────────────────────────┐
│ STAGE 4: RENDER                                                 │
│ - "progress" events: preparing, sending, processing             │
│ - Provider call, optionally bounded by a watchdog               │
└─────────────────────────────────────────────────────────────────┘
                            ↓
┌─────────────────────────────────────────────────────────────────┐
│ STAGE 5: COMPLETION                                             │
│ - Exactly one terminal ledger write (completed | failed)        │
│ - Then exactly one terminal event (success | error)             │
└─────────────────────────────────────────────────────────────────┘

ORDERING RULE:
--------------
The ledger write for a transition always happens before the matching
event is emitted. A client that reacts to a ``success`` event by polling
the status endpoint therefore always sees ``completed``.

Events go to the submitting client when one is named, otherwise to every
open session. They are stored regardless, so a client that disconnected
mid-render can still pull the full history and the final result.
"""

import asyncio
import time
from typing import Any

from chart_gateway.charts.models import ChartRequest, ChartResult
from chart_gateway.charts.providers.base_provider import RenderProvider, RenderResult
from chart_gateway.charts.services.request_ledger import RequestLedger
from chart_gateway.charts.validators import ChartConfigValidator
from chart_gateway.core.config.constants import (
    BROADCAST_ALL,
    MSG_PREPARING,
    ChartStatus,
    EventKind,
)
from chart_gateway.core.logging import get_logger, log_stage
from chart_gateway.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)
from chart_gateway.streaming.broadcaster import EventBroadcaster
from chart_gateway.streaming.connection_registry import ConnectionRegistry
from chart_gateway.streaming.models import ChartEvent

logger = get_logger(__name__)


class ChartLifecycleOrchestrator:
    """
    Drives chart requests from submission to a terminal state.

    Usage:
        orchestrator = ChartLifecycleOrchestrator(ledger, broadcaster, registry, provider)
        request = await orchestrator.submit({"symbol": "NASDAQ:AAPL", ...}, client_id="c1")
        final = await orchestrator.wait_for(request.request_id)
    """

    def __init__(
        self,
        ledger: RequestLedger,
        broadcaster: EventBroadcaster,
        registry: ConnectionRegistry,
        provider: RenderProvider,
        validator: ChartConfigValidator | None = None,
        render_timeout: float | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self._ledger = ledger
        self._broadcaster = broadcaster
        self._registry = registry
        self._provider = provider
        self._validator = validator or ChartConfigValidator()
        self._render_timeout = render_timeout
        self._metrics = metrics or get_metrics_collector()
        self._tasks: dict[str, asyncio.Task] = {}

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(self, raw_config: Any, client_id: str | None = None) -> ChartRequest:
        """
        Accept a chart request and start rendering it in the background.

        Raises:
            InvalidChartConfigError: config rejected; nothing recorded or emitted

        Returns:
            ChartRequest: the record in ``processing`` state
        """
        # STAGE-1: Validation
        config = self._validator.validate(raw_config)
        started = time.perf_counter()

        # STAGE-2: Ledger entry
        request = await self._ledger.create(config, client_id=client_id)
        request = await self._ledger.transition(request.request_id, ChartStatus.PROCESSING)

        target = client_id or BROADCAST_ALL
        await self._broadcaster.emit(
            target,
            EventKind.REQUEST,
            f"Chart generation started for {config.symbol}",
            request.request_id,
            data={"symbol": config.symbol, "interval": config.interval.value},
        )

        # STAGE-4: Detached render
        task = asyncio.create_task(
            self._render(request, target, started),
            name=f"chart-render-{request.request_id}",
        )
        self._tasks[request.request_id] = task
        task.add_done_callback(lambda _t, rid=request.request_id: self._tasks.pop(rid, None))
        self._metrics.increment_in_flight()

        log_stage(
            logger, "2.4", "chart_request_submitted",
            request_id=request.request_id,
            symbol=config.symbol,
            client_id=client_id,
        )
        return request

    # =========================================================================
    # Rendering
    # =========================================================================

    async def _render(self, request: ChartRequest, target: str, started: float) -> ChartRequest:
        request_id = request.request_id

        async def on_progress(message: str) -> None:
            await self._broadcaster.emit(target, EventKind.PROGRESS, message, request_id)

        outcome: RenderResult | None = None
        error: str | None = None

        try:
            await on_progress(MSG_PREPARING)
            log_stage(logger, "4.1", "render_started", request_id=request_id, provider=self._provider.name)

            render = self._provider.render(request.config, on_progress)
            if self._render_timeout:
                outcome = await asyncio.wait_for(render, timeout=self._render_timeout)
            else:
                outcome = await render

            if not isinstance(outcome, RenderResult):
                error = "Unexpected render result"
            elif not outcome.success:
                error = outcome.error or "Unknown error"
            elif not (outcome.url or outcome.base64):
                error = "Render produced no image"
        except asyncio.TimeoutError as e:
            if self._render_timeout:
                error = f"Render timed out after {self._render_timeout}s"
            else:
                error = str(e) or "Render timed out"
        except asyncio.CancelledError:
            self._metrics.decrement_in_flight()
            raise
        except Exception as e:
            error = str(e) or e.__class__.__name__
            log_stage(
                logger, "4.2", "render_raised", level="warning",
                request_id=request_id,
                error_type=type(e).__name__,
                error=error,
            )

        processing_time = int((time.perf_counter() - started) * 1000)
        try:
            if error is None:
                return await self._complete(request_id, target, outcome, processing_time)
            return await self._fail(request_id, target, error, processing_time)
        finally:
            self._metrics.decrement_in_flight()
            self._metrics.record_render_duration(self._provider.name, processing_time / 1000)

    async def _complete(
        self, request_id: str, target: str, outcome: RenderResult, processing_time: int
    ) -> ChartRequest:
        # STAGE-5.1: ledger first, then the event
        final = await self._ledger.transition(
            request_id,
            ChartStatus.COMPLETED,
            result=ChartResult(url=outcome.url, base64=outcome.base64),
            processing_time=processing_time,
        )
        await self._broadcaster.emit(
            target,
            EventKind.SUCCESS,
            f"Chart generated successfully ({processing_time / 1000:.1f}s)",
            request_id,
            data={"chartGenerated": True, "processingTime": processing_time},
        )
        self._metrics.record_chart_request(ChartStatus.COMPLETED.value, self._provider.name)
        log_stage(logger, "5.1", "chart_completed", request_id=request_id, processing_time=processing_time)
        return final

    async def _fail(self, request_id: str, target: str, error: str, processing_time: int) -> ChartRequest:
        # STAGE-5.2: ledger first, then the event
        final = await self._ledger.transition(
            request_id,
            ChartStatus.FAILED,
            error_message=error,
            processing_time=processing_time,
        )
        await self._broadcaster.emit(
            target,
            EventKind.ERROR,
            f"Chart generation failed: {error}",
            request_id,
            data={"error": error},
        )
        self._metrics.record_chart_request(ChartStatus.FAILED.value, self._provider.name)
        log_stage(
            logger, "5.2", "chart_failed", level="warning",
            request_id=request_id,
            error=error,
            processing_time=processing_time,
        )
        return final

    # =========================================================================
    # Queries
    # =========================================================================

    async def wait_for(self, request_id: str, timeout: float | None = None) -> ChartRequest | None:
        """
        Wait until the request's render task has settled.

        Returns the current record (still ``processing`` if ``timeout``
        elapsed first), or None for unknown ids.
        """
        task = self._tasks.get(request_id)
        if task is not None:
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
            except asyncio.TimeoutError:
                pass
        return await self._ledger.get(request_id)

    async def get_status(self, request_id: str) -> ChartRequest | None:
        return await self._ledger.get(request_id)

    async def list_recent(self, limit: int) -> list[ChartRequest]:
        return await self._ledger.recent(limit)

    async def event_history(self, request_id: str) -> list[ChartEvent]:
        return await self._broadcaster.history(request_id)

    async def list_symbols(self) -> list[str]:
        return await self._provider.list_symbols()

    def health_snapshot(self) -> dict[str, Any]:
        return {
            "liveSessionCount": self._registry.count(),
            "upstreamConfigured": self._provider.is_configured,
        }

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def provider(self) -> RenderProvider:
        return self._provider

    async def shutdown(self) -> None:
        """Cancel in-flight renders (process exit)."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        log_stage(logger, "6.1", "orchestrator_shutdown", cancelled=len(tasks))
