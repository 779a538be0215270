"""
Event Broadcaster

Turns a (target, kind, message, request id) tuple into an immutable event,
records it in the event store and writes it to live sessions.

Ordering guarantees:
- Sequence ids are assigned at emit time, so ids grow in emit order.
- The store append happens before fan-out and never depends on whether
  any session is connected.
- A broken session is dropped by the registry; delivery to the remaining
  sessions continues.
"""

from typing import Any

from chart_gateway.core.config.constants import BROADCAST_ALL, EventKind
from chart_gateway.core.logging import get_logger
from chart_gateway.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)
from chart_gateway.streaming.connection_registry import ConnectionRegistry
from chart_gateway.streaming.event_store import EventStore
from chart_gateway.streaming.models import ChartEvent, EventSequence

logger = get_logger(__name__)


class EventBroadcaster:
    """
    Fan-out of lifecycle events.

    Usage:
        broadcaster = EventBroadcaster(registry, store, sequence)
        await broadcaster.emit("all", EventKind.PROGRESS, "Processing...", request_id)
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        store: EventStore,
        sequence: EventSequence | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self._registry = registry
        self._store = store
        self._sequence = sequence or EventSequence()
        self._metrics = metrics or get_metrics_collector()

    async def emit(
        self,
        target: str,
        kind: EventKind,
        message: str,
        request_id: str,
        data: dict[str, Any] | None = None,
    ) -> ChartEvent:
        """
        Emit one event.

        Args:
            target: A client id, or ``"all"`` for every open session
            kind: Event kind (goes on the ``event:`` line)
            message: Human readable message
            request_id: Owning chart request (``"system"`` is never stored)
            data: Optional structured payload

        Returns:
            ChartEvent: The event as stored and sent
        """
        event = ChartEvent(
            id=self._sequence.next(),
            request_id=request_id,
            kind=kind,
            message=message,
            data=data,
        )

        if not event.is_system:
            await self._store.append(event)

        if target == BROADCAST_ALL:
            recipients = self._registry.client_ids()
        else:
            recipients = [target]

        delivered = 0
        for client_id in recipients:
            if self._registry.write_to_session(client_id, event):
                delivered += 1

        self._metrics.record_event(kind.value)
        logger.info(
            "event_emitted",
            stage="3.2",
            request_id=request_id,
            event_id=event.id,
            kind=kind.value,
            target=target,
            delivered=delivered,
        )
        return event

    async def history(self, request_id: str) -> list[ChartEvent]:
        return await self._store.history(request_id)
