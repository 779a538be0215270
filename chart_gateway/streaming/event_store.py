"""
Event Store

Append-only, per-request history of lifecycle events. History survives
client disconnects and ledger pruning; it lives for the process lifetime.
"""

from chart_gateway.core.logging import get_logger
from chart_gateway.streaming.models import ChartEvent

logger = get_logger(__name__)


class EventStore:
    """In-process event history keyed by request id."""

    def __init__(self):
        self._events: dict[str, list[ChartEvent]] = {}
        self._total = 0

    async def append(self, event: ChartEvent) -> None:
        self._events.setdefault(event.request_id, []).append(event)
        self._total += 1
        logger.debug(
            "event_stored",
            stage="3.1",
            request_id=event.request_id,
            event_id=event.id,
            kind=event.kind.value,
        )

    async def history(self, request_id: str) -> list[ChartEvent]:
        """Events for ``request_id`` in append order (empty for unknown ids)."""
        return list(self._events.get(request_id, ()))

    def __len__(self) -> int:
        return self._total
