"""
Request Ledger

Process-lifetime record of every chart request and its current state.

Each change is a whole-record replace (``model_copy``), so a reader never
observes a half-applied transition. The state machine is enforced here:

    pending -> processing -> completed | failed

Anything else raises ``InvalidTransitionError``.
"""

import itertools
import time
from datetime import datetime
from typing import Any

from chart_gateway.charts.models import ChartConfig, ChartRequest, ChartResult
from chart_gateway.core.config.constants import ALLOWED_TRANSITIONS, ChartStatus
from chart_gateway.core.exceptions import InvalidTransitionError, RequestNotFoundError
from chart_gateway.core.logging import get_logger, log_stage
from chart_gateway.streaming.models import utc_now

logger = get_logger(__name__)


class RequestLedger:
    """
    In-process chart request store.

    Args:
        max_entries: Optional retention cap. When exceeded, the oldest
            terminal records are pruned; in-flight records are never pruned.
    """

    def __init__(self, max_entries: int | None = None):
        self._records: dict[str, ChartRequest] = {}
        self._sequence = itertools.count(1)
        self._max_entries = max_entries

    async def create(self, config: ChartConfig, client_id: str | None = None) -> ChartRequest:
        """Insert a new pending record and return it."""
        seq = next(self._sequence)
        request = ChartRequest(
            id=seq,
            request_id=f"req_{int(time.time() * 1000)}_{seq}",
            config=config,
            status=ChartStatus.PENDING,
            created_at=utc_now(),
            client_id=client_id,
        )
        self._records[request.request_id] = request
        self._prune()

        log_stage(
            logger, "2.1", "chart_request_created",
            request_id=request.request_id,
            symbol=config.symbol,
            client_id=client_id,
        )
        return request

    async def get(self, request_id: str) -> ChartRequest | None:
        return self._records.get(request_id)

    async def recent(self, limit: int) -> list[ChartRequest]:
        """Newest first; ties on created_at go to the higher sequence id."""
        ordered = sorted(
            self._records.values(),
            key=lambda r: (r.created_at, r.id),
            reverse=True,
        )
        return ordered[:max(limit, 0)]

    async def transition(
        self,
        request_id: str,
        status: ChartStatus,
        *,
        result: ChartResult | None = None,
        error_message: str | None = None,
        processing_time: int | None = None,
        completed_at: datetime | None = None,
    ) -> ChartRequest:
        """
        Move a record to ``status`` and return the replacement record.

        Raises:
            RequestNotFoundError: unknown request id
            InvalidTransitionError: edge not allowed by the state machine
        """
        current = self._records.get(request_id)
        if current is None:
            raise RequestNotFoundError(
                f"Chart request not found: {request_id}", request_id=request_id
            )

        if status not in ALLOWED_TRANSITIONS[current.status]:
            raise InvalidTransitionError(
                f"Cannot move chart request from {current.status.value} to {status.value}",
                request_id=request_id,
                details={"from": current.status.value, "to": status.value},
            )

        changes: dict[str, Any] = {"status": status}
        if status is ChartStatus.COMPLETED:
            if result is None:
                raise InvalidTransitionError(
                    "A completed chart request requires a result", request_id=request_id
                )
            changes.update(result=result, error_message=None)
        elif status is ChartStatus.FAILED:
            changes.update(result=None, error_message=error_message or "Unknown error")

        if status.is_terminal:
            changes["processing_time"] = processing_time
            changes["completed_at"] = completed_at or utc_now()

        updated = current.model_copy(update=changes)
        self._records[request_id] = updated

        log_stage(
            logger, "2.2", "chart_request_transitioned",
            request_id=request_id,
            from_status=current.status.value,
            to_status=status.value,
            processing_time=updated.processing_time,
        )
        return updated

    def _prune(self) -> None:
        if self._max_entries is None or len(self._records) <= self._max_entries:
            return
        excess = len(self._records) - self._max_entries
        for request_id in [rid for rid, r in self._records.items() if r.is_terminal][:excess]:
            del self._records[request_id]
            logger.debug("chart_request_pruned", stage="2.3", request_id=request_id)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, request_id: str) -> bool:
        return request_id in self._records
