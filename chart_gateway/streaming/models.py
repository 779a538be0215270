"""
SSE event model and wire framing.

An event is immutable once created. The same object is appended to the
event store and written to every live session it targets.

Wire frame:

    event: <kind>\\n
    data: {"type": ..., "message": ..., "requestId": ..., "timestamp": ..., "data": ...}\\n
    \\n
"""

import itertools
import secrets
import time
from datetime import datetime, timezone
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field

from chart_gateway.core.config.constants import SYSTEM_REQUEST_ID, EventKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_client_id(prefix: str = "client") -> str:
    """Server-generated session id: ``<prefix>_<epoch-millis>_<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class EventSequence:
    """
    Process-wide monotonic event id source.

    One instance is shared by the connection registry (connection events)
    and the broadcaster (lifecycle events).
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)

    def next(self) -> int:
        return next(self._counter)


class ChartEvent(BaseModel):
    """A single lifecycle or session event."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Monotonic per-process sequence id")
    request_id: str = Field(..., description="Chart request id, or 'system' for session events")
    kind: EventKind
    message: str
    timestamp: datetime = Field(default_factory=utc_now)
    data: dict[str, Any] | None = None

    @property
    def is_system(self) -> bool:
        return self.request_id == SYSTEM_REQUEST_ID

    def body(self) -> dict[str, Any]:
        """JSON body carried on the ``data:`` line."""
        payload: dict[str, Any] = {
            "type": self.kind.value,
            "message": self.message,
            "requestId": self.request_id,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload

    def format(self) -> str:
        """Format as SSE protocol string."""
        data = orjson.dumps(self.body()).decode()
        return f"event: {self.kind.value}\ndata: {data}\n\n"

    def history_view(self) -> dict[str, Any]:
        """Entry used by the per-request history endpoints."""
        view: dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value.upper(),
            "message": self.message,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.data is not None:
            view["data"] = self.data
        return view
