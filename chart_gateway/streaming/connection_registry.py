"""
Connection Registry
===================

Owns every open SSE session, keyed by client id.

Responsibilities:
-----------------
1. **Registration**: at most one live session per client id. Registering an
   id that is already present closes and replaces the previous session.
2. **Greeting**: a ``connection`` event is written before ``register``
   returns, so the client sees it before any lifecycle event.
3. **Heartbeat**: a ``: heartbeat`` comment every ``heartbeat_interval``
   seconds, only while the session stays registered.
4. **Disconnect detection**: the stream's close signal deregisters the
   session; so does any failed write.

Writes never raise to the caller. A broken session is removed and the
write reports ``False``; the rest of the fan-out carries on.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime

from chart_gateway.core.config.constants import (
    MSG_CONNECTED,
    SSE_HEARTBEAT_FRAME,
    SSE_HEARTBEAT_INTERVAL,
    SYSTEM_REQUEST_ID,
    EventKind,
)
from chart_gateway.core.exceptions import StreamWriteError
from chart_gateway.core.logging import get_logger, log_stage
from chart_gateway.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)
from chart_gateway.streaming.models import ChartEvent, EventSequence, utc_now
from chart_gateway.streaming.session_stream import OutputStream

logger = get_logger(__name__)


@dataclass(eq=False)
class Session:
    """One open SSE connection."""

    client_id: str
    stream: OutputStream
    last_event_id: str | None = None
    connected_at: datetime = field(default_factory=utc_now)
    heartbeat_task: asyncio.Task | None = None


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class ConnectionRegistry:
    """
    Registry of open SSE sessions.

    Usage:
        registry = ConnectionRegistry(sequence, heartbeat_interval=30)
        registry.register("client_1", stream)
        registry.write_to_session("client_1", event)
        registry.deregister("client_1")
    """

    def __init__(
        self,
        sequence: EventSequence | None = None,
        heartbeat_interval: float = SSE_HEARTBEAT_INTERVAL,
        metrics: MetricsCollector | None = None,
    ):
        self._sessions: dict[str, Session] = {}
        self._sequence = sequence or EventSequence()
        self._heartbeat_interval = heartbeat_interval
        self._metrics = metrics or get_metrics_collector()

    # =========================================================================
    # Registration
    # =========================================================================

    def register(
        self,
        client_id: str,
        stream: OutputStream,
        last_event_id: str | None = None,
    ) -> Session:
        """
        Open a session for ``client_id``.

        Must be called from a running event loop (the heartbeat is a task).
        """
        if client_id in self._sessions:
            log_stage(logger, "S.1", "session_replaced", client_id=client_id)
            self.deregister(client_id)

        session = Session(client_id=client_id, stream=stream, last_event_id=last_event_id)
        self._sessions[client_id] = session
        stream.add_close_listener(lambda: self._on_stream_closed(session))

        greeting = ChartEvent(
            id=self._sequence.next(),
            request_id=SYSTEM_REQUEST_ID,
            kind=EventKind.CONNECTION,
            message=MSG_CONNECTED,
        )
        if not self._write(session, greeting.format()):
            return session

        session.heartbeat_task = asyncio.get_running_loop().create_task(
            self._heartbeat_loop(session),
            name=f"sse-heartbeat-{client_id}",
        )
        self._metrics.set_active_sessions(len(self._sessions))

        log_stage(
            logger, "S.1", "session_registered",
            client_id=client_id,
            last_event_id=last_event_id,
            live_sessions=len(self._sessions),
        )
        return session

    def deregister(self, client_id: str) -> bool:
        """
        Close and forget the session for ``client_id``.

        Idempotent: unknown ids return False.
        """
        session = self._sessions.pop(client_id, None)
        if session is None:
            return False

        task = session.heartbeat_task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        session.heartbeat_task = None
        session.stream.close()

        self._metrics.set_active_sessions(len(self._sessions))
        log_stage(
            logger, "S.2", "session_deregistered",
            client_id=client_id,
            live_sessions=len(self._sessions),
        )
        return True

    def _on_stream_closed(self, session: Session) -> None:
        # A replaced session's stream may close after its successor registered.
        if self._sessions.get(session.client_id) is session:
            self.deregister(session.client_id)

    # =========================================================================
    # Writes
    # =========================================================================

    def write_to_session(self, client_id: str, event: ChartEvent) -> bool:
        """Best-effort delivery of one event. False if not delivered."""
        session = self._sessions.get(client_id)
        if session is None:
            return False
        return self._write(session, event.format())

    def _write(self, session: Session, frame: str) -> bool:
        try:
            session.stream.write(frame)
            return True
        except StreamWriteError as e:
            self._metrics.record_session_write_failure()
            log_stage(
                logger, "S.3", "session_write_failed", level="warning",
                client_id=session.client_id,
                error=e.message,
            )
            if self._sessions.get(session.client_id) is session:
                self.deregister(session.client_id)
            return False

    async def _heartbeat_loop(self, session: Session) -> None:
        while self._sessions.get(session.client_id) is session:
            await asyncio.sleep(self._heartbeat_interval)
            if self._sessions.get(session.client_id) is not session:
                return
            if not self._write(session, SSE_HEARTBEAT_FRAME):
                return

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, client_id: str) -> Session | None:
        return self._sessions.get(client_id)

    def client_ids(self) -> list[str]:
        """Snapshot of open client ids (safe to iterate while writing)."""
        return list(self._sessions)

    def count(self) -> int:
        return len(self._sessions)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._sessions

    async def close_all(self) -> None:
        """Deregister every session (application shutdown)."""
        for client_id in self.client_ids():
            self.deregister(client_id)
        await asyncio.sleep(0)
