"""
SSE Response Helper
===================

Opens a session in the connection registry and returns the
``StreamingResponse`` that drains it. Shared by ``/api/v2/events`` and
``/mcp/events/{client_id}``.

The greeting ``connection`` frame is queued during ``register()``, so it is
the first thing the client reads once the response headers are sent.

The session is registered before the response starts. ``SessionStreamingResponse``
closes the stream when the ASGI call ends for any reason, including a client
that disconnects before the body iterator is first pulled.
"""

from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from chart_gateway.core.logging import get_logger
from chart_gateway.streaming.connection_registry import ConnectionRegistry
from chart_gateway.streaming.session_stream import QueueOutputStream, stream_frames

logger = get_logger(__name__)

SSE_HEADERS = {
    # SSE streams are per-connection and must never be cached
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    # Disable NGINX response buffering
    "X-Accel-Buffering": "no",
}


class SessionStreamingResponse(StreamingResponse):
    """``text/event-stream`` response bound to one session stream."""

    def __init__(self, stream: QueueOutputStream):
        super().__init__(stream_frames(stream), media_type="text/event-stream", headers=SSE_HEADERS)
        self.stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            # Fires the registry's close listener; no-op if already closed
            self.stream.close()


def open_sse_session(
    registry: ConnectionRegistry,
    client_id: str,
    last_event_id: str | None = None,
    buffer_size: int = 1000,
) -> SessionStreamingResponse:
    """
    Register ``client_id`` and stream its frames.

    Args:
        registry: Connection registry that owns the session
        client_id: Session id (client supplied or server generated)
        last_event_id: Value of the ``Last-Event-ID`` header; recorded only
        buffer_size: Frames queued before a slow client is dropped

    Returns:
        SessionStreamingResponse: ``text/event-stream`` body for the session
    """
    stream = QueueOutputStream(maxsize=buffer_size)
    registry.register(client_id, stream, last_event_id=last_event_id)

    logger.debug("sse_response_opened", client_id=client_id)
    return SessionStreamingResponse(stream)
