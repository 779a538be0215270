"""
Session output streams.

A stream is the write side of one SSE connection. The connection registry
only ever talks to the ``OutputStream`` interface, so tests can substitute
an in-memory stream and the HTTP layer can use a queue drained by the
StreamingResponse body iterator.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable

from chart_gateway.core.exceptions import StreamWriteError
from chart_gateway.core.logging import get_logger

logger = get_logger(__name__)

CloseListener = Callable[[], None]


class OutputStream(ABC):
    """
    Write side of a session.

    ``close()`` is idempotent and notifies each registered close listener
    exactly once. Writing to a closed stream raises ``StreamWriteError``.
    """

    def __init__(self):
        self._closed = False
        self._close_listeners: list[CloseListener] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def add_close_listener(self, listener: CloseListener) -> None:
        """Register a callback fired once when the stream closes."""
        if self._closed:
            listener()
            return
        self._close_listeners.append(listener)

    def write(self, frame: str) -> None:
        if self._closed:
            raise StreamWriteError("Stream is closed")
        self._write(frame)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close()

        listeners, self._close_listeners = self._close_listeners, []
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error("close_listener_failed", stage="S.9", error=str(e))

    @abstractmethod
    def _write(self, frame: str) -> None:
        """Deliver one frame. Raise StreamWriteError when it cannot be accepted."""

    def _on_close(self) -> None:
        pass


class QueueOutputStream(OutputStream):
    """
    Bounded queue drained by the HTTP response body.

    A client that stops reading fills the queue; the next write then fails
    and the registry drops the session.

    Usage:
        stream = QueueOutputStream(maxsize=1000)
        registry.register(client_id, stream)
        return StreamingResponse(stream_frames(stream), media_type="text/event-stream")
    """

    _CLOSED = object()

    def __init__(self, maxsize: int = 1000):
        super().__init__()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def _write(self, frame: str) -> None:
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull as e:
            raise StreamWriteError(
                "Session buffer full",
                details={"buffered_frames": self._queue.qsize()}
            ) from e

    def _on_close(self) -> None:
        # Pending frames are abandoned so the sentinel always fits.
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(self._CLOSED)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is self._CLOSED:
                return
            yield frame


async def stream_frames(stream: QueueOutputStream) -> AsyncIterator[str]:
    """
    Body iterator for a StreamingResponse.

    When the client goes away Starlette cancels the iteration; closing the
    stream then fires the registry's close listener.
    """
    try:
        async for frame in stream:
            yield frame
    finally:
        stream.close()
