"""
Streaming Module

SSE sessions, event history and event fan-out.
"""

from .broadcaster import EventBroadcaster
from .connection_registry import ConnectionRegistry, Session
from .event_store import EventStore
from .models import ChartEvent, EventSequence, format_timestamp
from .session_stream import OutputStream, QueueOutputStream, stream_frames

__all__ = [
    "ChartEvent",
    "ConnectionRegistry",
    "EventBroadcaster",
    "EventSequence",
    "EventStore",
    "OutputStream",
    "QueueOutputStream",
    "Session",
    "format_timestamp",
    "stream_frames",
]
