"""
Streaming Exceptions

All exceptions related to SSE session output

Author: System Architect
Date: 2025-12-08
"""

from chart_gateway.core.exceptions.base import ChartGatewayError


class StreamingError(ChartGatewayError):
    """Base exception for streaming errors."""
    pass


class StreamWriteError(StreamingError):
    """
    Raised when a frame cannot be written to a session stream.

    Common causes:
    - The client disconnected and the stream is closed
    - The client stopped reading and its buffer filled up

    The connection registry treats this as an implicit disconnect.
    """
    pass
