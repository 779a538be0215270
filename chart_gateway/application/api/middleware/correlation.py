"""
Correlation ID Middleware

Binds ``X-Correlation-ID`` (taken from the request or generated) to the
logging context for the duration of a request and echoes it back on the
response. Every log line written while handling the request carries it.

Implemented as pure ASGI middleware: ``BaseHTTPMiddleware`` runs
``call_next`` in a separate task, and a context variable set there would
not be visible to the route handler.
"""

import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from chart_gateway.core.config.constants import HEADER_CORRELATION_ID
from chart_gateway.core.logging import clear_correlation_id, set_correlation_id


class CorrelationIdMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = Headers(scope=scope).get(HEADER_CORRELATION_ID) or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers[HEADER_CORRELATION_ID] = correlation_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            clear_correlation_id()
