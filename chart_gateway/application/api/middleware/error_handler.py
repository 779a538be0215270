"""
Error Handling Middleware
=========================

Catch-all for exceptions that escape both the route handlers and the
ChartGatewayError handlers registered in ``app.py``.

LAYERS:
-------
1. Routes answer expected failures themselves (400 on bad chart config,
   404 on unknown request, JSON-RPC error objects on /mcp)
2. ``@app.exception_handler`` maps the ChartGatewayError hierarchy
3. This middleware turns anything else into a 500

The trace is always logged with the correlation id; it is only echoed to
the client in development.
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from chart_gateway.core.logging import get_logger
from chart_gateway.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred while processing your request"


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Answers 500 for unhandled exceptions.

    Args:
        app: The ASGI application
        include_traceback: Echo the stack trace in the body (development)
    """

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return self._internal_error(request, exc)

    def _internal_error(self, request: Request, exc: Exception) -> JSONResponse:
        error_type = type(exc).__name__
        logger.error(
            "unhandled_exception",
            http_method=request.method,
            path=request.url.path,
            error_type=error_type,
            exc_info=True,
        )
        get_metrics_collector().record_error(error_type, "unhandled_exception")

        body = {
            "success": False,
            "error": "internal_server_error",
            "message": INTERNAL_ERROR_MESSAGE,
            "error_type": error_type,
        }
        if self.include_traceback:
            body["detail"] = str(exc)
            body["traceback"] = traceback.format_exc()
        return JSONResponse(status_code=500, content=body)


def add_error_handling_middleware(app, include_traceback: bool = False) -> None:
    """Register ErrorHandlingMiddleware; add it first so it sits innermost."""
    app.add_middleware(ErrorHandlingMiddleware, include_traceback=include_traceback)
    logger.info("error_handling_middleware_registered", include_traceback=include_traceback)
