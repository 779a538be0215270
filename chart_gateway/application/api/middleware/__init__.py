"""
Middleware Package
==================

MIDDLEWARE ORDERING:
--------------------
Middleware added last runs first on the request:

Request flow:  Client → CORS → Correlation ID → Error handling → Handler

``setup_middleware`` registers them in that order.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chart_gateway.core.config.constants import HEADER_CORRELATION_ID
from chart_gateway.core.config.settings import Settings
from chart_gateway.core.logging import get_logger

from .correlation import CorrelationIdMiddleware
from .error_handler import ErrorHandlingMiddleware, add_error_handling_middleware

logger = get_logger(__name__)


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """
    Register all middleware components in the correct order.

    Args:
        app: FastAPI application instance
        settings: Settings the app was created with
    """
    # Innermost: catch-all for unhandled exceptions
    add_error_handling_middleware(
        app, include_traceback=(settings.app.ENVIRONMENT == "development")
    )

    app.add_middleware(CorrelationIdMiddleware)

    # Outermost: the demo UI is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[HEADER_CORRELATION_ID],
    )

    logger.info("All middleware components registered")


__all__ = [
    "setup_middleware",
    "add_error_handling_middleware",
    "ErrorHandlingMiddleware",
    "CorrelationIdMiddleware",
]
