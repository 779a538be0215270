"""
FastAPI Application Entry Point

Builds the chart gateway application: lifespan-managed gateway state,
middleware, the REST, MCP and health routers, and the exception handlers
that map the ChartGatewayError hierarchy onto HTTP responses.

Author: Senior Solution Architect
Date: 2025-12-05
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from chart_gateway.application.api.middleware import setup_middleware
from chart_gateway.application.api.routes import charts_router, events_router, health_router, mcp_router
from chart_gateway.application.state import build_state
from chart_gateway.charts.providers.base_provider import RenderProvider
from chart_gateway.core.config.constants import MCP_SERVER_NAME, MCP_SERVER_VERSION, ProviderName
from chart_gateway.core.config.settings import Settings, get_settings
from chart_gateway.core.exceptions import ChartGatewayError, ValidationError
from chart_gateway.core.logging import get_logger, setup_logging
from chart_gateway.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

API_PREFIX = "/api/v2"


def create_app(settings: Settings | None = None, provider: RenderProvider | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings override (defaults to the environment)
        provider: Render provider override, used by tests

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

        logger.info(
            "Starting Chart MCP Gateway",
            environment=settings.app.ENVIRONMENT,
            version=settings.app.APP_VERSION,
            provider=settings.CHART_PROVIDER,
        )
        if not settings.upstream_configured and settings.CHART_PROVIDER == ProviderName.CHART_IMG:
            logger.warning("CHART_IMG_API_KEY not set; chart generation will fail until configured")

        gateway = build_state(settings, provider=provider)
        app.state.gateway = gateway
        logger.info("Application startup complete")

        try:
            yield
        finally:
            logger.info("Shutting down application")
            await gateway.close()
            app.state.gateway = None
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="MCP gateway for Chart-IMG with real-time SSE progress events",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    setup_middleware(app, settings)

    app.include_router(events_router, prefix=API_PREFIX)
    app.include_router(charts_router, prefix=API_PREFIX)
    app.include_router(health_router)
    app.include_router(mcp_router)

    @app.get("/", tags=["Root"])
    async def root():
        """Server information and endpoint index."""
        return {
            "name": MCP_SERVER_NAME,
            "version": MCP_SERVER_VERSION,
            "protocol": "Model Context Protocol over HTTP",
            "environment": settings.app.ENVIRONMENT,
            "endpoints": {
                "initialize": "POST /mcp/initialize",
                "listTools": "POST /mcp/tools/list",
                "callTool": "POST /mcp/tools/call",
                "events": "GET /mcp/events/:clientId",
                "health": "GET /mcp/health",
                "restEvents": f"GET {API_PREFIX}/events",
                "generateChart": f"POST {API_PREFIX}/chart/generate",
                "metrics": "GET /metrics",
            },
            "docs": "/docs",
        }

    @app.get("/metrics", tags=["Monitoring"])
    async def metrics():
        collector = get_metrics_collector()
        return Response(content=collector.get_prometheus_metrics(), media_type=collector.get_content_type())

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        logger.info("Request rejected", error_type=type(exc).__name__, path=request.url.path)
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": exc.message, "details": exc.details.get("errors", exc.details)},
        )

    @app.exception_handler(ChartGatewayError)
    async def gateway_exception_handler(request: Request, exc: ChartGatewayError):
        logger.error(
            f"Gateway exception: {exc.message}",
            error_type=type(exc).__name__,
            request_id=exc.request_id,
        )
        get_metrics_collector().record_error(type(exc).__name__, "exception_handler")
        return JSONResponse(status_code=500, content={"success": False, **exc.to_dict()})

    return app
