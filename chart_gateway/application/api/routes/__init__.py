"""
API Routes
==========

- ``events``: SSE sessions and per-request event history (``/api/v2/events``)
- ``charts``: chart submission, status, recent list, symbols (``/api/v2``)
- ``health``: gateway health summary and liveness/readiness probes
- ``mcp``: JSON-RPC style MCP surface (``/mcp``)
"""

from chart_gateway.application.api.routes.charts import router as charts_router
from chart_gateway.application.api.routes.events import router as events_router
from chart_gateway.application.api.routes.health import router as health_router
from chart_gateway.application.api.routes.mcp import router as mcp_router

__all__ = ["charts_router", "events_router", "health_router", "mcp_router"]
