"""
Application Services Package
=============================

Business logic used by the API routes.

ARCHITECTURE PATTERN:
---------------------
Controller → Service → Orchestrator

- Controller (routes): HTTP request/response handling
- Service: Shapes ledger records and events into responses
- Orchestrator: Owns the chart request lifecycle

Both the REST and MCP surfaces go through ``ChartService``, so they share
one ledger and one event stream.
"""

from chart_gateway.application.services.chart_service import ChartService, status_view, summary_view
from chart_gateway.application.services.mcp_service import TOOLS, McpService

__all__ = [
    "ChartService",
    "McpService",
    "TOOLS",
    "status_view",
    "summary_view",
]
