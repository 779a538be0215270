"""
API Models Package
==================

Pydantic models for API request/response bodies.

ORGANIZATION:
-------------
- charts.py: ``/api/v2`` chart, event history and health views
- mcp.py: JSON-RPC envelopes and MCP tool content blocks
"""

from chart_gateway.application.api.models.charts import *  # noqa: F401, F403
from chart_gateway.application.api.models.mcp import *  # noqa: F401, F403
