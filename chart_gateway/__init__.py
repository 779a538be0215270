"""
Chart MCP Gateway

Exposes the Chart-IMG rendering API through MCP and a REST surface, with
SSE progress events for every chart request.
"""

__version__ = "1.0.0"
