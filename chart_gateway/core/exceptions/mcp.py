"""
MCP Exceptions

Errors raised while dispatching MCP tool calls. The ``/mcp`` routes render
every one of these as a JSON-RPC error object.

Author: System Architect
Date: 2025-12-08
"""

from chart_gateway.core.exceptions.base import ChartGatewayError


class McpError(ChartGatewayError):
    """Base exception for MCP protocol errors."""
    pass


class UnknownToolError(McpError):
    """Raised when ``tools/call`` names a tool the server does not expose."""
    pass


class ToolExecutionError(McpError):
    """
    Raised when a tool ran but could not produce a result.

    Common causes:
    - Chart config rejected by validation
    - Render finished in the failed state
    - Status lookup for an unknown request id
    """
    pass
