"""
MCP Service
===========

Implements the Model Context Protocol methods exposed over HTTP:

- ``initialize``  -> protocol version, capabilities, server info
- ``tools/list``  -> the five chart tools with their JSON input schemas
- ``tools/call``  -> dispatch to a tool handler

Tool handlers return MCP content blocks (text, and an image block when a
chart is available). ``generate_chart`` is synchronous from the caller's
point of view: it submits through the shared orchestrator and waits for
the terminal state, while progress events go to every open session.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import structlog

from chart_gateway.application.api.models.mcp import ImageContent, TextContent, ToolResult
from chart_gateway.application.services.chart_service import ChartService
from chart_gateway.charts.models import ChartRequest
from chart_gateway.core.config.constants import (
    CHART_DEFAULT_HEIGHT,
    CHART_DEFAULT_TIMEZONE,
    CHART_DEFAULT_WIDTH,
    CHART_MAX_HEIGHT,
    CHART_MAX_WIDTH,
    CHART_MIN_HEIGHT,
    CHART_MIN_WIDTH,
    MCP_PROTOCOL_VERSION,
    MCP_SERVER_NAME,
    MCP_SERVER_VERSION,
    RECENT_REQUESTS_DEFAULT_LIMIT,
    RECENT_REQUESTS_MAX_LIMIT,
    ChartInterval,
    ChartStatus,
    ChartTheme,
    ChartType,
)
from chart_gateway.core.exceptions import (
    InvalidInputError,
    ToolExecutionError,
    UnknownToolError,
    ValidationError,
)
from chart_gateway.infrastructure.monitoring.metrics_collector import get_metrics_collector
from chart_gateway.streaming.models import format_timestamp, new_client_id

logger = structlog.get_logger(__name__)

_DATA_URI_PREFIX = "data:image/png;base64,"

# ============================================================================
# Tool Catalogue
# ============================================================================

GENERATE_CHART_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "symbol": {
            "type": "string",
            "description": "Trading symbol in format EXCHANGE:SYMBOL (e.g., NASDAQ:AAPL)",
        },
        "interval": {
            "type": "string",
            "enum": [i.value for i in ChartInterval],
            "description": "Chart time interval",
        },
        "chartType": {
            "type": "string",
            "enum": [t.value for t in ChartType],
            "description": "Type of chart to generate",
        },
        "width": {
            "type": "number",
            "minimum": CHART_MIN_WIDTH,
            "maximum": CHART_MAX_WIDTH,
            "default": CHART_DEFAULT_WIDTH,
            "description": "Chart width in pixels",
        },
        "height": {
            "type": "number",
            "minimum": CHART_MIN_HEIGHT,
            "maximum": CHART_MAX_HEIGHT,
            "default": CHART_DEFAULT_HEIGHT,
            "description": "Chart height in pixels",
        },
        "theme": {
            "type": "string",
            "enum": [t.value for t in ChartTheme],
            "default": ChartTheme.LIGHT.value,
            "description": "Chart theme",
        },
        "indicators": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "description": "Indicator type (e.g., sma, rsi, macd)"},
                    "period": {"type": "number", "description": "Period for the indicator"},
                    "color": {"type": "string", "description": "Color for the indicator"},
                },
                "required": ["type"],
            },
            "description": "Technical indicators to add to the chart",
        },
        "drawings": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "description": "trendline, horizontal, vertical or rectangle"},
                    "points": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {"x": {"type": "string"}, "y": {"type": "number"}},
                            "required": ["x", "y"],
                        },
                    },
                    "color": {"type": "string"},
                    "width": {"type": "number"},
                },
                "required": ["type"],
            },
            "description": "Drawings to overlay on the chart",
        },
        "showVolume": {"type": "boolean", "default": True, "description": "Show volume indicator"},
        "showGrid": {"type": "boolean", "default": True, "description": "Show chart grid"},
        "timezone": {"type": "string", "default": CHART_DEFAULT_TIMEZONE, "description": "Chart timezone"},
    },
    "required": ["symbol", "interval", "chartType"],
}

TOOLS: list[dict[str, Any]] = [
    {
        "name": "generate_chart",
        "description": "Generate TradingView charts using Chart-IMG API with real-time progress updates",
        "inputSchema": GENERATE_CHART_SCHEMA,
    },
    {
        "name": "get_chart_status",
        "description": "Check the status of a chart generation request",
        "inputSchema": {
            "type": "object",
            "properties": {
                "requestId": {"type": "string", "description": "The request ID returned from generate_chart"},
            },
            "required": ["requestId"],
        },
    },
    {
        "name": "get_available_symbols",
        "description": "Get list of available trading symbols from Chart-IMG API",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "get_recent_requests",
        "description": "Get recent chart generation requests with their status",
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "default": RECENT_REQUESTS_DEFAULT_LIMIT,
                    "minimum": 1,
                    "maximum": RECENT_REQUESTS_MAX_LIMIT,
                    "description": "Maximum number of requests to return",
                },
            },
        },
    },
    {
        "name": "health_check",
        "description": "Check the health and configuration status of the chart service",
        "inputSchema": {"type": "object", "properties": {}},
    },
]


def _image_block(data_uri: str | None) -> list[ImageContent]:
    if not data_uri:
        return []
    return [ImageContent(data=data_uri.removeprefix(_DATA_URI_PREFIX))]


def _seconds(ms: int | None) -> str:
    return f"{(ms or 0) / 1000:.1f}s"


class McpService:
    """
    MCP method handlers.

    Usage:
        service = McpService(chart_service)
        result = await service.call_tool("get_recent_requests", {"limit": 5})
    """

    def __init__(self, charts: ChartService):
        self.charts = charts
        self.metrics = get_metrics_collector()
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[ToolResult]]] = {
            "generate_chart": self._generate_chart,
            "get_chart_status": self._get_chart_status,
            "get_available_symbols": self._get_available_symbols,
            "get_recent_requests": self._get_recent_requests,
            "health_check": self._health_check,
        }

    # =========================================================================
    # Protocol methods
    # =========================================================================

    def initialize(self) -> dict[str, Any]:
        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": {
                "tools": {},
                "sse": {
                    "enabled": True,
                    "endpoint": f"/mcp/events/{new_client_id('mcp')}",
                },
            },
            "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
        }

    def list_tools(self) -> dict[str, Any]:
        return {"tools": TOOLS}

    async def call_tool(self, name: str | None, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """
        Dispatch one tool call.

        Raises:
            UnknownToolError: no such tool
            ToolExecutionError: the tool ran and failed
        """
        handler = self._handlers.get(name or "")
        if handler is None:
            self.metrics.record_tool_call(str(name), "unknown")
            raise UnknownToolError(f"Unknown tool: {name}")

        try:
            result = await handler(arguments or {})
        except ValidationError as e:
            self.metrics.record_tool_call(name, "invalid")
            raise ToolExecutionError(e.message, details=e.details) from e
        except ToolExecutionError:
            self.metrics.record_tool_call(name, "failed")
            raise

        self.metrics.record_tool_call(name, "ok")
        logger.info("mcp_tool_called", stage="MCP.1", tool=name)
        return result.to_wire()

    # =========================================================================
    # Tool handlers
    # =========================================================================

    async def _generate_chart(self, args: dict[str, Any]) -> ToolResult:
        request = await self.charts.generate_and_wait(args)

        if request.status is not ChartStatus.COMPLETED:
            raise ToolExecutionError(
                f"Chart generation failed: {request.error_message}",
                request_id=request.request_id,
            )

        config = request.config
        text = (
            "Chart generated successfully!\n\n"
            f"Request ID: {request.request_id}\n"
            f"Symbol: {config.symbol}\n"
            f"Interval: {config.interval.value}\n"
            f"Chart Type: {config.chart_type.value}\n"
            f"Processing Time: {_seconds(request.processing_time)}\n\n"
        )
        if request.result and request.result.url:
            text += f"Chart URL: {request.result.url}\n"
        text += "The chart has been generated and is available as a PNG image."

        image = _image_block(request.result.base64 if request.result else None)
        return ToolResult(content=[TextContent(text=text), *image])

    async def _get_chart_status(self, args: dict[str, Any]) -> ToolResult:
        request_id = args.get("requestId")
        if not request_id:
            raise InvalidInputError("requestId is required")

        request: ChartRequest | None = await self.charts.get_request(request_id)
        if request is None:
            raise ToolExecutionError("Chart request not found", request_id=request_id)

        config = request.config
        lines = [
            "Chart Status Report",
            "",
            f"Request ID: {request.request_id}",
            f"Symbol: {config.symbol}",
            f"Interval: {config.interval.value}",
            f"Chart Type: {config.chart_type.value}",
            f"Status: {request.status.value.upper()}",
            f"Created: {format_timestamp(request.created_at)}",
        ]
        if request.completed_at:
            lines.append(f"Completed: {format_timestamp(request.completed_at)}")
        if request.processing_time:
            lines.append(f"Processing Time: {_seconds(request.processing_time)}")
        if request.error_message:
            lines.append(f"Error: {request.error_message}")

        image: list[ImageContent] = []
        if request.status is ChartStatus.COMPLETED and request.result:
            image = _image_block(request.result.base64)
        return ToolResult(content=[TextContent(text="\n".join(lines) + "\n"), *image])

    async def _get_available_symbols(self, args: dict[str, Any]) -> ToolResult:
        symbols = await self.charts.symbols()
        text = (
            "Available Trading Symbols\n\n"
            f"Total symbols available: {len(symbols)}\n\n"
            "Note: Use symbols in EXCHANGE:SYMBOL format (e.g., NASDAQ:AAPL, NYSE:TSLA, BINANCE:BTCUSDT)\n\n"
            + "\n".join(f"- {symbol}" for symbol in symbols)
        )
        return ToolResult(content=[TextContent(text=text)])

    async def _get_recent_requests(self, args: dict[str, Any]) -> ToolResult:
        raw_limit = args.get("limit")
        try:
            limit = int(raw_limit) if raw_limit is not None else None
        except (TypeError, ValueError) as e:
            raise InvalidInputError("limit must be a number") from e
        limit = self.charts.clamp_limit(limit)

        requests = await self.charts.recent_requests(limit)
        rows = "\n".join(
            f"{r.request_id} | {r.config.symbol} | {r.config.interval.value} | "
            f"{r.config.chart_type.value} | {r.status.value.upper()} | {format_timestamp(r.created_at)}"
            for r in requests
        )
        text = (
            f"Recent Chart Requests ({len(requests)} of {limit})\n\n"
            "Format: Request ID | Symbol | Interval | Type | Status | Created\n\n"
            f"{rows or 'No recent requests found.'}"
        )
        return ToolResult(content=[TextContent(text=text)])

    async def _health_check(self, args: dict[str, Any]) -> ToolResult:
        health = self.charts.health()
        configured = health.chart_service_configured
        text = (
            "Chart Service Health Check\n\n"
            f"Service Status: {'HEALTHY' if configured else 'CONFIGURATION_ERROR'}\n"
            f"Chart-IMG API: {'CONFIGURED' if configured else 'API_KEY_MISSING'}\n"
            f"Connected Clients: {health.sse_clients}\n"
            f"Timestamp: {format_timestamp(datetime.now(timezone.utc))}\n\n"
            + (
                "All systems operational. Ready to generate charts."
                if configured
                else "Please set the CHART_IMG_API_KEY environment variable to use the chart generation service."
            )
        )
        return ToolResult(content=[TextContent(text=text)])
