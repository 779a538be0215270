"""
Unit Tests for McpService

Tests the tool catalogue and each tool handler against a real
orchestrator backed by scripted providers.
"""

import pytest

from chart_gateway.application.services.chart_service import ChartService
from chart_gateway.application.services.mcp_service import TOOLS, McpService
from chart_gateway.charts.providers.base_provider import RenderResult
from chart_gateway.core.exceptions import ToolExecutionError, UnknownToolError
from tests.test_fixtures.provider_factory import ScriptedProvider
from tests.test_fixtures.streams import RecordingStream


@pytest.fixture
def make_mcp(make_orchestrator, test_settings):
    def _make(provider=None) -> McpService:
        orchestrator = make_orchestrator(provider or ScriptedProvider())
        return McpService(ChartService(orchestrator, test_settings))

    return _make


@pytest.mark.unit
class TestProtocol:
    def test_initialize_advertises_sse_endpoint(self, make_mcp):
        result = make_mcp().initialize()

        assert result["protocolVersion"] == "2024-11-05"
        assert result["serverInfo"] == {"name": "chart-img-mcp-server", "version": "1.0.0"}
        assert result["capabilities"]["sse"]["enabled"] is True
        assert result["capabilities"]["sse"]["endpoint"].startswith("/mcp/events/mcp_")

    def test_tool_catalogue(self, make_mcp):
        tools = make_mcp().list_tools()["tools"]

        assert [t["name"] for t in tools] == [
            "generate_chart", "get_chart_status", "get_available_symbols", "get_recent_requests", "health_check",
        ]
        assert TOOLS[0]["inputSchema"]["required"] == ["symbol", "interval", "chartType"]

    async def test_unknown_tool(self, make_mcp):
        with pytest.raises(UnknownToolError, match="Unknown tool: draw_rainbow"):
            await make_mcp().call_tool("draw_rainbow", {})


@pytest.mark.unit
class TestGenerateChart:
    async def test_success_returns_text_and_image(self, make_mcp, sample_chart_config):
        # Act
        result = await make_mcp().call_tool("generate_chart", sample_chart_config)

        # Assert
        text, image = result["content"]
        assert text["type"] == "text"
        assert text["text"].startswith("Chart generated successfully!")
        assert "Symbol: NASDAQ:AAPL" in text["text"]
        assert "Chart Type: candlestick" in text["text"]
        assert image == {"type": "image", "data": "iVBORw0KGgo=", "mimeType": "image/png"}

    async def test_progress_is_broadcast_to_open_sessions(self, make_mcp, registry, sample_chart_config):
        stream = RecordingStream()
        registry.register("watcher", stream)

        await make_mcp().call_tool("generate_chart", sample_chart_config)

        kinds = [f.split("\n")[0] for f in stream.event_frames()]
        assert kinds[0] == "event: connection"
        assert kinds[-1] == "event: success"

    async def test_failed_render_raises_tool_error(self, make_mcp, sample_chart_config):
        mcp = make_mcp(ScriptedProvider(RenderResult.failure("rate limited")))

        with pytest.raises(ToolExecutionError, match="Chart generation failed: rate limited"):
            await mcp.call_tool("generate_chart", sample_chart_config)

    async def test_invalid_arguments_raise_tool_error(self, make_mcp):
        with pytest.raises(ToolExecutionError) as exc_info:
            await make_mcp().call_tool("generate_chart", {"symbol": "NASDAQ:AAPL"})

        assert exc_info.value.message == "Invalid request parameters"
        assert {e["field"] for e in exc_info.value.details["errors"]} == {"interval", "chartType"}


@pytest.mark.unit
class TestQueryTools:
    async def test_chart_status_report(self, make_mcp, sample_chart_config):
        mcp = make_mcp()
        await mcp.call_tool("generate_chart", sample_chart_config)
        request_id = (await mcp.charts.recent_requests(1))[0].request_id

        result = await mcp.call_tool("get_chart_status", {"requestId": request_id})

        text = result["content"][0]["text"]
        assert text.startswith("Chart Status Report")
        assert f"Request ID: {request_id}" in text
        assert "Status: COMPLETED" in text
        assert result["content"][1]["type"] == "image"

    async def test_chart_status_unknown_request(self, make_mcp):
        with pytest.raises(ToolExecutionError, match="Chart request not found"):
            await make_mcp().call_tool("get_chart_status", {"requestId": "req_missing"})

    async def test_chart_status_requires_id(self, make_mcp):
        with pytest.raises(ToolExecutionError, match="requestId is required"):
            await make_mcp().call_tool("get_chart_status", {})

    async def test_symbols(self, make_mcp):
        result = await make_mcp().call_tool("get_available_symbols", None)

        text = result["content"][0]["text"]
        assert text.startswith("Available Trading Symbols")
        assert "- NASDAQ:AAPL" in text

    async def test_recent_requests_empty(self, make_mcp):
        result = await make_mcp().call_tool("get_recent_requests", {})

        text = result["content"][0]["text"]
        assert text.startswith("Recent Chart Requests (0 of 10)")
        assert text.endswith("No recent requests found.")

    async def test_recent_requests_lists_rows(self, make_mcp, sample_chart_config):
        mcp = make_mcp()
        await mcp.call_tool("generate_chart", sample_chart_config)

        result = await mcp.call_tool("get_recent_requests", {"limit": 500})

        text = result["content"][0]["text"]
        assert text.startswith("Recent Chart Requests (1 of 50)")
        assert "| NASDAQ:AAPL | 1D | candlestick | COMPLETED |" in text

    async def test_health_check_text(self, make_mcp):
        result = await make_mcp().call_tool("health_check", {})

        text = result["content"][0]["text"]
        assert "Service Status: HEALTHY" in text
        assert "Chart-IMG API: CONFIGURED" in text
        assert "Connected Clients: 0" in text

    async def test_health_check_reports_missing_key(self, make_mcp):
        result = await make_mcp(ScriptedProvider(configured=False)).call_tool("health_check", {})

        text = result["content"][0]["text"]
        assert "Service Status: CONFIGURATION_ERROR" in text
        assert "API_KEY_MISSING" in text
