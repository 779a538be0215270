"""
Unit Tests for Render Providers

ChartImgProvider runs against httpx.MockTransport; no network access.
"""

import base64

import httpx
import orjson
import pytest

from chart_gateway.charts.models import ChartConfig
from chart_gateway.charts.providers import ChartImgProvider, FakeRenderProvider, create_provider
from chart_gateway.charts.providers.base_provider import ProviderConfig
from chart_gateway.core.config.constants import FALLBACK_SYMBOLS, MSG_PROCESSING, MSG_SENDING
from chart_gateway.core.exceptions import UpstreamError, UpstreamNotConfiguredError, UpstreamTimeoutError

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


@pytest.fixture
def chart_config(sample_chart_config):
    return ChartConfig.model_validate(sample_chart_config)


@pytest.fixture
def progress():
    messages: list[str] = []

    async def on_progress(message: str) -> None:
        messages.append(message)

    on_progress.messages = messages
    return on_progress


def _provider(handler, api_key: str | None = "test-key", max_retries: int = 1) -> ChartImgProvider:
    config = ProviderConfig(
        name="chart-img", api_key=api_key, base_url="https://api.chart-img.com", timeout=5, max_retries=max_retries
    )
    return ChartImgProvider(config, transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestChartImgRender:
    """Test response handling for the advanced-chart endpoint."""

    async def test_json_response_with_url(self, chart_config, progress):
        # Arrange
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["key"] = request.headers.get("x-api-key")
            seen["body"] = orjson.loads(request.content)
            return httpx.Response(200, json={"url": "https://charts.example/abc.png"})

        provider = _provider(handler)

        # Act
        result = await provider.render(chart_config, progress)
        await provider.close()

        # Assert
        assert result.success is True
        assert result.url == "https://charts.example/abc.png"
        assert seen["path"] == "/v2/tradingview/advanced-chart"
        assert seen["key"] == "test-key"
        assert seen["body"]["symbol"] == "NASDAQ:AAPL"
        assert progress.messages == [MSG_SENDING, MSG_PROCESSING]

    async def test_png_response_becomes_data_uri(self, chart_config, progress):
        provider = _provider(lambda r: httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"}))

        result = await provider.render(chart_config, progress)

        assert result.success is True
        assert result.base64 == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()

    async def test_error_status_returns_failure(self, chart_config, progress):
        provider = _provider(lambda r: httpx.Response(429, text="Too Many Requests"))

        result = await provider.render(chart_config, progress)

        assert result.success is False
        assert result.error == "Chart-IMG API error: 429 Too Many Requests"
        assert progress.messages == [MSG_SENDING]

    async def test_unexpected_content_type_fails(self, chart_config, progress):
        provider = _provider(lambda r: httpx.Response(200, text="<html></html>", headers={"content-type": "text/html"}))

        result = await provider.render(chart_config, progress)

        assert result.success is False
        assert result.error == "Unexpected response format from Chart-IMG API"

    async def test_json_without_image_fails(self, chart_config, progress):
        provider = _provider(lambda r: httpx.Response(200, json={"status": "ok"}))

        result = await provider.render(chart_config, progress)

        assert result.success is False

    async def test_missing_key_raises_before_any_request(self, chart_config, progress):
        calls = []
        provider = _provider(lambda r: calls.append(r) or httpx.Response(200), api_key=None)

        with pytest.raises(UpstreamNotConfiguredError):
            await provider.render(chart_config, progress)

        assert calls == []
        assert provider.is_configured is False

    async def test_connect_error_raises_upstream_error(self, chart_config, progress):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = _provider(handler)

        with pytest.raises(UpstreamError):
            await provider.render(chart_config, progress)

    async def test_timeout_raises_upstream_timeout(self, chart_config, progress):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = _provider(handler)

        with pytest.raises(UpstreamTimeoutError):
            await provider.render(chart_config, progress)

    async def test_read_timeout_is_not_resent(self, chart_config, progress):
        # Arrange: the request reached Chart-IMG before timing out
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        provider = _provider(handler, max_retries=3)

        # Act
        with pytest.raises(UpstreamTimeoutError):
            await provider.render(chart_config, progress)

        # Assert
        assert len(calls) == 1


@pytest.mark.unit
class TestChartImgSymbols:
    async def test_symbols_from_exchanges_endpoint(self):
        provider = _provider(lambda r: httpx.Response(200, json={"exchanges": ["NASDAQ", "NYSE"]}))

        assert await provider.list_symbols() == ["NASDAQ", "NYSE"]

    async def test_symbols_fall_back_on_error(self):
        provider = _provider(lambda r: httpx.Response(500, text="down"))

        assert await provider.list_symbols() == list(FALLBACK_SYMBOLS)

    async def test_symbols_fall_back_without_key(self):
        provider = _provider(lambda r: httpx.Response(200, json={"exchanges": ["X"]}), api_key=None)

        assert await provider.list_symbols() == list(FALLBACK_SYMBOLS)


@pytest.mark.unit
class TestFakeProvider:
    async def test_renders_png_of_requested_size(self, chart_config, progress):
        provider = FakeRenderProvider(ProviderConfig(name="fake", api_key=None, base_url=""), latency=0)

        result = await provider.render(chart_config, progress)

        assert result.success is True
        png = base64.b64decode(result.base64.removeprefix("data:image/png;base64,"))
        assert png.startswith(b"\x89PNG")
        assert int.from_bytes(png[16:20], "big") == 800
        assert int.from_bytes(png[20:24], "big") == 600
        assert progress.messages == [MSG_SENDING, MSG_PROCESSING]

    async def test_failure_rate_one_always_fails(self, chart_config, progress):
        provider = FakeRenderProvider(
            ProviderConfig(name="fake", api_key=None, base_url=""), latency=0, failure_rate=1.0
        )

        result = await provider.render(chart_config, progress)

        assert result.success is False


@pytest.mark.unit
class TestProviderSelection:
    def test_fake_selected_by_settings(self, test_settings):
        assert isinstance(create_provider(test_settings), FakeRenderProvider)

    async def test_chart_img_selected_by_settings(self, test_settings):
        settings = test_settings.model_copy(update={"CHART_PROVIDER": "chart-img", "CHART_IMG_API_KEY": "k"})

        provider = create_provider(settings)

        assert isinstance(provider, ChartImgProvider)
        assert provider.is_configured
        await provider.close()
