"""
Unit Tests for Chart-IMG Payload Translation
"""

import pytest

from chart_gateway.charts.models import ChartConfig
from chart_gateway.charts.providers.payload import build_payload, chart_type_code


def _config(**overrides) -> ChartConfig:
    raw = {"symbol": "NASDAQ:AAPL", "interval": "1D", "chartType": "candlestick", **overrides}
    return ChartConfig.model_validate(raw)


@pytest.mark.unit
class TestPayload:
    def test_basic_fields(self):
        payload = build_payload(_config(theme="dark", width=1000, height=700))

        assert payload["symbol"] == "NASDAQ:AAPL"
        assert payload["interval"] == "1D"
        assert payload["theme"] == "dark"
        assert (payload["width"], payload["height"]) == (1000, 700)
        assert payload["type"] == 1
        assert payload["options"] == {"timezone": "America/New_York", "volume": True, "grid": True}
        assert payload["studies"] == [] and payload["drawings"] == []

    @pytest.mark.parametrize("chart_type,code", [
        ("bar", 0), ("candlestick", 1), ("line", 2), ("area", 3), ("baseline", 7),
        ("hollow_candle", 8), ("heikin_ashi", 9), ("column", 11), ("hi_lo", 12),
    ])
    def test_chart_type_codes(self, chart_type, code):
        assert chart_type_code(chart_type) == code

    def test_unknown_chart_type_defaults_to_candles(self):
        assert chart_type_code("renko") == 1

    def test_indicators_become_studies(self):
        payload = build_payload(_config(indicators=[
            {"type": "RSI", "period": 14, "color": "#ff0000"},
            {"type": "vwap"},
        ]))

        assert payload["studies"][0] == {
            "name": "Relative Strength Index",
            "inputs": [14],
            "styles": {"plot_0": {"color": "#ff0000"}},
        }
        assert payload["studies"][1] == {"name": "Moving Average", "inputs": []}

    def test_drawings_translate_points_and_defaults(self):
        payload = build_payload(_config(drawings=[
            {"type": "trendline", "points": [{"x": "2024-01-01", "y": 100}, {"x": "2024-02-01", "y": 120.5}]},
        ]))

        assert payload["drawings"][0] == {
            "name": "Trend Line",
            "input": {"points": [{"time": "2024-01-01", "price": 100.0}, {"time": "2024-02-01", "price": 120.5}]},
            "options": {"color": "#8B5CF6", "linewidth": 2},
        }
