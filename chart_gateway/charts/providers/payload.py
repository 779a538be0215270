"""
Chart-IMG payload translation.

Maps a ChartConfig onto the body of
``POST /v2/tradingview/advanced-chart``.
"""

from typing import Any

from chart_gateway.charts.models import ChartConfig, Drawing, Indicator
from chart_gateway.core.config.constants import ChartType

# TradingView chart style codes
CHART_TYPE_CODES: dict[ChartType, int] = {
    ChartType.BAR: 0,
    ChartType.CANDLESTICK: 1,
    ChartType.LINE: 2,
    ChartType.AREA: 3,
    ChartType.BASELINE: 7,
    ChartType.HOLLOW_CANDLE: 8,
    ChartType.HEIKIN_ASHI: 9,
    ChartType.COLUMN: 11,
    ChartType.HI_LO: 12,
}
DEFAULT_CHART_TYPE_CODE = 1

STUDY_NAMES: dict[str, str] = {
    "sma": "Moving Average",
    "ema": "Moving Average Exponential",
    "rsi": "Relative Strength Index",
    "macd": "MACD",
    "bb": "Bollinger Bands",
    "stoch": "Stochastic",
    "atr": "Average True Range",
    "volume": "Volume",
}
DEFAULT_STUDY_NAME = "Moving Average"

DRAWING_NAMES: dict[str, str] = {
    "trendline": "Trend Line",
    "horizontal": "Horizontal Line",
    "vertical": "Vertical Line",
    "rectangle": "Rectangle",
}
DEFAULT_DRAWING_NAME = "Trend Line"
DEFAULT_DRAWING_COLOR = "#8B5CF6"
DEFAULT_DRAWING_WIDTH = 2


def chart_type_code(chart_type: ChartType | str) -> int:
    try:
        return CHART_TYPE_CODES[ChartType(chart_type)]
    except ValueError:
        return DEFAULT_CHART_TYPE_CODE


def build_study(indicator: Indicator) -> dict[str, Any]:
    study: dict[str, Any] = {
        "name": STUDY_NAMES.get(indicator.type.lower(), DEFAULT_STUDY_NAME),
        "inputs": [indicator.period] if indicator.period else [],
    }
    if indicator.color:
        study["styles"] = {"plot_0": {"color": indicator.color}}
    return study


def build_drawing(drawing: Drawing) -> dict[str, Any]:
    return {
        "name": DRAWING_NAMES.get(drawing.type.lower(), DEFAULT_DRAWING_NAME),
        "input": {
            "points": [{"time": point.x, "price": point.y} for point in drawing.points],
        },
        "options": {
            "color": drawing.color or DEFAULT_DRAWING_COLOR,
            "linewidth": drawing.width or DEFAULT_DRAWING_WIDTH,
        },
    }


def build_payload(config: ChartConfig) -> dict[str, Any]:
    """Request body for the advanced-chart endpoint."""
    payload: dict[str, Any] = {
        "symbol": config.symbol,
        "interval": config.interval.value,
        "width": config.width,
        "height": config.height,
        "theme": config.theme.value,
        "type": chart_type_code(config.chart_type),
        "options": {
            "timezone": config.timezone,
            "volume": config.show_volume,
            "grid": config.show_grid,
        },
        "studies": [build_study(i) for i in config.indicators],
        "drawings": [build_drawing(d) for d in config.drawings],
    }
    return payload
