from .chart_request import (
    ChartConfig,
    ChartRequest,
    ChartResult,
    Drawing,
    DrawingPoint,
    Indicator,
)

__all__ = [
    "ChartConfig",
    "ChartRequest",
    "ChartResult",
    "Drawing",
    "DrawingPoint",
    "Indicator",
]
