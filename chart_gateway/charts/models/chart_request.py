"""
Chart request models.

ChartConfig is the validated chart specification (camelCase on the wire,
snake_case in Python). ChartRequest is the ledger record; it is frozen and
every state change produces a new record.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chart_gateway.core.config.constants import (
    CHART_DEFAULT_HEIGHT,
    CHART_DEFAULT_TIMEZONE,
    CHART_DEFAULT_WIDTH,
    CHART_MAX_HEIGHT,
    CHART_MAX_WIDTH,
    CHART_MIN_HEIGHT,
    CHART_MIN_WIDTH,
    ChartInterval,
    ChartStatus,
    ChartTheme,
    ChartType,
)


class Indicator(BaseModel):
    """Technical study overlaid on the chart."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(..., min_length=1, description="Indicator code (sma, ema, rsi, macd, bb, ...)")
    period: int | None = Field(default=None, ge=1)
    color: str | None = None
    overbought: float | None = None
    oversold: float | None = None


class DrawingPoint(BaseModel):
    x: str = Field(..., description="Time coordinate")
    y: float = Field(..., description="Price coordinate")


class Drawing(BaseModel):
    """Annotation drawn on the chart."""

    type: str = Field(..., min_length=1, description="trendline, horizontal, vertical or rectangle")
    points: list[DrawingPoint] = Field(default_factory=list)
    color: str | None = None
    width: int | None = Field(default=None, ge=1)


class ChartConfig(BaseModel):
    """
    Validated chart specification.

    Accepts both the camelCase wire names (``chartType``, ``showVolume``)
    and the Python field names.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    symbol: str = Field(..., description="Exchange-qualified symbol, e.g. NASDAQ:AAPL")
    interval: ChartInterval
    chart_type: ChartType = Field(..., alias="chartType")
    width: int = Field(default=CHART_DEFAULT_WIDTH, ge=CHART_MIN_WIDTH, le=CHART_MAX_WIDTH)
    height: int = Field(default=CHART_DEFAULT_HEIGHT, ge=CHART_MIN_HEIGHT, le=CHART_MAX_HEIGHT)
    indicators: list[Indicator] = Field(default_factory=list)
    drawings: list[Drawing] = Field(default_factory=list)
    theme: ChartTheme = ChartTheme.LIGHT
    show_volume: bool = Field(default=True, alias="showVolume")
    show_grid: bool = Field(default=True, alias="showGrid")
    timezone: str = CHART_DEFAULT_TIMEZONE

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Symbol is required")
        return v

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ChartResult(BaseModel):
    """Rendered chart: a hosted URL, an inline data URI, or both."""

    model_config = ConfigDict(frozen=True)

    url: str | None = None
    base64: str | None = None


class ChartRequest(BaseModel):
    """
    Ledger record for one chart generation request.

    Invariants:
    - ``result`` is set iff status is completed
    - ``error_message`` is set iff status is failed
    - ``processing_time`` and ``completed_at`` are set at the terminal transition
    """

    model_config = ConfigDict(frozen=True)

    id: int
    request_id: str
    config: ChartConfig
    status: ChartStatus = ChartStatus.PENDING
    result: ChartResult | None = None
    error_message: str | None = None
    processing_time: int | None = Field(default=None, description="Milliseconds from submission")
    created_at: datetime
    completed_at: datetime | None = None
    client_id: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def symbol(self) -> str:
        return self.config.symbol
