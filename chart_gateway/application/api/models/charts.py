"""
Chart API Models
================

Response bodies for the ``/api/v2`` surface. Field names are snake_case in
Python and camelCase on the wire (``request_id`` -> ``requestId``);
FastAPI serializes ``response_model`` by alias, so routes return these
models directly.

Timestamps are pre-formatted strings (ISO-8601, millisecond precision, ``Z``)
so the REST views and SSE frames print times identically.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateChartResponse(CamelModel):
    success: bool = True
    request_id: str
    status: str
    message: str = "Chart generation started"


class ChartMetadata(CamelModel):
    symbol: str
    interval: str
    chart_type: str
    width: int
    height: int
    generated_at: str | None = None
    indicators: list[dict[str, Any]] = Field(default_factory=list)
    drawings: list[dict[str, Any]] = Field(default_factory=list)


class RenderedChart(CamelModel):
    url: str | None = None
    base64: str | None = None
    metadata: ChartMetadata


class ChartStatusResponse(CamelModel):
    """
    Status view of one chart request.

    ``chart`` and ``processing_time`` appear only once completed;
    ``error`` only once failed.
    """

    success: bool = True
    request_id: str
    status: str
    symbol: str
    interval: str
    chart_type: str
    created_at: str
    completed_at: str | None = None
    chart: RenderedChart | None = None
    processing_time: int | None = None
    error: str | None = None


class ChartSummary(CamelModel):
    request_id: str
    symbol: str
    interval: str
    chart_type: str
    status: str
    created_at: str
    completed_at: str | None = None
    processing_time: int | None = None


class RecentRequestsResponse(CamelModel):
    success: bool = True
    requests: list[ChartSummary]


class EventHistoryEntry(CamelModel):
    id: int
    type: str
    message: str
    timestamp: str
    data: dict[str, Any] | None = None


class EventHistoryResponse(CamelModel):
    success: bool = True
    events: list[EventHistoryEntry]


class SymbolsResponse(CamelModel):
    success: bool = True
    symbols: list[str]


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    details: list[dict[str, Any]] | dict[str, Any] | None = None


class ApiHealthResponse(CamelModel):
    success: bool = True
    status: str
    timestamp: str
    chart_service_configured: bool
    sse_clients: int
