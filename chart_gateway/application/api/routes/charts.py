"""
Chart Routes
============

REST surface used by the demo UI. Generation is asynchronous: the POST
returns as soon as the request is ``processing`` and progress arrives on
the caller's SSE session (``x-client-id``) or on every session when no id
is given.

    POST /api/v2/chart/generate          -> {success, requestId, status, message}
    GET  /api/v2/chart/status/{id}       -> status view (404 when unknown)
    GET  /api/v2/chart/recent?limit=10   -> newest first
    GET  /api/v2/symbols                 -> available symbols

Request bodies are parsed here rather than through a FastAPI body model so
that malformed input gets the same 400 shape as a validation failure,
instead of FastAPI's 422.
"""

from typing import Annotated

import orjson
from fastapi import APIRouter, Header, Query, Request, status
from fastapi.responses import JSONResponse

from chart_gateway.application.api.dependencies import ChartServiceDep
from chart_gateway.application.api.models.charts import (
    ChartStatusResponse,
    ErrorResponse,
    GenerateChartResponse,
    RecentRequestsResponse,
    SymbolsResponse,
)
from chart_gateway.core.config.constants import HEADER_CLIENT_ID
from chart_gateway.core.exceptions import InvalidChartConfigError
from chart_gateway.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Charts"])

INVALID_PARAMETERS = "Invalid request parameters"
NOT_FOUND = "Chart request not found"


def _error(status_code: int, error: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.post(
    "/chart/generate",
    response_model=GenerateChartResponse,
    responses={400: {"model": ErrorResponse}},
)
async def generate_chart(
    request: Request,
    charts: ChartServiceDep,
    client_id: Annotated[str | None, Header(alias=HEADER_CLIENT_ID)] = None,
):
    """
    Submit a chart for asynchronous rendering.

    Returns:
        GenerateChartResponse: request id and ``processing`` status

    HTTP Status Codes:
        200: Accepted, render running
        400: Body is not valid JSON or the chart config failed validation
    """
    try:
        raw = orjson.loads(await request.body())
    except orjson.JSONDecodeError:
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_PARAMETERS,
                      [{"field": "body", "message": "Request body must be valid JSON"}])

    try:
        return await charts.generate(raw, client_id=client_id)
    except InvalidChartConfigError as e:
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_PARAMETERS, e.errors)


@router.get(
    "/chart/status/{request_id}",
    response_model=ChartStatusResponse,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def chart_status(request_id: str, charts: ChartServiceDep):
    view = await charts.status(request_id)
    if view is None:
        return _error(status.HTTP_404_NOT_FOUND, NOT_FOUND)
    return view


@router.get("/chart/recent", response_model=RecentRequestsResponse, response_model_exclude_none=True)
async def recent_requests(
    charts: ChartServiceDep,
    limit: Annotated[int | None, Query()] = None,
) -> RecentRequestsResponse:
    """Most recent chart requests, newest first (limit clamped to 1-50)."""
    return RecentRequestsResponse(requests=await charts.recent(limit))


@router.get("/symbols", response_model=SymbolsResponse)
async def available_symbols(charts: ChartServiceDep) -> SymbolsResponse:
    return SymbolsResponse(symbols=await charts.symbols())
