"""
MCP Routes
==========

Model Context Protocol over plain HTTP, JSON-RPC 2.0 envelopes:

    POST /mcp/initialize     -> protocol version, capabilities, serverInfo
    POST /mcp/tools/list     -> tool catalogue
    POST /mcp/tools/call     -> {"params": {"name": ..., "arguments": {...}}}
    GET  /mcp/events/{id}    -> SSE session on the shared registry
    GET  /mcp/health         -> {status, timestamp, clientCount, chartServiceConfigured}

ERROR RESPONSES:
----------------
Every failure is answered with HTTP 400 and a JSON-RPC error object:

    {"jsonrpc": "2.0", "id": 7, "error": {"code": -32603, "message": "Tool execution error: ..."}}

When the request id cannot be read the response id is ``"unknown"``.
"""

from typing import Annotated, Any

import orjson
from fastapi import APIRouter, Header, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from chart_gateway.application.api.dependencies import ChartServiceDep, McpServiceDep, RegistryDep, SettingsDep
from chart_gateway.application.api.models.mcp import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from chart_gateway.application.api.sse import open_sse_session
from chart_gateway.core.config.constants import HEADER_LAST_EVENT_ID, JSONRPC_INTERNAL_ERROR
from chart_gateway.core.exceptions import ChartGatewayError
from chart_gateway.core.logging import get_logger
from chart_gateway.streaming.models import format_timestamp, utc_now

logger = get_logger(__name__)

router = APIRouter(prefix="/mcp", tags=["MCP"])

UNKNOWN_ID = "unknown"


class _BadEnvelope(Exception):
    pass


def _result(request_id: Any, result: Any) -> JSONResponse:
    body = JsonRpcResponse(id=request_id, result=result)
    return JSONResponse(content=body.model_dump(exclude_none=True))


def _error(request_id: Any, message: str, data: Any = None) -> JSONResponse:
    body = JsonRpcResponse(
        id=request_id if request_id is not None else UNKNOWN_ID,
        error=JsonRpcError(code=JSONRPC_INTERNAL_ERROR, message=message, data=data),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=body.model_dump(exclude_none=True),
    )


async def _read_envelope(request: Request) -> JsonRpcRequest:
    body = await request.body()
    try:
        return JsonRpcRequest.model_validate(orjson.loads(body) if body else {})
    except (orjson.JSONDecodeError, PydanticValidationError) as e:
        raise _BadEnvelope(str(e)) from e


@router.post("/initialize")
async def initialize(request: Request, mcp: McpServiceDep):
    try:
        envelope = await _read_envelope(request)
    except _BadEnvelope:
        return _error(None, "Internal error")
    logger.info("mcp_initialize", stage="MCP.0", rpc_id=envelope.id)
    return _result(envelope.id, mcp.initialize())


@router.post("/tools/list")
async def list_tools(request: Request, mcp: McpServiceDep):
    try:
        envelope = await _read_envelope(request)
    except _BadEnvelope:
        return _error(None, "Internal error")
    return _result(envelope.id, mcp.list_tools())


@router.post("/tools/call")
async def call_tool(request: Request, mcp: McpServiceDep):
    """
    Run one tool.

    ``generate_chart`` blocks until the render settles; its progress events
    are broadcast to every open session while the call is pending.
    """
    try:
        envelope = await _read_envelope(request)
    except _BadEnvelope as e:
        return _error(None, f"Tool execution error: {e}")

    name = envelope.params.get("name")
    arguments = envelope.params.get("arguments")
    if arguments is not None and not isinstance(arguments, dict):
        return _error(envelope.id, "Tool execution error: arguments must be an object")

    try:
        result = await mcp.call_tool(name, arguments)
    except ChartGatewayError as e:
        logger.info("mcp_tool_failed", stage="MCP.2", tool=name, error=e.message)
        return _error(envelope.id, f"Tool execution error: {e.message}", e.details or None)

    return _result(envelope.id, result)


@router.get("/events/{client_id}")
async def mcp_events(
    client_id: str,
    registry: RegistryDep,
    settings: SettingsDep,
    last_event_id: Annotated[str | None, Header(alias=HEADER_LAST_EVENT_ID)] = None,
):
    return open_sse_session(
        registry,
        client_id,
        last_event_id=last_event_id,
        buffer_size=settings.streaming.SSE_SESSION_BUFFER_SIZE,
    )


@router.get("/health")
async def mcp_health(charts: ChartServiceDep):
    health = charts.health()
    return {
        "status": "healthy",
        "timestamp": format_timestamp(utc_now()),
        "clientCount": health.sse_clients,
        "chartServiceConfigured": health.chart_service_configured,
    }
