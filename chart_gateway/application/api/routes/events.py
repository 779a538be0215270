"""
Event Routes
============

SSE SESSIONS:
-------------
``GET /api/v2/events`` opens a long-lived ``text/event-stream`` response.
The client may name itself with ``?clientId=``; otherwise the server
generates an id of the form ``client_<millis>_<random>``. Charts submitted
with the same id in the ``x-client-id`` header stream their progress here.

Frame format:

    event: progress
    data: {"type":"progress","message":"Preparing chart request...","requestId":"req_...","timestamp":"..."}

A ``: heartbeat`` comment is written every 30 seconds so idle proxies keep
the connection open.

EVENT HISTORY:
--------------
``GET /api/v2/events/{request_id}`` returns every stored event for one
request, oldest first. Unknown ids return an empty list, not 404.
"""

from typing import Annotated

from fastapi import APIRouter, Header, Query

from chart_gateway.application.api.dependencies import ChartServiceDep, RegistryDep, SettingsDep
from chart_gateway.application.api.models.charts import EventHistoryResponse
from chart_gateway.application.api.sse import open_sse_session
from chart_gateway.core.config.constants import HEADER_LAST_EVENT_ID
from chart_gateway.core.logging import get_logger
from chart_gateway.streaming.models import new_client_id

logger = get_logger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("")
async def open_event_stream(
    registry: RegistryDep,
    settings: SettingsDep,
    client_id: Annotated[str | None, Query(alias="clientId")] = None,
    last_event_id: Annotated[str | None, Header(alias=HEADER_LAST_EVENT_ID)] = None,
):
    """
    Open an SSE session.

    Returns:
        StreamingResponse: greeting ``connection`` event, then lifecycle
        events targeted at this client (or broadcast to all)
    """
    client_id = client_id or new_client_id()
    logger.info("sse_session_requested", client_id=client_id, last_event_id=last_event_id)
    return open_sse_session(
        registry,
        client_id,
        last_event_id=last_event_id,
        buffer_size=settings.streaming.SSE_SESSION_BUFFER_SIZE,
    )


@router.get("/{request_id}", response_model=EventHistoryResponse, response_model_exclude_none=True)
async def event_history(request_id: str, charts: ChartServiceDep) -> EventHistoryResponse:
    """Stored events for one chart request (replay for late subscribers)."""
    return EventHistoryResponse(events=await charts.history(request_id))
