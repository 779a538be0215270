"""
Unit Tests for SSE Session Responses

Drives SessionStreamingResponse through raw ASGI calls so that client
disconnects can be staged precisely, and calls the event routes directly
to check what they register.
"""

import asyncio

import pytest

from chart_gateway.application.api.routes.events import open_event_stream
from chart_gateway.application.api.routes.mcp import mcp_events
from chart_gateway.application.api.sse import SSE_HEADERS, SessionStreamingResponse, open_sse_session


def _scope(spec_version: str = "2.0") -> dict:
    return {"type": "http", "asgi": {"version": "3.0", "spec_version": spec_version}, "method": "GET"}


async def _never_disconnects() -> dict:
    await asyncio.Event().wait()
    return {"type": "http.disconnect"}


async def _disconnects_at_once() -> dict:
    return {"type": "http.disconnect"}


@pytest.mark.unit
class TestSessionStreamingResponse:
    async def test_response_headers(self, registry):
        response = open_sse_session(registry, "client_1")

        assert isinstance(response, SessionStreamingResponse)
        assert response.media_type == "text/event-stream"
        for name, value in SSE_HEADERS.items():
            assert response.headers[name.lower()] == value
        response.stream.close()

    async def test_send_failure_before_first_frame_drops_session(self, registry):
        # Arrange: the transport is gone before the body is ever pulled
        response = open_sse_session(registry, "client_1")

        async def send(message):
            raise OSError("connection reset")

        # Act
        with pytest.raises(Exception):
            await response(_scope("2.4"), _never_disconnects, send)

        # Assert
        assert "client_1" not in registry
        assert registry.count() == 0
        assert response.stream.closed

    async def test_client_disconnect_drops_session(self, registry):
        response = open_sse_session(registry, "client_1")
        sent = []

        async def send(message):
            sent.append(message)

        await response(_scope("2.0"), _disconnects_at_once, send)

        assert registry.count() == 0
        assert response.stream.closed

    async def test_replacement_session_survives_old_response_ending(self, registry):
        old = open_sse_session(registry, "client_1")
        new = open_sse_session(registry, "client_1")

        async def send(message):
            raise OSError("connection reset")

        with pytest.raises(Exception):
            await old(_scope("2.4"), _never_disconnects, send)

        assert registry.get("client_1").stream is new.stream
        new.stream.close()


@pytest.mark.unit
class TestEventRoutesRegisterSessions:
    async def test_rest_route_records_last_event_id(self, registry, test_settings):
        response = await open_event_stream(registry, test_settings, client_id="ui_1", last_event_id="41")

        assert registry.get("ui_1").last_event_id == "41"
        response.stream.close()

    async def test_rest_route_generates_client_id(self, registry, test_settings):
        response = await open_event_stream(registry, test_settings)

        [client_id] = registry.client_ids()
        assert client_id.startswith("client_")
        response.stream.close()

    async def test_mcp_route_records_last_event_id(self, registry, test_settings):
        response = await mcp_events("mcp_1", registry, test_settings, last_event_id="17")

        assert registry.get("mcp_1").last_event_id == "17"
        response.stream.close()

    async def test_mcp_route_without_header(self, registry, test_settings):
        response = await mcp_events("mcp_1", registry, test_settings)

        assert registry.get("mcp_1").last_event_id is None
        response.stream.close()
