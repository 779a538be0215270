"""
Unit Tests for ChartLifecycleOrchestrator

Tests the request lifecycle end to end against in-memory collaborators:
submission, progress events, terminal states, ordering and durability.
"""

import asyncio

import orjson
import pytest

from chart_gateway.charts.providers.base_provider import RenderResult
from chart_gateway.charts.services.request_ledger import RequestLedger
from chart_gateway.core.config.constants import (
    MSG_PREPARING,
    MSG_PROCESSING,
    MSG_SENDING,
    ChartStatus,
    EventKind,
)
from chart_gateway.core.exceptions import InvalidChartConfigError, InvalidTransitionError
from chart_gateway.streaming.session_stream import OutputStream
from tests.test_fixtures.provider_factory import ProviderTestFactory, ScriptedProvider
from tests.test_fixtures.streams import RecordingStream


def _bodies(stream: RecordingStream) -> list[dict]:
    return [orjson.loads(f.split("\n")[1].removeprefix("data: ")) for f in stream.event_frames()]


@pytest.mark.unit
class TestLifecycleScenarios:
    """The reference lifecycle scenarios."""

    async def test_successful_render_completes(self, orchestrator, sample_chart_config):
        # Act
        submitted = await orchestrator.submit(sample_chart_config)
        final = await orchestrator.wait_for(submitted.request_id)

        # Assert
        assert submitted.status is ChartStatus.PROCESSING
        assert final.status is ChartStatus.COMPLETED
        assert final.result is not None
        assert final.result.base64.startswith("data:image/png;base64,")
        assert final.processing_time >= 0
        assert final.completed_at is not None

    async def test_upstream_error_fails_request(self, make_orchestrator, sample_chart_config):
        # Arrange
        provider = ScriptedProvider(RenderResult.failure("rate limited"))
        orchestrator = make_orchestrator(provider)

        # Act
        submitted = await orchestrator.submit(sample_chart_config)
        final = await orchestrator.wait_for(submitted.request_id)

        # Assert
        assert final.status is ChartStatus.FAILED
        assert final.error_message == "rate limited"
        assert final.result is None

    async def test_broadcast_and_targeted_delivery(self, registry, broadcaster):
        # Arrange
        c1, c2 = RecordingStream(), RecordingStream()
        registry.register("c1", c1)
        registry.register("c2", c2)

        # Act
        await broadcaster.emit("all", EventKind.PROGRESS, "to everyone", "req_1_1")
        await broadcaster.emit("c1", EventKind.PROGRESS, "just c1", "req_1_1")

        # Assert
        assert [b["message"] for b in _bodies(c1)][1:] == ["to everyone", "just c1"]
        assert [b["message"] for b in _bodies(c2)][1:] == ["to everyone"]

    async def test_recent_lists_newest_first(self, orchestrator, sample_chart_config):
        r1 = await orchestrator.submit(sample_chart_config)
        r2 = await orchestrator.submit(sample_chart_config)
        r3 = await orchestrator.submit(sample_chart_config)

        recent = await orchestrator.list_recent(2)

        assert [r.request_id for r in recent] == [r3.request_id, r2.request_id]
        assert r1.request_id not in [r.request_id for r in recent]

    async def test_invalid_config_creates_nothing(self, orchestrator, event_store):
        # Act
        with pytest.raises(InvalidChartConfigError) as exc_info:
            await orchestrator.submit({"interval": "1D", "chartType": "candlestick"})

        # Assert
        assert any(e["field"] == "symbol" for e in exc_info.value.errors)
        assert await orchestrator.list_recent(10) == []
        assert len(event_store) == 0


@pytest.mark.unit
class TestEventSequence:
    """Test the events a client observes for one request."""

    async def test_targeted_client_sees_full_sequence(self, orchestrator, registry, sample_chart_config):
        # Arrange
        stream = RecordingStream()
        registry.register("client_1", stream)

        # Act
        submitted = await orchestrator.submit(sample_chart_config, client_id="client_1")
        await orchestrator.wait_for(submitted.request_id)

        # Assert
        bodies = _bodies(stream)
        assert [b["type"] for b in bodies] == [
            "connection", "request", "progress", "progress", "progress", "success",
        ]
        assert bodies[1]["message"] == "Chart generation started for NASDAQ:AAPL"
        assert bodies[1]["data"] == {"symbol": "NASDAQ:AAPL", "interval": "1D"}
        assert [b["message"] for b in bodies[2:5]] == [MSG_PREPARING, MSG_SENDING, MSG_PROCESSING]
        assert bodies[5]["message"].startswith("Chart generated successfully (")
        assert bodies[5]["data"]["chartGenerated"] is True
        assert all(b["requestId"] == submitted.request_id for b in bodies[1:])

    async def test_other_clients_do_not_see_targeted_request(
        self, orchestrator, registry, sample_chart_config
    ):
        mine, other = RecordingStream(), RecordingStream()
        registry.register("mine", mine)
        registry.register("other", other)

        submitted = await orchestrator.submit(sample_chart_config, client_id="mine")
        await orchestrator.wait_for(submitted.request_id)

        assert [b["type"] for b in _bodies(other)] == ["connection"]

    async def test_without_client_id_events_go_to_everyone(self, orchestrator, registry, sample_chart_config):
        streams = [RecordingStream(), RecordingStream()]
        registry.register("a", streams[0])
        registry.register("b", streams[1])

        submitted = await orchestrator.submit(sample_chart_config)
        await orchestrator.wait_for(submitted.request_id)

        for stream in streams:
            assert _bodies(stream)[-1]["type"] == "success"

    async def test_history_ids_increase_and_end_with_one_terminal_event(
        self, orchestrator, sample_chart_config
    ):
        submitted = await orchestrator.submit(sample_chart_config)
        await orchestrator.wait_for(submitted.request_id)

        history = await orchestrator.event_history(submitted.request_id)

        ids = [e.id for e in history]
        assert ids == sorted(ids) and len(set(ids)) == len(ids)
        terminal = [e for e in history if e.kind in (EventKind.SUCCESS, EventKind.ERROR)]
        assert terminal == [history[-1]]

    async def test_failure_event_carries_error(self, make_orchestrator, sample_chart_config):
        orchestrator = make_orchestrator(ProviderTestFactory.upstream_error_provider(429, "Too Many Requests"))

        submitted = await orchestrator.submit(sample_chart_config)
        await orchestrator.wait_for(submitted.request_id)

        last = (await orchestrator.event_history(submitted.request_id))[-1]
        assert last.kind is EventKind.ERROR
        assert last.message == "Chart generation failed: Chart-IMG API error: 429 Too Many Requests"
        assert last.data == {"error": "Chart-IMG API error: 429 Too Many Requests"}


@pytest.mark.unit
class TestFailureModes:
    async def test_raised_exception_becomes_failed(self, make_orchestrator, sample_chart_config):
        orchestrator = make_orchestrator(ProviderTestFactory.raising_provider(RuntimeError("connection refused")))

        submitted = await orchestrator.submit(sample_chart_config)
        final = await orchestrator.wait_for(submitted.request_id)

        assert final.status is ChartStatus.FAILED
        assert final.error_message == "connection refused"

    async def test_unexpected_result_shape_fails(self, make_orchestrator, sample_chart_config):
        orchestrator = make_orchestrator(ScriptedProvider(RenderResult(success=True)))

        submitted = await orchestrator.submit(sample_chart_config)
        final = await orchestrator.wait_for(submitted.request_id)

        assert final.status is ChartStatus.FAILED
        assert final.error_message == "Render produced no image"

    async def test_watchdog_force_fails_stuck_render(self, make_orchestrator, sample_chart_config):
        # Arrange: the gate is never opened
        orchestrator = make_orchestrator(ProviderTestFactory.blocking_provider(asyncio.Event()), render_timeout=0.05)

        # Act
        submitted = await orchestrator.submit(sample_chart_config)
        final = await orchestrator.wait_for(submitted.request_id, timeout=2)

        # Assert
        assert final.status is ChartStatus.FAILED
        assert "timed out" in final.error_message


@pytest.mark.unit
class TestDurability:
    async def test_disconnected_client_can_replay_history(
        self, make_orchestrator, registry, sample_chart_config
    ):
        # Arrange
        gate = asyncio.Event()
        orchestrator = make_orchestrator(ProviderTestFactory.blocking_provider(gate))
        stream = RecordingStream()
        registry.register("client_1", stream)

        # Act: client goes away mid-render
        submitted = await orchestrator.submit(sample_chart_config, client_id="client_1")
        await asyncio.sleep(0)
        stream.client_disconnects()
        gate.set()
        final = await orchestrator.wait_for(submitted.request_id)

        # Assert
        assert final.status is ChartStatus.COMPLETED
        history = await orchestrator.event_history(submitted.request_id)
        assert history[0].kind is EventKind.REQUEST
        assert history[-1].kind is EventKind.SUCCESS

    async def test_status_visible_while_processing(self, make_orchestrator, sample_chart_config):
        gate = asyncio.Event()
        orchestrator = make_orchestrator(ProviderTestFactory.blocking_provider(gate))

        submitted = await orchestrator.submit(sample_chart_config)
        during = await orchestrator.get_status(submitted.request_id)
        gate.set()
        after = await orchestrator.wait_for(submitted.request_id)

        assert during.status is ChartStatus.PROCESSING
        assert after.status is ChartStatus.COMPLETED

    async def test_wait_for_timeout_returns_current_record(self, make_orchestrator, sample_chart_config):
        gate = asyncio.Event()
        orchestrator = make_orchestrator(ProviderTestFactory.blocking_provider(gate))

        submitted = await orchestrator.submit(sample_chart_config)
        pending = await orchestrator.wait_for(submitted.request_id, timeout=0.01)
        gate.set()

        assert pending.status is ChartStatus.PROCESSING

    async def test_wait_for_unknown_request_returns_none(self, orchestrator):
        assert await orchestrator.wait_for("req_missing") is None

    async def test_terminal_record_cannot_be_rewritten(self, orchestrator, ledger, sample_chart_config):
        submitted = await orchestrator.submit(sample_chart_config)
        await orchestrator.wait_for(submitted.request_id)

        with pytest.raises(InvalidTransitionError):
            await ledger.transition(submitted.request_id, ChartStatus.FAILED, error_message="late")

    async def test_shutdown_cancels_in_flight_renders(self, make_orchestrator, sample_chart_config):
        orchestrator = make_orchestrator(ProviderTestFactory.blocking_provider(asyncio.Event()))
        await orchestrator.submit(sample_chart_config)

        await orchestrator.shutdown()

        assert orchestrator.in_flight == 0


@pytest.mark.unit
class TestQueries:
    async def test_health_snapshot(self, orchestrator, registry):
        registry.register("client_1", RecordingStream())

        snapshot = orchestrator.health_snapshot()

        assert snapshot == {"liveSessionCount": 1, "upstreamConfigured": True}

    async def test_symbols_come_from_provider(self, orchestrator):
        symbols = await orchestrator.list_symbols()

        assert "NASDAQ:AAPL" in symbols


def _read_now(coro):
    """Run a ledger read that never suspends, from synchronous code."""
    try:
        coro.send(None)
    except StopIteration as done:
        return done.value
    coro.close()
    raise AssertionError("ledger read suspended")


class LedgerCheckingStream(OutputStream):
    """Notes the ledger status of each frame's request at the moment it is written."""

    def __init__(self, ledger: RequestLedger):
        super().__init__()
        self.ledger = ledger
        self.seen: list[tuple[str, str, ChartStatus]] = []

    def _write(self, frame: str) -> None:
        if not frame.startswith("event:"):
            return
        body = orjson.loads(frame.split("\n")[1].removeprefix("data: "))
        record = _read_now(self.ledger.get(body["requestId"]))
        if record is not None:
            self.seen.append((body["requestId"], body["type"], record.status))


@pytest.mark.unit
class TestLedgerEventConsistency:
    """The ledger is written before the matching event goes out."""

    async def test_terminal_frames_see_terminal_ledger_state(
        self, make_orchestrator, registry, ledger, sample_chart_config
    ):
        # Arrange
        stream = LedgerCheckingStream(ledger)
        registry.register("watcher", stream)
        ok = make_orchestrator(ProviderTestFactory.success_provider())
        broken = make_orchestrator(ProviderTestFactory.upstream_error_provider(502, "Bad Gateway"))

        # Act
        good = await ok.submit(sample_chart_config)
        await ok.wait_for(good.request_id)
        bad = await broken.submit(sample_chart_config)
        await broken.wait_for(bad.request_id)

        # Assert
        by_request = {
            rid: [(kind, status) for r, kind, status in stream.seen if r == rid]
            for rid in (good.request_id, bad.request_id)
        }
        assert by_request[good.request_id][0] == ("request", ChartStatus.PROCESSING)
        assert by_request[good.request_id][-1] == ("success", ChartStatus.COMPLETED)
        assert by_request[bad.request_id][-1] == ("error", ChartStatus.FAILED)
        for rid in by_request:
            assert all(status is ChartStatus.PROCESSING for kind, status in by_request[rid][:-1])

    async def test_status_and_last_history_entry_agree(self, make_orchestrator, sample_chart_config):
        expected = {ChartStatus.COMPLETED: EventKind.SUCCESS, ChartStatus.FAILED: EventKind.ERROR}

        for provider in (
            ProviderTestFactory.success_provider(),
            ProviderTestFactory.raising_provider(RuntimeError("socket closed")),
        ):
            orchestrator = make_orchestrator(provider)
            submitted = await orchestrator.submit(sample_chart_config)
            await orchestrator.wait_for(submitted.request_id)

            record = await orchestrator.get_status(submitted.request_id)
            last = (await orchestrator.event_history(submitted.request_id))[-1]

            assert last.kind is expected[record.status]
            if record.status is ChartStatus.FAILED:
                assert last.data == {"error": record.error_message}
