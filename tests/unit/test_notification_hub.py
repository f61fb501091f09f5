"""Unit tests for NotificationHub and the SSE framing"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from whistle_service.api.routes.notifications import sse_frames
from whistle_service.core.exceptions import Unauthorized
from whistle_service.core.notification_hub import ConnectionClosedError, NotificationHub
from whistle_service.models import (
    ConnectedEvent,
    HeartbeatEvent,
    NewReportEvent,
    Report,
    ReportCategory,
    ReportSeverity,
    UrgentReportEvent,
)


def _accept_any(token):
    return {"sub": "admin"}


def _reject_all(token):
    raise Unauthorized("Invalid or expired token")


async def _next(events, timeout=1.0):
    return await asyncio.wait_for(events.__anext__(), timeout)


@pytest_asyncio.fixture
async def hub():
    hub = NotificationHub(token_verifier=_accept_any, heartbeat_interval=3600)
    yield hub
    await hub.shutdown()


@pytest.mark.unit
class TestSubscribe:
    """Connection registration"""

    @pytest.mark.asyncio
    async def test_connected_event_first(self, hub):
        """Happy path: a new viewer's first event is connected"""
        connection = await hub.subscribe("token")

        event = await _next(connection.events())

        assert isinstance(event, ConnectedEvent)
        assert hub.connection_count == 1

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, hub):
        with pytest.raises(Unauthorized):
            await hub.subscribe(None)

        assert hub.connection_count == 0

    @pytest.mark.asyncio
    async def test_invalid_token_rejected(self):
        hub = NotificationHub(token_verifier=_reject_all)

        with pytest.raises(Unauthorized):
            await hub.subscribe("forged")

        assert hub.connection_count == 0

    @pytest.mark.asyncio
    async def test_heartbeat_sent(self):
        hub = NotificationHub(token_verifier=_accept_any, heartbeat_interval=0.01)
        connection = await hub.subscribe("token")
        events = connection.events()

        assert isinstance(await _next(events), ConnectedEvent)
        assert isinstance(await _next(events), HeartbeatEvent)

        await hub.shutdown()


@pytest.mark.unit
class TestDisconnect:
    """Connection teardown"""

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, hub):
        connection = await hub.subscribe("token")

        assert hub.disconnect(connection.id) is True
        assert hub.disconnect(connection.id) is False
        assert connection.closed
        assert hub.connection_count == 0

    @pytest.mark.asyncio
    async def test_disconnect_stops_heartbeat(self, hub):
        connection = await hub.subscribe("token")
        heartbeat = connection._heartbeat

        hub.disconnect(connection.id)

        with pytest.raises(asyncio.CancelledError):
            await heartbeat
        assert heartbeat.cancelled()

    @pytest.mark.asyncio
    async def test_closed_connection_refuses_writes(self, hub):
        connection = await hub.subscribe("token")
        hub.disconnect(connection.id)

        with pytest.raises(ConnectionClosedError):
            connection.send(HeartbeatEvent())

    @pytest.mark.asyncio
    async def test_events_end_after_close(self, hub):
        connection = await hub.subscribe("token")
        events = connection.events()
        await _next(events)

        hub.disconnect(connection.id)

        with pytest.raises(StopAsyncIteration):
            await events.__anext__()


@pytest.mark.unit
class TestPublish:
    """Fan-out to all viewers"""

    @pytest.mark.asyncio
    async def test_fan_out_evicts_failed_connection(self, hub):
        """One dead viewer does not stop delivery to the others"""
        connections = [await hub.subscribe("token") for _ in range(3)]
        connections[1].close()

        delivered = hub.publish(NewReportEvent(report_id="report_1", category="safety", severity="low"))

        assert delivered == 2
        assert hub.connection_count == 2
        assert hub.get_connection(connections[1].id) is None

        for connection in (connections[0], connections[2]):
            events = connection.events()
            assert isinstance(await _next(events), ConnectedEvent)
            event = await _next(events)
            assert isinstance(event, NewReportEvent)
            assert event.report_id == "report_1"

    @pytest.mark.asyncio
    async def test_full_queue_evicts_slow_viewer(self):
        hub = NotificationHub(token_verifier=_accept_any, heartbeat_interval=3600, queue_size=1)
        await hub.subscribe("token")

        assert hub.publish(HeartbeatEvent()) == 0
        assert hub.connection_count == 0

    @pytest.mark.asyncio
    async def test_publish_with_no_viewers(self, hub):
        assert hub.publish(HeartbeatEvent()) == 0


@pytest.mark.unit
class TestNotifyNewReport:
    """Urgency derivation and email side effect"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("severity,category,expected", [
        (ReportSeverity.URGENT, ReportCategory.SAFETY, UrgentReportEvent),
        (ReportSeverity.LOW, ReportCategory.EMERGENCY, UrgentReportEvent),
        (ReportSeverity.HIGH, ReportCategory.MEDICAL, NewReportEvent),
    ])
    async def test_event_type(self, hub, severity, category, expected):
        report = Report(id="report_1", severity=severity, category=category, message="m")

        event = hub.notify_new_report(report)

        assert isinstance(event, expected)
        assert event.category == category.value

    @pytest.mark.asyncio
    async def test_encrypted_report_category_hidden(self, hub):
        report = Report(id="report_1", is_encrypted=True)

        event = hub.notify_new_report(report)

        assert isinstance(event, NewReportEvent)
        assert event.category == "encrypted"

    @pytest.mark.asyncio
    async def test_urgent_email_failure_is_swallowed(self):
        alerter = AsyncMock()
        alerter.send_alert.side_effect = RuntimeError("smtp down")
        hub = NotificationHub(token_verifier=_accept_any, email_alerter=alerter)
        report = Report(id="report_1", severity=ReportSeverity.URGENT, category=ReportCategory.SAFETY)

        hub.notify_new_report(report)
        await hub.drain()

        alerter.send_alert.assert_awaited_once_with(report)

    @pytest.mark.asyncio
    async def test_no_email_for_routine_report(self):
        alerter = AsyncMock()
        hub = NotificationHub(token_verifier=_accept_any, email_alerter=alerter)

        hub.notify_new_report(Report(id="report_1", severity=ReportSeverity.LOW, category=ReportCategory.FEEDBACK))
        await hub.drain()

        alerter.send_alert.assert_not_awaited()


@pytest.mark.unit
class TestSseFrames:
    """SSE rendering of a connection"""

    @pytest.mark.asyncio
    async def test_frames_use_wire_names(self, hub):
        connection = await hub.subscribe("token")
        frames = sse_frames(hub, connection)

        first = await _next(frames)
        assert first == 'data: {"type":"connected","message":"Notifications active"}\n\n'

        hub.publish(UrgentReportEvent(report_id="report_9", category="emergency", severity="urgent"))
        frame = await _next(frames)
        assert frame.startswith("data: ") and frame.endswith("\n\n")
        data = json.loads(frame[len("data: "):])
        assert data["type"] == "urgent_report"
        assert data["reportId"] == "report_9"

        await frames.aclose()
        assert hub.connection_count == 0
