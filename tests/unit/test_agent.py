"""Unit tests for the client ReconnectionAgent"""

import asyncio

import pytest

from whistle_service.client.agent import AgentState, ReconnectionAgent
from whistle_service.client.alerts import AlertLevel, AlertSink
from whistle_service.models import ConnectedEvent, HeartbeatEvent, NewReportEvent, UrgentReportEvent


class RecordingSink(AlertSink):
    """Alert sink that records every call"""

    def __init__(self, fail_sound=False, supports_push=False):
        self.calls = []
        self.fail_sound = fail_sound
        self.supports_push = supports_push

    def toast(self, title, description, level=AlertLevel.INFO, duration=5.0):
        self.calls.append(("toast", title, level, duration))

    async def request_push_permission(self):
        self.calls.append(("permission",))
        return True

    def push_notification(self, title, body):
        self.calls.append(("push", title))

    def play_sound(self, beeps=1):
        if self.fail_sound:
            raise RuntimeError("audio device busy")
        self.calls.append(("sound", beeps))

    def update_title(self, prefix, revert_after=10.0):
        self.calls.append(("title", prefix))

    def flash_title(self, text, flashes=10, interval=1.0):
        self.calls.append(("flash", text))

    def toasts(self):
        return [call[1] for call in self.calls if call[0] == "toast"]


class ScriptedTransport:
    """Each stream() call plays the next session: a list of events or an exception"""

    def __init__(self, sessions=(), block_after=False):
        self.sessions = list(sessions)
        self.block_after = block_after
        self.calls = 0

    async def stream(self, token):
        self.calls += 1
        session = self.sessions.pop(0) if self.sessions else ConnectionError("refused")
        if isinstance(session, Exception):
            raise session
        for event in session:
            yield event
        if self.block_after:
            await asyncio.Event().wait()


class RecordedSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _new_report():
    return NewReportEvent(report_id="report_1", category="safety", severity="high")


@pytest.mark.unit
class TestBackoff:
    """Reconnect schedule"""

    def test_backoff_delays(self):
        agent = ReconnectionAgent(ScriptedTransport(), RecordingSink())

        assert [agent.backoff_delay(n) for n in range(1, 6)] == [2, 4, 8, 16, 32]

    @pytest.mark.asyncio
    async def test_gives_up_after_five_attempts(self):
        """Five failed reconnects end in a persistent disconnected toast"""
        transport = ScriptedTransport()
        sink = RecordingSink()
        sleep = RecordedSleep()
        agent = ReconnectionAgent(transport, sink, sleep=sleep)

        await agent.start("token")
        await agent.wait_closed()

        assert sleep.delays == [2, 4, 8, 16, 32]
        assert transport.calls == 6
        assert agent.state == AgentState.PERMANENTLY_DISCONNECTED
        assert ("toast", "Notifications Disconnected", AlertLevel.ERROR, None) in sink.calls

    @pytest.mark.asyncio
    async def test_connected_resets_attempts(self):
        transport = ScriptedTransport([
            ConnectionError("down"),
            ConnectionError("down"),
            [ConnectedEvent()],
        ])
        sink = RecordingSink()
        sleep = RecordedSleep()
        agent = ReconnectionAgent(transport, sink, sleep=sleep)

        await agent.start("token")
        await agent.wait_closed()

        assert sleep.delays == [2, 4, 2, 4, 8, 16, 32]
        assert sink.toasts().count("Notifications Active") == 1


@pytest.mark.unit
class TestLifecycle:
    """Start and disconnect"""

    @pytest.mark.asyncio
    async def test_disconnect_cancels_stream(self):
        agent = ReconnectionAgent(ScriptedTransport([[ConnectedEvent()]], block_after=True), RecordingSink())

        await agent.start("token")
        for _ in range(5):
            await asyncio.sleep(0)
        assert agent.state == AgentState.CONNECTED

        await agent.disconnect()

        assert agent.state == AgentState.DISCONNECTED
        assert not agent.running

    @pytest.mark.asyncio
    async def test_disconnect_cancels_pending_reconnect(self):
        agent = ReconnectionAgent(ScriptedTransport(), RecordingSink(), base_delay=100)

        await agent.start("token")
        for _ in range(5):
            await asyncio.sleep(0)
        assert agent.state == AgentState.RECONNECTING

        await agent.disconnect()
        await agent.disconnect()

        assert agent.state == AgentState.DISCONNECTED
        assert not agent.running


@pytest.mark.unit
class TestEventHandling:
    """Alert side effects"""

    def test_new_report_alerts(self):
        sink = RecordingSink()
        agent = ReconnectionAgent(ScriptedTransport(), sink)

        agent.handle_event(_new_report())

        assert sink.calls == [
            ("toast", "New Report Received", AlertLevel.INFO, 8.0),
            ("sound", 1),
            ("title", "New Report"),
        ]

    def test_urgent_report_alerts(self):
        sink = RecordingSink()
        agent = ReconnectionAgent(ScriptedTransport(), sink)

        agent.handle_event(UrgentReportEvent(report_id="report_2", category="emergency", severity="urgent"))

        assert sink.calls == [
            ("toast", "URGENT REPORT", AlertLevel.ERROR, 15.0),
            ("sound", 3),
            ("flash", "URGENT REPORT"),
        ]

    def test_sound_failure_does_not_block_other_alerts(self):
        sink = RecordingSink(fail_sound=True)
        agent = ReconnectionAgent(ScriptedTransport(), sink)

        agent.handle_event(_new_report())

        assert ("toast", "New Report Received", AlertLevel.INFO, 8.0) in sink.calls
        assert ("title", "New Report") in sink.calls

    def test_heartbeat_has_no_alerts(self):
        sink = RecordingSink()
        agent = ReconnectionAgent(ScriptedTransport(), sink)

        agent.handle_event(HeartbeatEvent())

        assert sink.calls == []

    @pytest.mark.asyncio
    async def test_push_requests_permission_once(self):
        sink = RecordingSink(supports_push=True)
        agent = ReconnectionAgent(ScriptedTransport(), sink)

        agent.handle_event(_new_report())
        for _ in range(3):
            await asyncio.sleep(0)
        agent.handle_event(_new_report())
        for _ in range(3):
            await asyncio.sleep(0)

        assert sink.calls.count(("permission",)) == 1
        assert sink.calls.count(("push", "New Report")) == 2
