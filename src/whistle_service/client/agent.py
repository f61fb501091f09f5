"""
Reconnection Agent

Keeps one live notification subscription per admin session and turns
incoming events into alerts.

States::

    DISCONNECTED -> CONNECTING -> CONNECTED
    CONNECTED -(error)-> RECONNECTING -> CONNECTED | PERMANENTLY_DISCONNECTED

After a failure the agent waits ``2**attempt * base_delay`` seconds
(2, 4, 8, 16, 32 with the defaults) before resubscribing. A ``connected``
event resets the attempt counter. Events published while the agent is not
connected are lost.
"""

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol, Set

from whistle_service.client.alerts import AlertLevel, AlertSink
from whistle_service.models.events import (
    ConnectedEvent,
    HeartbeatEvent,
    NewReportEvent,
    NotificationEvent,
    UrgentReportEvent,
)

logger = logging.getLogger(__name__)


class AgentState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    PERMANENTLY_DISCONNECTED = "permanently_disconnected"


class EventTransport(Protocol):
    def stream(self, token: str) -> AsyncIterator[NotificationEvent]:
        ...


class ReconnectionAgent:
    """Live notification subscription with exponential backoff"""

    def __init__(
        self,
        transport: EventTransport,
        alerts: AlertSink,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.transport = transport
        self.alerts = alerts
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

        self.state = AgentState.DISCONNECTED
        self.attempt = 0
        self._task: Optional[asyncio.Task] = None
        self._side_tasks: Set[asyncio.Task] = set()
        self._confirmed = False
        self._push_permission: Optional[bool] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def backoff_delay(self, attempt: int) -> float:
        """Delay before reconnect number ``attempt`` (1-based)"""
        return (2 ** attempt) * self.base_delay

    async def start(self, token: str) -> None:
        """Open the subscription, replacing any existing one"""
        await self.disconnect()
        self.attempt = 0
        self._confirmed = False
        self._task = asyncio.create_task(self._run(token))

    async def wait_closed(self) -> None:
        """Wait until the agent stops on its own or is disconnected"""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def disconnect(self) -> None:
        """Cancel any pending reconnect and close the subscription. Idempotent."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        for side_task in list(self._side_tasks):
            side_task.cancel()
        self._side_tasks.clear()

        if self.state != AgentState.DISCONNECTED:
            logger.info("Notification agent disconnected")
        self.state = AgentState.DISCONNECTED

    async def _run(self, token: str) -> None:
        self.state = AgentState.CONNECTING
        while True:
            try:
                async for event in self.transport.stream(token):
                    self.handle_event(event)
                logger.warning("Notification stream closed by server")
            except Exception as e:
                logger.error(f"Notification stream error: {e!r}")

            if self.attempt >= self.max_attempts:
                self.state = AgentState.PERMANENTLY_DISCONNECTED
                logger.error(f"Giving up on notifications after {self.attempt} reconnect attempts")
                self._safely(
                    "toast",
                    self.alerts.toast,
                    "Notifications Disconnected",
                    "Unable to connect to real-time notifications. Please refresh the page.",
                    AlertLevel.ERROR,
                    None
                )
                return

            self.attempt += 1
            self.state = AgentState.RECONNECTING
            delay = self.backoff_delay(self.attempt)
            logger.info(f"Reconnecting notifications in {delay:.0f}s (attempt {self.attempt})")
            await self._sleep(delay)

    def handle_event(self, event: NotificationEvent) -> None:
        """Dispatch one event to its alerts"""
        match event:
            case ConnectedEvent():
                self.state = AgentState.CONNECTED
                self.attempt = 0
                logger.info("Real-time notifications connected")
                if not self._confirmed:
                    self._confirmed = True
                    self._safely(
                        "toast",
                        self.alerts.toast,
                        "Notifications Active",
                        "Real-time alerts enabled for new reports",
                        AlertLevel.SUCCESS
                    )
            case HeartbeatEvent():
                logger.debug(f"Heartbeat {event.timestamp}")
            case UrgentReportEvent():
                self._render_urgent(event)
            case NewReportEvent():
                self._render_new(event)
            case _:
                logger.warning(f"Unhandled notification: {event!r}")

    def _render_new(self, event: NewReportEvent) -> None:
        self._safely(
            "toast",
            self.alerts.toast,
            "New Report Received",
            f"{event.category} report ({event.severity} priority) - ID: {event.report_id}",
            AlertLevel.INFO,
            8.0
        )
        self._push(
            "New Report",
            f"A new {event.category} report has been submitted with {event.severity} priority."
        )
        self._safely("sound", self.alerts.play_sound, 1)
        self._safely("title", self.alerts.update_title, "New Report")

    def _render_urgent(self, event: UrgentReportEvent) -> None:
        self._safely(
            "toast",
            self.alerts.toast,
            "URGENT REPORT",
            f"Emergency {event.category} report requires immediate attention - ID: {event.report_id}",
            AlertLevel.ERROR,
            15.0
        )
        self._push(
            "URGENT: New Report",
            f"An emergency {event.category} report requires immediate attention."
        )
        self._safely("sound", self.alerts.play_sound, 3)
        self._safely("title flash", self.alerts.flash_title, "URGENT REPORT")

    def _safely(self, effect: str, func: Callable, *args) -> None:
        try:
            func(*args)
        except Exception as e:
            logger.warning(f"Alert {effect} failed: {e!r}")

    def _push(self, title: str, body: str) -> None:
        if not self.alerts.supports_push or self._push_permission is False:
            return
        task = asyncio.create_task(self._send_push(title, body))
        self._side_tasks.add(task)
        task.add_done_callback(self._side_tasks.discard)

    async def _send_push(self, title: str, body: str) -> None:
        try:
            if self._push_permission is None:
                self._push_permission = await self.alerts.request_push_permission()
            if self._push_permission:
                self.alerts.push_notification(title, body)
        except Exception as e:
            logger.warning(f"Native notification failed: {e!r}")
