"""
Notification Hub

Registry of live admin viewer connections and best-effort fan-out of
notification events to all of them.

The registry is shared between the stream endpoint (subscribe/disconnect)
and report creation (publish). It is guarded by a lock that is never held
while writing to a connection: publish takes a snapshot, writes outside
the lock and evicts failed connections afterwards.
"""

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Callable, Dict, Optional, Set
from uuid import uuid4

from whistle_service.core.email_alerts import EmailAlerter
from whistle_service.core.exceptions import Unauthorized
from whistle_service.models.events import (
    ConnectedEvent,
    HeartbeatEvent,
    NotificationEvent,
    UrgentReportEvent,
    event_for_report,
)
from whistle_service.models.report import Report, utcnow

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[Optional[str]], Any]

_CLOSED = object()


class ConnectionClosedError(Exception):
    """Write attempted on a connection that has been closed"""


class Connection:
    """One admin viewer's outbound event channel"""

    def __init__(self, connection_id: str, queue_size: int = 100):
        self.id = connection_id
        self.connected_at = utcnow()
        self.last_ping = self.connected_at
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._heartbeat: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: NotificationEvent) -> None:
        """
        Enqueue an event for this viewer

        Raises:
            ConnectionClosedError: If the connection is closed
            asyncio.QueueFull: If the viewer is not draining its stream
        """
        if self._closed:
            raise ConnectionClosedError(f"Connection {self.id} is closed")
        self._queue.put_nowait(event)

    def attach_heartbeat(self, task: asyncio.Task) -> None:
        self._heartbeat = task

    async def events(self) -> AsyncIterator[NotificationEvent]:
        """Yield events in publish order until the connection closes"""
        while True:
            event = await self._queue.get()
            if event is _CLOSED or self._closed:
                return
            yield event

    def close(self) -> bool:
        """
        Close the channel and stop its heartbeat

        Returns:
            True on the first call, False if already closed
        """
        if self._closed:
            return False
        self._closed = True

        if self._heartbeat is not None:
            self._heartbeat.cancel()
            self._heartbeat = None

        # Wake a reader blocked on an empty queue
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass
        return True


class NotificationHub:
    """Fan-out of notification events to subscribed admin viewers"""

    def __init__(
        self,
        token_verifier: TokenVerifier,
        heartbeat_interval: float = 30.0,
        queue_size: int = 100,
        email_alerter: Optional[EmailAlerter] = None
    ):
        self._verify_token = token_verifier
        self.heartbeat_interval = heartbeat_interval
        self.queue_size = queue_size
        self.email_alerter = email_alerter

        self._connections: Dict[str, Connection] = {}
        self._lock = threading.Lock()
        self._background: Set[asyncio.Task] = set()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(connection_id)

    async def subscribe(self, token: Optional[str]) -> Connection:
        """
        Register a new viewer connection

        Args:
            token: Admin token presented by the viewer

        Returns:
            The registered connection, already holding a connected event

        Raises:
            Unauthorized: If the token is missing or invalid
        """
        if not token:
            raise Unauthorized("Authentication required")
        self._verify_token(token)

        connection = Connection(uuid4().hex, self.queue_size)
        with self._lock:
            self._connections[connection.id] = connection

        connection.send(ConnectedEvent())
        connection.attach_heartbeat(
            asyncio.create_task(self._heartbeat_loop(connection))
        )

        logger.info(f"Viewer connection {connection.id} established")
        return connection

    async def _heartbeat_loop(self, connection: Connection) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                connection.send(HeartbeatEvent())
            except (asyncio.QueueFull, ConnectionClosedError):
                logger.warning(f"Heartbeat failed for connection {connection.id}; dropping it")
                self.disconnect(connection.id)
                return
            connection.last_ping = utcnow()

    def disconnect(self, connection_id: str) -> bool:
        """
        Remove a connection and stop its heartbeat

        Returns:
            True if the connection was registered
        """
        with self._lock:
            connection = self._connections.pop(connection_id, None)

        if connection is None:
            return False

        connection.close()
        logger.info(f"Viewer connection {connection_id} closed")
        return True

    def publish(self, event: NotificationEvent) -> int:
        """
        Write an event to every registered connection

        Connections whose write fails are evicted. Never raises.

        Returns:
            Number of connections the event was delivered to
        """
        with self._lock:
            connections = list(self._connections.values())

        delivered = 0
        failed = []
        for connection in connections:
            try:
                connection.send(event)
                delivered += 1
            except Exception as e:
                logger.warning(f"Failed to send {event.type} to connection {connection.id}: {e!r}")
                failed.append(connection.id)

        for connection_id in failed:
            self.disconnect(connection_id)

        logger.info(f"Broadcasted {event.type} to {delivered} connections")
        return delivered

    def notify_new_report(self, report: Report) -> NotificationEvent:
        """
        Announce a newly stored report to all viewers

        Urgent reports (severity urgent or category emergency) also trigger
        an email alert in the background.

        Returns:
            The published event
        """
        event = event_for_report(report)
        self.publish(event)

        if isinstance(event, UrgentReportEvent) and self.email_alerter is not None:
            task = asyncio.create_task(self._send_email_alert(report))
            self._background.add(task)
            task.add_done_callback(self._background.discard)

        return event

    async def _send_email_alert(self, report: Report) -> None:
        try:
            await self.email_alerter.send_alert(report)
        except Exception as e:
            logger.error(f"Email alert for report {report.id} failed: {e!r}")

    async def drain(self) -> None:
        """Wait for pending background alerts"""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def shutdown(self) -> None:
        """Disconnect every viewer and finish pending alerts"""
        with self._lock:
            connection_ids = list(self._connections)

        for connection_id in connection_ids:
            self.disconnect(connection_id)

        await self.drain()
        logger.info(f"Notification hub stopped ({len(connection_ids)} connections closed)")
