"""
Notification Stream Transport

httpx client for the Server-Sent Events notification stream.
"""

import logging
from typing import AsyncIterator, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from whistle_service.core.exceptions import WhistleError
from whistle_service.models.events import NotificationEvent, parse_event

logger = logging.getLogger(__name__)


class StreamError(WhistleError):
    """The notification stream could not be opened"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


async def iter_sse_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Group SSE lines into event payloads

    Yields the joined ``data:`` lines of each event. Comments and other
    fields (``event:``, ``id:``, ``retry:``) are ignored.
    """
    data_lines = []
    async for line in lines:
        if line == "":
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        if field == "data":
            data_lines.append(value[1:] if value.startswith(" ") else value)

    if data_lines:
        yield "\n".join(data_lines)


class SSETransport:
    """Opens the notification stream and yields parsed events"""

    def __init__(
        self,
        base_url: str,
        api_prefix: str = "/api",
        client: Optional[httpx.AsyncClient] = None,
        read_timeout: float = 75.0
    ):
        self.base_url = base_url.rstrip("/")
        self.path = f"{api_prefix}/notifications/stream"
        self._client = client
        # Must exceed the server heartbeat interval
        self.read_timeout = read_timeout

    async def stream(self, token: str) -> AsyncIterator[NotificationEvent]:
        """
        Yield events until the server closes the stream

        Raises:
            StreamError: If the server refuses the subscription
            httpx.HTTPError: On transport failures
        """
        owned = self._client is None
        client = self._client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(10.0, read=self.read_timeout)
        )

        try:
            async with client.stream(
                "GET",
                self.path,
                params={"token": token},
                headers={"Accept": "text/event-stream"}
            ) as response:
                if response.status_code != 200:
                    raise StreamError(
                        f"Notification stream refused with HTTP {response.status_code}",
                        status_code=response.status_code
                    )

                async for data in iter_sse_data(response.aiter_lines()):
                    try:
                        yield parse_event(data)
                    except PydanticValidationError:
                        logger.error("Failed to parse notification data")
        finally:
            if owned:
                await client.aclose()
