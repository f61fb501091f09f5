"""
Admin Session

Builds the admin-side client tooling from ``ClientSettings``: the API
client, the decrypting viewer and the live notification agent.
"""

import logging
from typing import Optional

from whistle_service.client.agent import ReconnectionAgent
from whistle_service.client.alerts import AlertSink, LoggingAlertSink
from whistle_service.client.api_client import WhistleClient
from whistle_service.client.transport import SSETransport
from whistle_service.client.viewer import AdminViewer
from whistle_service.config.settings import ClientSettings
from whistle_service.crypto.codec import load_key

logger = logging.getLogger(__name__)


class AdminSession:
    """One admin's client, viewer and notification agent"""

    def __init__(self, client: WhistleClient, viewer: AdminViewer, agent: ReconnectionAgent):
        self.client = client
        self.viewer = viewer
        self.agent = agent

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        alerts: Optional[AlertSink] = None
    ) -> "AdminSession":
        """
        Wire the admin tooling from configuration

        Raises:
            ConfigurationError: If WHISTLE_ENCRYPTION_KEY is missing or malformed
        """
        key = load_key(settings.encryption_key)
        client = WhistleClient.from_settings(settings)
        transport = SSETransport(settings.base_url, api_prefix=settings.api_prefix)
        agent = ReconnectionAgent(transport, alerts or LoggingAlertSink())
        return cls(client, AdminViewer(client, key), agent)

    async def login(self, username: str, password: str) -> str:
        """Log in and open the live notification stream"""
        token = await self.client.login(username, password)
        await self.agent.start(token)
        logger.info("Admin session started")
        return token

    async def aclose(self) -> None:
        await self.agent.disconnect()
        await self.client.aclose()
