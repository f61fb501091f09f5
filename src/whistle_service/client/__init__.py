"""Client tooling for submitters and admin viewers"""

from .agent import AgentState, ReconnectionAgent
from .alerts import AlertLevel, AlertSink, LoggingAlertSink
from .api_client import WhistleClient
from .session import AdminSession
from .transport import SSETransport, StreamError
from .viewer import AdminViewer, DisplayedReport, decrypt_report_for_display

__all__ = [
    "AgentState",
    "ReconnectionAgent",
    "AlertLevel",
    "AlertSink",
    "LoggingAlertSink",
    "WhistleClient",
    "AdminSession",
    "SSETransport",
    "StreamError",
    "AdminViewer",
    "DisplayedReport",
    "decrypt_report_for_display",
]
