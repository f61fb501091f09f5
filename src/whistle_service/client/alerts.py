"""
Viewer Alerts

Output surface the reconnection agent drives when events arrive: toasts,
native push notifications, sounds and window-title changes. The default
sink writes everything to the log; desktop or web front ends provide their
own sink.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class AlertLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class AlertSink(ABC):
    """Where viewer alerts are rendered"""

    supports_push: bool = False

    @abstractmethod
    def toast(
        self,
        title: str,
        description: str,
        level: AlertLevel = AlertLevel.INFO,
        duration: Optional[float] = 5.0
    ) -> None:
        """Show an in-app toast; duration None keeps it until dismissed"""

    async def request_push_permission(self) -> bool:
        """Ask the user to allow native notifications"""
        return False

    def push_notification(self, title: str, body: str) -> None:
        """Show a native notification (only called once permission is granted)"""

    @abstractmethod
    def play_sound(self, beeps: int = 1) -> None:
        """Play the audible cue"""

    @abstractmethod
    def update_title(self, prefix: str, revert_after: float = 10.0) -> None:
        """Prefix the window title for a while"""

    @abstractmethod
    def flash_title(self, text: str, flashes: int = 10, interval: float = 1.0) -> None:
        """Alternate the window title with ``text``"""


class LoggingAlertSink(AlertSink):
    """Alert sink for headless viewers: every alert becomes a log record"""

    _levels = {
        AlertLevel.INFO: logging.INFO,
        AlertLevel.SUCCESS: logging.INFO,
        AlertLevel.WARNING: logging.WARNING,
        AlertLevel.ERROR: logging.ERROR,
    }

    def toast(self, title, description, level=AlertLevel.INFO, duration=5.0):
        logger.log(self._levels[level], f"{title}: {description}")

    def play_sound(self, beeps=1):
        logger.debug(f"Sound cue ({beeps} beep(s))")

    def update_title(self, prefix, revert_after=10.0):
        logger.debug(f"Title prefix: {prefix}")

    def flash_title(self, text, flashes=10, interval=1.0):
        logger.debug(f"Title flash: {text}")
