"""
Admin Viewer

Fetches reports for the admin dashboard and decrypts encrypted ones with
the shared key. Decryption happens here, never on the server.
"""

import logging
from typing import List, NamedTuple, Optional, Tuple

from whistle_service.client.api_client import WhistleClient
from whistle_service.core.exceptions import DecryptionError
from whistle_service.crypto.codec import decrypt, require_key
from whistle_service.models import Report, ReportPayload, ReportStatus

logger = logging.getLogger(__name__)

DECRYPTION_ERROR_MESSAGE = "[DECRYPTION ERROR]"
ENCRYPTED_CATEGORY = "encrypted"


class DisplayedReport(NamedTuple):
    report: Report
    content: ReportPayload
    decrypted: bool


def decryption_error_payload() -> ReportPayload:
    return ReportPayload(message=DECRYPTION_ERROR_MESSAGE, category=ENCRYPTED_CATEGORY)


def decrypt_report_for_display(report: Report, key: Optional[bytes]) -> Tuple[ReportPayload, bool]:
    """
    Readable content of a report

    Plaintext reports pass through. Encrypted reports that cannot be
    decrypted yield the "[DECRYPTION ERROR]" sentinel instead of raising.

    Returns:
        Tuple of (content, readable); readable is False only for the sentinel

    Raises:
        ConfigurationError: If an encrypted report is given no usable key
    """
    if not report.is_encrypted:
        return ReportPayload(
            message=report.message,
            category=report.display_category,
            photo_url=report.photo_url,
            video_url=report.video_url,
            video_metadata=report.video_metadata
        ), True

    if report.encrypted_data is None:
        logger.error(f"Encrypted report {report.id} has no envelope")
        return decryption_error_payload(), False

    try:
        return decrypt(report.encrypted_data, key), True
    except DecryptionError as e:
        logger.error(f"Failed to decrypt report {report.id}: {e}")
        return decryption_error_payload(), False


class AdminViewer:
    """Dashboard data source: reports plus their readable content"""

    def __init__(self, client: WhistleClient, key: Optional[bytes]):
        self.client = client
        # A viewer without a usable key refuses to start
        self.key = require_key(key)

    async def load_reports(self, status: Optional[ReportStatus] = None) -> List[DisplayedReport]:
        """Fetch and decrypt reports, one failure never hiding the others"""
        reports = await self.client.list_reports(status)
        displayed = []
        for report in reports:
            content, decrypted = decrypt_report_for_display(report, self.key)
            displayed.append(DisplayedReport(report, content, decrypted))
        return displayed
