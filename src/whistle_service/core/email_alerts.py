"""
Urgent Report Email Alerts

Best-effort SMTP alert sent when an urgent report arrives. The email names
the report id, category and severity only; it never carries report content.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from whistle_service.config.settings import Settings
from whistle_service.models.report import Report

logger = logging.getLogger(__name__)


class EmailAlerter:
    """Sends urgent-report alerts through the configured SMTP relay"""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.email_enabled and self.settings.email_to)

    def build_message(self, report: Report) -> EmailMessage:
        """Compose the alert email for a report"""
        category = report.display_category
        msg = EmailMessage()
        msg["From"] = self.settings.email_from
        msg["To"] = self.settings.email_to
        msg["Subject"] = f"URGENT: New {category} Report - {report.id}"
        msg.set_content(
            "A new urgent report has been submitted.\n\n"
            f"Report ID: {report.id}\n"
            f"Category: {category}\n"
            f"Severity: {report.severity.value}\n"
            f"Submitted: {report.created_at.isoformat()}\n\n"
            "Please log into the admin dashboard to review and respond.\n"
        )
        return msg

    def build_test_message(self) -> EmailMessage:
        """Compose the operator check email"""
        msg = EmailMessage()
        msg["From"] = self.settings.email_from
        msg["To"] = self.settings.email_to
        msg["Subject"] = f"{self.settings.service_name} email alerts test"
        msg.set_content(
            "This is a test of the urgent-report email alerts.\n\n"
            "If you received it, alerts for urgent reports will reach this address.\n"
        )
        return msg

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as smtp:
            if self.settings.smtp_use_tls:
                smtp.starttls()
            if self.settings.smtp_username:
                smtp.login(self.settings.smtp_username, self.settings.smtp_password or "")
            smtp.send_message(msg)

    async def send_alert(self, report: Report) -> bool:
        """
        Send the alert without blocking the event loop

        Returns:
            True if the relay accepted the message, False otherwise
        """
        if not self.enabled:
            logger.warning(f"Email alerts not configured; urgent report {report.id} not emailed")
            return False

        try:
            await asyncio.to_thread(self._send, self.build_message(report))
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email alert for report {report.id}: {e}")
            return False

        logger.info(f"Email alert sent for urgent report {report.id}")
        return True

    async def send_test(self) -> bool:
        """
        Send the operator check email

        Returns:
            True if the relay accepted the message, False otherwise
        """
        if not self.enabled:
            return False

        try:
            await asyncio.to_thread(self._send, self.build_test_message())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send test email: {e}")
            return False

        logger.info("Test email sent")
        return True
