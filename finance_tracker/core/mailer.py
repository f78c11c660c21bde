# finance_tracker/core/mailer.py

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from finance_tracker.core.config import Settings, SmtpSettings

logger = logging.getLogger(__name__)

LOGIN_TOKEN_SUBJECT = "Your access code - Dash Finance"


@dataclass(frozen=True)
class DeliveryResult:
    delivered: bool


class NotificationSender(Protocol):
    def send_login_token(self, to: str, token: str, expires_in_minutes: int) -> DeliveryResult:
        ...


class SmtpNotificationSender:
    """
    Sends login codes over SMTP. Delivery is best-effort: a missing transport
    or an SMTP failure yields delivered=False, never an exception.
    """

    def __init__(self, smtp: SmtpSettings, timeout: float = 10.0):
        self.smtp = smtp
        self.timeout = timeout

    def _build_message(self, to: str, token: str, expires_in_minutes: int) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.smtp.sender
        message["To"] = to
        message["Subject"] = LOGIN_TOKEN_SUBJECT
        message.set_content(f"Your access code is {token}. It expires in {expires_in_minutes} minutes.")
        message.add_alternative(
            f"<p>Your access code is <strong>{token}</strong>.</p>"
            f"<p>It expires in {expires_in_minutes} minutes.</p>",
            subtype="html",
        )
        return message

    def _open_connection(self) -> smtplib.SMTP:
        if self.smtp.secure:
            return smtplib.SMTP_SSL(self.smtp.host, self.smtp.port, timeout=self.timeout)
        connection = smtplib.SMTP(self.smtp.host, self.smtp.port, timeout=self.timeout)
        connection.starttls()
        return connection

    def send_login_token(self, to: str, token: str, expires_in_minutes: int) -> DeliveryResult:
        if not self.smtp.is_configured:
            return DeliveryResult(delivered=False)

        message = self._build_message(to, token, expires_in_minutes)
        try:
            with self._open_connection() as connection:
                connection.login(self.smtp.user, self.smtp.password)
                connection.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send login token email to {to}: {e}")
            return DeliveryResult(delivered=False)

        logger.info(f"Login token email sent to {to}.")
        return DeliveryResult(delivered=True)


def build_notification_sender(settings: Settings) -> NotificationSender:
    if not settings.smtp.is_configured:
        logger.info("SMTP not configured: login codes will only be logged.")
    return SmtpNotificationSender(settings.smtp)
