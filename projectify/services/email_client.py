"""SMTP mailer for notification emails (standard library smtplib)."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from projectify.core.config import Settings

logger = logging.getLogger(__name__)


class SmtpMailer:
    """
    Sends one HTML message per call over SMTP + STARTTLS.

    ``send`` raises on transport errors; the notification worker is the one
    that logs and drops them.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, to: str, subject: str, html: str) -> bool:
        """
        Send an email.

        Returns:
            True when sent, False when SMTP is not configured (skipped).
        """
        settings = self.settings
        if not settings.smtp_configured:
            logger.warning("SMTP configuration missing. Skipping email to %s", to)
            return False

        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((settings.mail_from_name, settings.smtp_email))
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))

        logger.debug("Connecting to SMTP server %s:%s", settings.smtp_server, settings.smtp_port)
        with smtplib.SMTP(settings.smtp_server, settings.smtp_port, timeout=30) as server:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(settings.smtp_email, settings.smtp_password)
            server.send_message(msg, to_addrs=[to])

        logger.info("Email sent to %s: %s", to, subject)
        return True

    def test_connection(self) -> bool:
        """Log in to the SMTP server without sending anything."""
        settings = self.settings
        if not settings.smtp_configured:
            return False
        try:
            with smtplib.SMTP(settings.smtp_server, settings.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(settings.smtp_email, settings.smtp_password)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP connection failed: %s", e)
            return False
