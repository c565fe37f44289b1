"""
SMTP Email Provider

Standard SMTP integration for self-hosted mail servers.

Configuration:
    EMAIL_SMTP_HOST: SMTP server hostname
    EMAIL_SMTP_PORT: SMTP server port (default: 587)
    EMAIL_SMTP_USERNAME / EMAIL_SMTP_PASSWORD: Authentication
    EMAIL_SMTP_USE_TLS: Use STARTTLS (default: True)
"""

import logging
import smtplib
import ssl
import uuid
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from config.settings import EmailSettings, get_email_settings

from .email_provider import DeliveryResult, DeliveryStatus, EmailMessage, EmailProvider

logger = logging.getLogger(__name__)


class SMTPProvider(EmailProvider):
    """SMTP email provider."""

    def __init__(self, settings: Optional[EmailSettings] = None):
        self.settings = settings or get_email_settings()

    @property
    def provider_name(self) -> str:
        return "smtp"

    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host)

    def _build_mime(self, message: EmailMessage) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((
            message.from_name or self.settings.from_name,
            message.from_email or self.settings.from_email,
        ))
        msg["To"] = message.to
        msg["Subject"] = message.subject
        if message.reply_to:
            msg["Reply-To"] = message.reply_to

        if message.body_text:
            msg.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, "html", "utf-8"))
        return msg

    def send(self, message: EmailMessage) -> DeliveryResult:
        """Send email via SMTP."""
        if not self.is_configured():
            return self._not_configured("SMTP not configured (missing EMAIL_SMTP_HOST)")

        message.validate()
        msg = self._build_mime(message)
        sender = message.from_email or self.settings.from_email

        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.smtp_timeout,
            ) as server:
                if self.settings.smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.settings.smtp_username and self.settings.smtp_password:
                    server.login(self.settings.smtp_username, self.settings.smtp_password)
                server.sendmail(sender, [message.to], msg.as_string())

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP auth error: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=f"SMTP authentication failed: {e}",
                error_code="AUTH_ERROR",
            )
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"SMTP recipients refused: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.BOUNCED,
                provider=self.provider_name,
                error_message=f"Recipients refused: {e}",
                error_code="RECIPIENTS_REFUSED",
            )
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=str(e),
                error_code="SMTP_ERROR",
            )

        logger.info(f"SMTP: Email sent to {message.to}")

        # SMTP doesn't return a message ID
        return DeliveryResult(
            success=True,
            status=DeliveryStatus.SENT,
            message_id=f"smtp-{uuid.uuid4()}",
            provider=self.provider_name,
        )
