"""
SendGrid Email Provider

Production SendGrid integration for email delivery.

Configuration:
    EMAIL_SENDGRID_API_KEY: SendGrid API key (required, read at send time)
    EMAIL_FROM_EMAIL: Default sender email
    EMAIL_FROM_NAME: Default sender name
"""

import logging
from typing import Optional

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Category, Content, Email, Mail, Personalization, ReplyTo, To

from config.settings import EmailSettings, get_email_settings

from .email_provider import DeliveryResult, DeliveryStatus, EmailMessage, EmailProvider

logger = logging.getLogger(__name__)

# SendGrid accepts at most 10 categories per message
MAX_CATEGORIES = 10


class SendGridProvider(EmailProvider):
    """SendGrid email provider."""

    def __init__(self, api_key: Optional[str] = None, settings: Optional[EmailSettings] = None):
        """
        Initialize SendGrid provider.

        Args:
            api_key: Explicit API key, overrides settings
            settings: Email settings (defaults to environment)
        """
        self._api_key = api_key
        self.settings = settings or get_email_settings()
        self._client = None
        self._client_key = None

    @property
    def provider_name(self) -> str:
        return "sendgrid"

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key or self.settings.sendgrid_api_key

    def _get_client(self) -> SendGridAPIClient:
        key = self.api_key
        if self._client is None or self._client_key != key:
            self._client = SendGridAPIClient(api_key=key)
            self._client_key = key
        return self._client

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_mail(self, message: EmailMessage) -> Mail:
        mail = Mail()
        mail.from_email = Email(
            message.from_email or self.settings.from_email,
            message.from_name or self.settings.from_name,
        )
        mail.subject = message.subject

        personalization = Personalization()
        personalization.add_to(To(message.to))
        mail.add_personalization(personalization)

        if message.body_text:
            mail.add_content(Content("text/plain", message.body_text))
        if message.body_html:
            mail.add_content(Content("text/html", message.body_html))

        if message.reply_to:
            mail.reply_to = ReplyTo(message.reply_to)

        for tag in message.tags[:MAX_CATEGORIES]:
            mail.add_category(Category(tag))

        return mail

    def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Send email via SendGrid.

        Args:
            message: Email message to send

        Returns:
            DeliveryResult with SendGrid message ID
        """
        if not self.is_configured():
            return self._not_configured("SendGrid API key not configured")

        message.validate()

        try:
            response = self._get_client().send(self._build_mail(message))
        except Exception as e:
            # python-http-client raises HTTPError subclasses for 4xx/5xx
            status_code = getattr(e, "status_code", None)
            logger.error(f"SendGrid send error: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=str(e),
                error_code=str(status_code) if status_code else "SEND_ERROR",
            )

        if response.status_code in (200, 201, 202):
            message_id = response.headers.get("X-Message-Id", "")
            logger.info(f"SendGrid: Email sent to {message.to}, message_id={message_id}")
            return DeliveryResult(
                success=True,
                status=DeliveryStatus.SENT,
                message_id=message_id,
                provider=self.provider_name,
                raw_response={"status_code": response.status_code},
            )

        error_msg = f"SendGrid returned status {response.status_code}"
        logger.error(f"SendGrid error: {error_msg}, body={response.body}")
        return DeliveryResult(
            success=False,
            status=DeliveryStatus.FAILED,
            provider=self.provider_name,
            error_message=error_msg,
            error_code=str(response.status_code),
            raw_response={"status_code": response.status_code},
        )
