"""
Email Provider Abstraction

Unified interface for email delivery providers.

Supports:
- SendGrid (production default)
- AWS SES (for AWS infrastructure)
- SMTP (self-hosted)
- Null (development, logs only)
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from config.settings import EmailSettings, get_email_settings

logger = logging.getLogger(__name__)


class DeliveryStatus(str, Enum):
    """Email delivery status."""
    SENT = "sent"
    BOUNCED = "bounced"
    FAILED = "failed"


@dataclass
class EmailMessage:
    """Email message to be sent."""
    to: str
    subject: str
    body_html: Optional[str] = None
    body_text: Optional[str] = None
    from_email: Optional[str] = None
    from_name: Optional[str] = None
    reply_to: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> bool:
        """Validate message has required fields."""
        if not self.to:
            raise ValueError("Recipient email (to) is required")
        if not self.subject:
            raise ValueError("Subject is required")
        if not self.body_html and not self.body_text:
            raise ValueError("Either body_html or body_text is required")
        return True


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DeliveryResult:
    """Result of email delivery attempt."""
    success: bool
    status: DeliveryStatus
    message_id: Optional[str] = None
    provider: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)
    raw_response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "status": self.status.value,
            "message_id": self.message_id,
            "provider": self.provider,
            "error_message": self.error_message,
            "error_code": self.error_code,
            "timestamp": self.timestamp.isoformat(),
        }


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return provider name for logging."""
        pass

    @abstractmethod
    def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Send an email message.

        Args:
            message: Email message to send

        Returns:
            DeliveryResult with success/failure status
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if provider is properly configured."""
        pass

    def send_batch(self, messages: List[EmailMessage]) -> List[DeliveryResult]:
        """Send multiple emails one by one."""
        return [self.send(message) for message in messages]

    def _not_configured(self, reason: str) -> DeliveryResult:
        return DeliveryResult(
            success=False,
            status=DeliveryStatus.FAILED,
            provider=self.provider_name,
            error_message=reason,
            error_code="NOT_CONFIGURED",
        )


class NullEmailProvider(EmailProvider):
    """
    Null provider for development.

    Logs emails but doesn't send them.
    """

    @property
    def provider_name(self) -> str:
        return "null"

    def send(self, message: EmailMessage) -> DeliveryResult:
        message.validate()
        logger.info(f"[NULL PROVIDER] Would send email to {message.to}: {message.subject}")
        return DeliveryResult(
            success=True,
            status=DeliveryStatus.SENT,
            message_id=f"null-{uuid.uuid4()}",
            provider=self.provider_name,
        )

    def is_configured(self) -> bool:
        return True


# Global provider instance
_email_provider: Optional[EmailProvider] = None


def create_email_provider(settings: Optional[EmailSettings] = None) -> EmailProvider:
    """
    Build the provider named by EMAIL_PROVIDER.

    With ``auto`` the first configured backend wins:
    1. EMAIL_SENDGRID_API_KEY -> SendGrid
    2. EMAIL_SES_REGION -> AWS SES
    3. EMAIL_SMTP_HOST -> SMTP
    4. None -> Null provider (logging only)
    """
    settings = settings or get_email_settings()
    choice = settings.provider

    if choice == "auto":
        if settings.sendgrid_api_key:
            choice = "sendgrid"
        elif settings.ses_region:
            choice = "ses"
        elif settings.smtp_host:
            choice = "smtp"
        else:
            choice = "null"

    if choice == "sendgrid":
        from .sendgrid_provider import SendGridProvider
        provider = SendGridProvider(settings=settings)
    elif choice == "ses":
        from .ses_provider import SESProvider
        provider = SESProvider(settings=settings)
    elif choice == "smtp":
        from .smtp_provider import SMTPProvider
        provider = SMTPProvider(settings=settings)
    else:
        logger.warning(
            "No email provider configured. Emails will be logged but not sent. "
            "Set EMAIL_SENDGRID_API_KEY, EMAIL_SES_REGION, or EMAIL_SMTP_HOST to enable delivery."
        )
        return NullEmailProvider()

    logger.info(f"Email provider: {provider.provider_name}")
    return provider


def get_email_provider() -> EmailProvider:
    """Get the process-wide email provider, creating it on first use."""
    global _email_provider

    if _email_provider is None:
        _email_provider = create_email_provider()
    return _email_provider


def set_email_provider(provider: Optional[EmailProvider]):
    """
    Set a custom email provider (for testing).

    Passing None resets to lazy creation from settings.
    """
    global _email_provider
    _email_provider = provider
    if provider is not None:
        logger.info(f"Email provider set to: {provider.provider_name}")
