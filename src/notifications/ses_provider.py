"""
AWS SES Email Provider

Amazon Simple Email Service integration for email delivery.

Configuration:
    EMAIL_SES_REGION: AWS region for SES (e.g., eu-west-1)
    EMAIL_AWS_ACCESS_KEY_ID / EMAIL_AWS_SECRET_ACCESS_KEY: Optional, IAM role otherwise
    EMAIL_FROM_EMAIL: Default sender email (must be verified in SES)
"""

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config.settings import EmailSettings, get_email_settings

from .email_provider import DeliveryResult, DeliveryStatus, EmailMessage, EmailProvider

logger = logging.getLogger(__name__)


class SESProvider(EmailProvider):
    """AWS Simple Email Service provider."""

    def __init__(self, settings: Optional[EmailSettings] = None, client=None):
        self.settings = settings or get_email_settings()
        self._client = client

    @property
    def provider_name(self) -> str:
        return "ses"

    def _get_client(self):
        """Lazy-create the boto3 SES client."""
        if self._client is None:
            kwargs = {"region_name": self.settings.ses_region}
            if self.settings.aws_access_key_id and self.settings.aws_secret_access_key:
                kwargs["aws_access_key_id"] = self.settings.aws_access_key_id
                kwargs["aws_secret_access_key"] = self.settings.aws_secret_access_key
            self._client = boto3.client("ses", **kwargs)
        return self._client

    def is_configured(self) -> bool:
        # SES can use IAM roles, so a region is enough
        return bool(self.settings.ses_region)

    def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Send email via AWS SES.

        Returns:
            DeliveryResult with SES message ID
        """
        if not self.is_configured():
            return self._not_configured("AWS SES not configured (missing region)")

        message.validate()

        from_addr = message.from_email or self.settings.from_email
        from_name = message.from_name or self.settings.from_name
        source = f"{from_name} <{from_addr}>" if from_name else from_addr

        body = {}
        if message.body_text:
            body["Text"] = {"Data": message.body_text, "Charset": "UTF-8"}
        if message.body_html:
            body["Html"] = {"Data": message.body_html, "Charset": "UTF-8"}

        kwargs = {
            "Source": source,
            "Destination": {"ToAddresses": [message.to]},
            "Message": {
                "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                "Body": body,
            },
        }
        if message.reply_to:
            kwargs["ReplyToAddresses"] = [message.reply_to]

        try:
            response = self._get_client().send_email(**kwargs)
        except ClientError as e:
            error = e.response.get("Error", {})
            logger.error(f"SES send error: {error.get('Message', e)}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=error.get("Message", str(e)),
                error_code=error.get("Code", "SEND_ERROR"),
            )
        except BotoCoreError as e:
            logger.error(f"SES client error: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=str(e),
                error_code="SEND_ERROR",
            )

        message_id = response.get("MessageId", "")
        logger.info(f"SES: Email sent to {message.to}, message_id={message_id}")
        return DeliveryResult(
            success=True,
            status=DeliveryStatus.SENT,
            message_id=message_id,
            provider=self.provider_name,
        )
