"""
Notification Dispatch Engine

Turns invite, task, comment and daily-timer events into emails.

Provides:
- Multi-provider email delivery (SendGrid, AWS SES, SMTP)
- Recipient resolution, mention parsing and per-user email preferences
- Due-date digests grouped per tenant and assignee
- Invite delivery tracking

Usage:
    from notifications import DocumentCreatedEvent, get_dispatcher

    result = await get_dispatcher().handle_invite_created(
        DocumentCreatedEvent(params={"inviteId": "inv1"}, data=invite_data)
    )
    result.to_dict()
"""

from .digest import DigestBuilder, DigestTask, TenantDigest
from .dispatcher import (
    DispatchResult,
    DispatchState,
    NotificationDispatcher,
    get_dispatcher,
)
from .email_provider import (
    DeliveryResult,
    DeliveryStatus,
    EmailMessage,
    EmailProvider,
    NullEmailProvider,
    create_email_provider,
    get_email_provider,
    set_email_provider,
)
from .events import DocumentCreatedEvent, DocumentUpdatedEvent, EventKind, ScheduledEvent
from .exceptions import DeliveryError, InvalidEventError, NotificationError
from .idempotency import InviteDeliveryTracker
from .mentions import MentionResult, extract_mentions
from .preferences import NotificationCategory, allows
from .recipients import RecipientResolver, ReminderWindow, reminder_window
from .repository import NotificationRepository

from .sendgrid_provider import SendGridProvider
from .ses_provider import SESProvider
from .smtp_provider import SMTPProvider

__all__ = [
    # Orchestration
    "DispatchResult",
    "DispatchState",
    "NotificationDispatcher",
    "get_dispatcher",
    # Events
    "DocumentCreatedEvent",
    "DocumentUpdatedEvent",
    "EventKind",
    "ScheduledEvent",
    # Policies
    "DigestBuilder",
    "DigestTask",
    "InviteDeliveryTracker",
    "MentionResult",
    "NotificationCategory",
    "NotificationRepository",
    "RecipientResolver",
    "ReminderWindow",
    "TenantDigest",
    "allows",
    "extract_mentions",
    "reminder_window",
    # Delivery
    "DeliveryResult",
    "DeliveryStatus",
    "EmailMessage",
    "EmailProvider",
    "NullEmailProvider",
    "create_email_provider",
    "get_email_provider",
    "set_email_provider",
    "SendGridProvider",
    "SESProvider",
    "SMTPProvider",
    # Errors
    "DeliveryError",
    "InvalidEventError",
    "NotificationError",
]
