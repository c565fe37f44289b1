"""
Shared test data for notification tests.

The fixed clock is 08:00 in Luxembourg on 10 March 2026, before the switch
to summer time.
"""

from datetime import datetime, timezone
from typing import Iterable, List

from datastore import InMemoryDocumentStore
from notifications.email_provider import DeliveryResult, DeliveryStatus, EmailMessage, EmailProvider

# 07:00 UTC is 08:00 CET, before the switch to summer time
FIXED_NOW = datetime(2026, 3, 10, 7, 0, tzinfo=timezone.utc)

# Due dates around the fixed clock
TODAY_NOON = datetime(2026, 3, 10, 11, 0, tzinfo=timezone.utc)
TOMORROW_NOON = datetime(2026, 3, 11, 11, 0, tzinfo=timezone.utc)
YESTERDAY_NOON = datetime(2026, 3, 9, 11, 0, tzinfo=timezone.utc)
IN_THREE_DAYS = datetime(2026, 3, 13, 11, 0, tzinfo=timezone.utc)


class RecordingEmailProvider(EmailProvider):
    """Email provider that records messages instead of sending them."""

    def __init__(self, fail_for: Iterable[str] = ()):
        self.sent: List[EmailMessage] = []
        self.attempts: List[EmailMessage] = []
        self.fail_for = set(fail_for)

    @property
    def provider_name(self) -> str:
        return "recording"

    def is_configured(self) -> bool:
        return True

    def send(self, message: EmailMessage) -> DeliveryResult:
        message.validate()
        self.attempts.append(message)
        if message.to in self.fail_for:
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=f"Mailbox unavailable: {message.to}",
                error_code="550",
            )
        self.sent.append(message)
        return DeliveryResult(
            success=True,
            status=DeliveryStatus.SENT,
            message_id=f"msg-{len(self.sent)}",
            provider=self.provider_name,
        )

    @property
    def recipients(self) -> List[str]:
        return [message.to for message in self.sent]

    def sent_to(self, address: str) -> List[EmailMessage]:
        return [message for message in self.sent if message.to == address]


async def seed_workspace(store: InMemoryDocumentStore) -> None:
    """
    Two tenants, three projects and a handful of users.

    u3 has opted out of everything, u9 only out of task assignment emails.
    """
    await store.set("tenants", "t1", {"name": "Acme", "slug": "acme"})
    await store.set("tenants", "t2", {"name": "Globex", "slug": "globex"})

    await store.set("tenants/t1/projects", "p1", {"title": "Website"})
    await store.set("tenants/t1/projects", "p2", {"title": "Mobile App"})
    await store.set("tenants/t2/projects", "p3", {"title": "Operations"})

    await store.set("users", "u1", {"name": "Alice", "email": "alice@example.com"})
    await store.set("users", "u2", {"name": "Bob", "email": "bob@example.com"})
    await store.set(
        "users",
        "u3",
        {
            "name": "Carol",
            "email": "carol@example.com",
            "emailPreferences": {"taskAssigned": False, "dueReminders": False, "comments": False},
        },
    )
    await store.set("users", "u4", {"email": "dave@example.com", "emailPreferences": None})
    await store.set(
        "users",
        "u9",
        {"name": "Nina", "email": "nina@example.com", "emailPreferences": {"taskAssigned": False}},
    )

    await store.set(
        "tenants/t1/projects/p1/tasks",
        "task1",
        {
            "projectId": "p1",
            "title": "Fix login",
            "description": "Users cannot log in with SSO",
            "assignedTo": "u2",
            "priority": "high",
            "dueDate": TODAY_NOON,
            "status": "todo",
        },
    )
