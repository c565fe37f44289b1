"""
Email preference gate.

Every category is enabled unless the user stored a literal ``False`` for it.
A missing preferences object, a missing field, ``None``, ``True`` or any
other value all allow the email.
"""

from enum import Enum
from typing import Optional

from .models import EmailPreferences, User


class NotificationCategory(str, Enum):
    """Categories of email a user can opt out of."""
    TASK_ASSIGNED = "taskAssigned"
    DUE_REMINDERS = "dueReminders"
    COMMENTS = "comments"


_PREFERENCE_FIELDS = {
    NotificationCategory.TASK_ASSIGNED: "task_assigned",
    NotificationCategory.DUE_REMINDERS: "due_reminders",
    NotificationCategory.COMMENTS: "comments",
}


def preference_value(preferences: Optional[EmailPreferences], category: NotificationCategory):
    """Raw stored value for a category, None when absent."""
    if preferences is None:
        return None
    return getattr(preferences, _PREFERENCE_FIELDS[NotificationCategory(category)])


def allows(user: User, category: NotificationCategory) -> bool:
    """Check whether a user accepts emails of the given category."""
    return preference_value(user.email_preferences, category) is not False
