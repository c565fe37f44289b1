"""
Recipient Resolution

Computes who must be notified for each kind of triggering event. Every
policy is read-only over the document store and returns a de-duplicated,
ordered collection that never contains the actor of the event.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import List, Optional

from datastore import FieldFilter

from .mentions import extract_mentions
from .models import TASK_STATUS_DONE, Comment, Invite, Task
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class RelativeDay(str, Enum):
    TODAY = "today"
    TOMORROW = "tomorrow"


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ReminderWindow:
    """Half-open interval [start, end) of local midnights."""
    start: datetime
    end: datetime
    tz: tzinfo

    def contains(self, value: Optional[datetime]) -> bool:
        if value is None:
            return False
        return self.start <= _as_aware(value) < self.end

    def filters(self) -> List[FieldFilter]:
        """Range query selecting tasks due inside the window and not done."""
        return [
            FieldFilter("dueDate", ">=", self.start),
            FieldFilter("dueDate", "<", self.end),
            FieldFilter("status", "!=", TASK_STATUS_DONE),
        ]

    def is_qualifying(self, task: Task) -> bool:
        return self.contains(task.due_date) and task.status is not None and not task.is_done

    def relative_day(self, due_date: datetime) -> RelativeDay:
        """Label a due date against the local calendar day of the window start."""
        local_due = _as_aware(due_date).astimezone(self.tz).date()
        if local_due == self.start.date():
            return RelativeDay.TODAY
        return RelativeDay.TOMORROW


def reminder_window(now: datetime, tz: tzinfo, days: int = 2) -> ReminderWindow:
    """
    Window covering today and the following days in the given timezone.

    A naive ``now`` is interpreted as local time in ``tz``.
    """
    local_now = now.replace(tzinfo=tz) if now.tzinfo is None else now.astimezone(tz)
    start = datetime(local_now.year, local_now.month, local_now.day, tzinfo=tz)
    return ReminderWindow(start=start, end=start + timedelta(days=days), tz=tz)


class RecipientResolver:
    """Recipient policies per event kind."""

    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    @staticmethod
    def invite_skip_reason(invite: Invite) -> Optional[str]:
        """Why a new invite gets no email, None when it qualifies."""
        if not invite.is_pending:
            return f"invite is {invite.status or 'without status'}"
        if invite.already_sent:
            return "invite email already sent"
        if not invite.email:
            return "invite has no email address"
        return None

    def invite_recipient(self, invite: Invite) -> Optional[str]:
        """
        Target address of a new invite.

        Only pending invites whose email was not sent yet qualify.
        """
        if self.invite_skip_reason(invite) is not None:
            return None
        return invite.email

    @staticmethod
    def assignment_skip_reason(before: Optional[Task], after: Task) -> Optional[str]:
        """
        Why a task update notifies nobody, None when the assignee changed.

        Removing an assignee never notifies, and nobody is notified about
        an assignment they made themselves.
        """
        previous = before.assigned_to if before is not None else None
        if previous == after.assigned_to:
            return "assignee unchanged"
        if not after.assigned_to:
            return "assignee removed"
        if after.assigned_to == after.updated_by:
            return "task assigned by the assignee"
        return None

    def task_assignment_recipient(self, before: Optional[Task], after: Task) -> Optional[str]:
        """New assignee of a task, when the assignment changed."""
        if self.assignment_skip_reason(before, after) is not None:
            return None
        return after.assigned_to

    def comment_recipients(self, task: Task, comment: Comment) -> List[str]:
        """Task assignee plus mentioned users, excluding the comment author."""
        recipients = {}
        if task.assigned_to and task.assigned_to != comment.created_by:
            recipients[task.assigned_to] = None
        for user_id in extract_mentions(comment.text, exclude=comment.created_by).user_ids:
            recipients[user_id] = None
        return list(recipients)

    async def due_reminder_recipients(self, window: ReminderWindow) -> List[str]:
        """Every assignee the digest builder groups qualifying tasks under, across all tenants."""
        from .digest import DigestBuilder

        recipients = {}
        async for digest in DigestBuilder(self.repository).iter_tenant_digests(window):
            for user_id in digest.tasks_by_assignee:
                recipients[user_id] = None
        return list(recipients)
