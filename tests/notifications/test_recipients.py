"""
Tests for recipient resolution.

Tests:
- Invite guards
- Task assignment change detection
- Comment recipient union
- Reminder window boundaries and due-reminder recipients
"""

from datetime import datetime, timezone
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest

from datastore import DocumentStoreError
from notifications.models import Comment, Invite, Task
from notifications.recipients import RecipientResolver, RelativeDay, reminder_window

from notification_factories import FIXED_NOW, IN_THREE_DAYS, TODAY_NOON, TOMORROW_NOON, YESTERDAY_NOON

LUX = ZoneInfo("Europe/Luxembourg")


def make_invite(**fields):
    data = {"email": "new@example.com", "role": "member", "status": "pending", **fields}
    return Invite.from_document("inv1", data)


def make_task(**fields):
    return Task.from_document("task1", {"title": "Fix login", **fields})


@pytest.fixture
def resolver():
    return RecipientResolver(repository=None)


class TestInviteRecipient:
    """Tests for the invite guard."""

    def test_pending_unsent_invite(self, resolver):
        assert resolver.invite_recipient(make_invite()) == "new@example.com"

    @pytest.mark.parametrize("status", ["accepted", "declined", "revoked", "expired", None])
    def test_non_pending_invite(self, resolver, status):
        invite = make_invite(status=status)

        assert resolver.invite_recipient(invite) is None
        assert resolver.invite_skip_reason(invite) is not None

    def test_already_sent_invite(self, resolver):
        invite = make_invite(emailSent=True)

        assert resolver.invite_recipient(invite) is None
        assert resolver.invite_skip_reason(invite) == "invite email already sent"

    def test_invite_without_email(self, resolver):
        assert resolver.invite_recipient(make_invite(email="")) is None


class TestTaskAssignmentRecipient:
    """Tests for assignee change detection."""

    def test_new_assignee(self, resolver):
        before = make_task(assignedTo=None)
        after = make_task(assignedTo="u2", updatedBy="u1")

        assert resolver.task_assignment_recipient(before, after) == "u2"

    def test_reassignment(self, resolver):
        before = make_task(assignedTo="u2")
        after = make_task(assignedTo="u4", updatedBy="u1")

        assert resolver.task_assignment_recipient(before, after) == "u4"

    def test_unchanged_assignee(self, resolver):
        before = make_task(assignedTo="u2", title="Old title")
        after = make_task(assignedTo="u2", title="New title", updatedBy="u1")

        assert resolver.task_assignment_recipient(before, after) is None
        assert resolver.assignment_skip_reason(before, after) == "assignee unchanged"

    @pytest.mark.parametrize("new_value", [None, ""])
    def test_assignee_removed(self, resolver, new_value):
        before = make_task(assignedTo="u2")
        after = make_task(assignedTo=new_value, updatedBy="u1")

        assert resolver.task_assignment_recipient(before, after) is None

    def test_self_assignment(self, resolver):
        before = make_task(assignedTo=None)
        after = make_task(assignedTo="u1", updatedBy="u1")

        assert resolver.task_assignment_recipient(before, after) is None

    def test_missing_before_snapshot(self, resolver):
        after = make_task(assignedTo="u2", updatedBy="u1")

        assert resolver.task_assignment_recipient(None, after) == "u2"


class TestCommentRecipients:
    """Tests for the comment recipient union."""

    def test_assignee_and_mentions(self, resolver):
        task = make_task(assignedTo="u2")
        comment = Comment.from_document("c1", {"text": "cc @[Carol](u3)", "createdBy": "u1"})

        assert resolver.comment_recipients(task, comment) == ["u2", "u3"]

    def test_assignee_mentioned_twice_notified_once(self, resolver):
        task = make_task(assignedTo="u2")
        comment = Comment.from_document(
            "c1", {"text": "@[Bob](u2) and again @[Bob](u2)", "createdBy": "u1"}
        )

        assert resolver.comment_recipients(task, comment) == ["u2"]

    def test_author_never_notified(self, resolver):
        task = make_task(assignedTo="u1")
        comment = Comment.from_document(
            "c1", {"text": "reminder for me @[Alice](u1) and @[Bob](u2)", "createdBy": "u1"}
        )

        recipients = resolver.comment_recipients(task, comment)

        assert "u1" not in recipients
        assert recipients == ["u2"]

    def test_unassigned_task_without_mentions(self, resolver):
        task = make_task()
        comment = Comment.from_document("c1", {"text": "looks good", "createdBy": "u1"})

        assert resolver.comment_recipients(task, comment) == []


class TestReminderWindow:
    """Tests for the local-midnight reminder window."""

    def test_window_covers_today_and_tomorrow(self):
        window = reminder_window(FIXED_NOW, LUX)

        assert window.start == datetime(2026, 3, 10, tzinfo=LUX)
        assert window.end == datetime(2026, 3, 12, tzinfo=LUX)

    def test_boundaries(self):
        window = reminder_window(FIXED_NOW, LUX)

        # 00:30 local on the 10th is still "today"
        assert window.contains(datetime(2026, 3, 9, 23, 30, tzinfo=timezone.utc))
        assert not window.contains(datetime(2026, 3, 9, 22, 59, tzinfo=timezone.utc))
        # Local midnight two days out is excluded
        assert not window.contains(datetime(2026, 3, 11, 23, 0, tzinfo=timezone.utc))
        assert not window.contains(None)

    def test_window_follows_local_date_late_in_the_evening(self):
        # 23:30 UTC on the 9th is already the 10th in Luxembourg
        window = reminder_window(datetime(2026, 3, 9, 23, 30, tzinfo=timezone.utc), LUX)

        assert window.start.date().isoformat() == "2026-03-10"

    def test_naive_now_is_local_time(self):
        window = reminder_window(datetime(2026, 3, 10, 8, 0), LUX)

        assert window.start == datetime(2026, 3, 10, tzinfo=LUX)

    def test_relative_day(self):
        window = reminder_window(FIXED_NOW, LUX)

        assert window.relative_day(TODAY_NOON) == RelativeDay.TODAY
        assert window.relative_day(TOMORROW_NOON) == RelativeDay.TOMORROW
        # 23:30 UTC on the 10th is the 11th locally
        assert window.relative_day(datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc)) == RelativeDay.TOMORROW

    def test_qualifying_task(self):
        window = reminder_window(FIXED_NOW, LUX)

        assert window.is_qualifying(make_task(dueDate=TODAY_NOON, status="todo"))
        assert not window.is_qualifying(make_task(dueDate=TODAY_NOON, status="done"))
        assert not window.is_qualifying(make_task(dueDate=TODAY_NOON))
        assert not window.is_qualifying(make_task(dueDate=YESTERDAY_NOON, status="todo"))
        assert not window.is_qualifying(make_task(dueDate=IN_THREE_DAYS, status="todo"))
        assert not window.is_qualifying(make_task(status="todo"))

    def test_custom_window_length(self):
        window = reminder_window(FIXED_NOW, LUX, days=1)

        assert window.contains(TODAY_NOON)
        assert not window.contains(TOMORROW_NOON)


class TestDueReminderRecipients:
    """Tests for due reminder recipients across tenants."""

    @pytest.mark.asyncio
    async def test_collects_assignees_across_tenants(self, seeded_store, repository):
        tasks = "tenants/t2/projects/p3/tasks"
        await seeded_store.set(tasks, "x1", {"title": "Audit", "assignedTo": "u4", "dueDate": TOMORROW_NOON, "status": "todo"})
        await seeded_store.set(tasks, "x2", {"title": "Done", "assignedTo": "u1", "dueDate": TOMORROW_NOON, "status": "done"})
        await seeded_store.set(tasks, "x3", {"title": "Later", "assignedTo": "u1", "dueDate": IN_THREE_DAYS, "status": "todo"})
        await seeded_store.set(tasks, "x4", {"title": "Nobody", "dueDate": TODAY_NOON, "status": "todo"})

        recipients = await RecipientResolver(repository).due_reminder_recipients(
            reminder_window(FIXED_NOW, LUX)
        )

        assert sorted(recipients) == ["u2", "u4"]

    @pytest.mark.asyncio
    async def test_failing_project_does_not_hide_other_assignees(self, seeded_store, repository):
        await seeded_store.set(
            "tenants/t2/projects/p3/tasks",
            "x1",
            {"title": "Audit", "assignedTo": "u4", "dueDate": TOMORROW_NOON, "status": "todo"},
        )
        original = repository.query_tasks

        async def flaky_query(tenant_id, project_id, filters=()):
            if project_id == "p1":
                raise DocumentStoreError("index missing")
            return await original(tenant_id, project_id, filters)

        with patch.object(repository, "query_tasks", side_effect=flaky_query):
            recipients = await RecipientResolver(repository).due_reminder_recipients(
                reminder_window(FIXED_NOW, LUX)
            )

        assert recipients == ["u4"]
