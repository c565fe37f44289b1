"""Tests for notification email rendering."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from notifications.digest import DigestTask
from notifications.recipients import RelativeDay
from notifications.templates import (
    COMMENT_PREVIEW_LENGTH,
    PRIORITY_COLORS,
    accept_invite_url,
    format_due_date,
    render_comment,
    render_due_reminder,
    render_invite,
    render_task_assigned,
    task_url,
    truncate,
)

APP_URL = "https://app.test"


def task_kwargs(**overrides):
    kwargs = dict(
        task_title="Fix login",
        task_description="Users cannot log in",
        priority="high",
        due_date=None,
        project_title="Website",
        tenant_name="Acme",
        assigner_name="Alice",
        task_link=task_url(APP_URL, "acme", "p1", "task1"),
        app_url=APP_URL,
    )
    kwargs.update(overrides)
    return kwargs


def digest_task(task_id, relative_day, title=None):
    return DigestTask(
        task_id=task_id,
        title=title or task_id.title(),
        project_id="p1",
        project_title="Website",
        due_date=datetime(2026, 3, 10, 11, 0, tzinfo=timezone.utc),
        status="todo",
        relative_day=relative_day,
    )


class TestLinks:

    def test_accept_invite_url(self):
        assert accept_invite_url(APP_URL, "inv1") == "https://app.test/accept-invite?token=inv1"

    def test_task_url(self):
        assert task_url(APP_URL, "acme", "p1", "t9") == "https://app.test/t/acme/projects/p1?task=t9"


class TestHelpers:

    def test_truncate(self):
        assert truncate("short", 10) == "short"
        assert truncate("abcdefghij", 10) == "abcdefghij"
        assert truncate("abcdefghijk", 10) == "abcdefghij..."

    def test_format_due_date(self):
        assert format_due_date(datetime(2026, 3, 5)) == "Thu, Mar 5"

    def test_format_due_date_on_local_calendar(self):
        late_utc = datetime(2026, 3, 5, 23, 30, tzinfo=timezone.utc)

        assert format_due_date(late_utc) == "Thu, Mar 5"
        assert format_due_date(late_utc, ZoneInfo("Europe/Luxembourg")) == "Fri, Mar 6"
        assert format_due_date(datetime(2026, 3, 5, 23, 30), ZoneInfo("Europe/Luxembourg")) == "Fri, Mar 6"


class TestInvite:

    def test_subject_and_role(self):
        email = render_invite(
            tenant_name="Acme",
            inviter_name="Alice",
            role="admin",
            accept_url=accept_invite_url(APP_URL, "inv1"),
            email="new@example.com",
            app_url=APP_URL,
        )

        assert email.subject == "You're invited to join Acme on Yetwork"
        assert "as a Admin on Yetwork" in email.text
        assert "expires in 7 days" in email.text
        assert 'href="https://app.test/accept-invite?token=inv1"' in email.html

    def test_custom_product_name(self):
        email = render_invite(
            tenant_name="Acme",
            inviter_name="Alice",
            role="member",
            accept_url="https://x.test/accept-invite?token=1",
            email="new@example.com",
            app_url="https://x.test",
            product="Taskboard",
        )

        assert email.subject == "You're invited to join Acme on Taskboard"

    def test_html_escapes_names(self):
        email = render_invite(
            tenant_name="<b>Acme</b>",
            inviter_name="Eve & Co",
            role="member",
            accept_url="https://app.test/accept-invite?token=1",
            email="new@example.com",
            app_url=APP_URL,
        )

        assert "&lt;b&gt;Acme&lt;/b&gt;" in email.html
        assert "Eve &amp; Co" in email.html
        assert "<b>Acme</b>" not in email.html


class TestTaskAssigned:

    def test_subject(self):
        email = render_task_assigned(**task_kwargs())

        assert email.subject == "Task assigned: Fix login"
        assert "Alice assigned you a task in Acme" in email.text

    @pytest.mark.parametrize("priority", ["high", "medium", "low"])
    def test_priority_color(self, priority):
        email = render_task_assigned(**task_kwargs(priority=priority))

        assert PRIORITY_COLORS[priority] in email.html
        assert f"{priority.capitalize()} Priority" in email.html

    @pytest.mark.parametrize("priority", [None, "urgent"])
    def test_unknown_priority_falls_back_to_medium(self, priority):
        email = render_task_assigned(**task_kwargs(priority=priority))

        assert "Medium Priority" in email.html
        assert PRIORITY_COLORS["medium"] in email.html

    def test_long_description_truncated(self):
        email = render_task_assigned(**task_kwargs(task_description="x" * 300))

        assert "x" * 200 + "..." in email.html
        assert "x" * 201 not in email.html

    def test_due_date_shown(self):
        email = render_task_assigned(**task_kwargs(due_date=datetime(2026, 3, 10, 11, 0)))

        assert "Due Tue, Mar 10" in email.html

    def test_no_description_no_due_date(self):
        email = render_task_assigned(**task_kwargs(task_description=None, due_date=None))

        assert "Due " not in email.html


class TestComment:

    def test_subject_and_body(self):
        email = render_comment(
            task_title="Fix login",
            project_title="Website",
            tenant_name="Acme",
            commenter_name="Alice",
            comment_text="Bob can you look?",
            task_link=task_url(APP_URL, "acme", "p1", "task1"),
            app_url=APP_URL,
        )

        assert email.subject == "New comment on: Fix login"
        assert "Alice commented:" in email.text
        assert "Bob can you look?" in email.html

    def test_html_preview_truncated_text_body_complete(self):
        comment = "y" * (COMMENT_PREVIEW_LENGTH + 50)

        email = render_comment(
            task_title="Fix login",
            project_title="Website",
            tenant_name="Acme",
            commenter_name="Alice",
            comment_text=comment,
            task_link=task_url(APP_URL, "acme", "p1", "task1"),
            app_url=APP_URL,
        )

        assert "y" * COMMENT_PREVIEW_LENGTH + "..." in email.html
        assert comment in email.text


class TestDueReminder:

    def test_plural_subject(self):
        email = render_due_reminder(
            user_name="Bob",
            tenant_name="Acme",
            tenant_slug="acme",
            tasks=[digest_task("a1", RelativeDay.TODAY), digest_task("a2", RelativeDay.TOMORROW)],
            app_url=APP_URL,
        )

        assert email.subject == "2 tasks due soon in Acme"
        assert "- A1 (Website) - Due Today" in email.text
        assert "- A2 (Website) - Due Tomorrow" in email.text
        assert "https://app.test/t/acme/projects/p1?task=a1" in email.html
        assert 'href="https://app.test/t/acme"' in email.html

    def test_singular_subject(self):
        email = render_due_reminder(
            user_name="Bob",
            tenant_name="Acme",
            tenant_slug="acme",
            tasks=[digest_task("a1", RelativeDay.TOMORROW)],
            app_url=APP_URL,
        )

        assert email.subject == "1 task due soon in Acme"
        assert "you have 1 task due soon" in email.html

    def test_task_titles_escaped(self):
        email = render_due_reminder(
            user_name="Bob",
            tenant_name="Acme",
            tenant_slug="acme",
            tasks=[digest_task("a1", RelativeDay.TODAY, title="<img src=x>")],
            app_url=APP_URL,
        )

        assert "<img src=x>" not in email.html
        assert "&lt;img src=x&gt;" in email.html
