"""
Email Templates

Subject, HTML and plain-text bodies for every notification email. User
supplied content is HTML-escaped in the HTML bodies only.
"""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from html import escape
from typing import List, Optional

from .digest import DigestTask

PRIORITY_COLORS = {
    "high": "#ef4444",
    "medium": "#f59e0b",
    "low": "#22c55e",
}

DESCRIPTION_PREVIEW_LENGTH = 200
COMMENT_PREVIEW_LENGTH = 500
INVITE_EXPIRY_DAYS = 7


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def accept_invite_url(app_url: str, invite_id: str) -> str:
    return f"{app_url}/accept-invite?token={invite_id}"


def tenant_url(app_url: str, tenant_slug: str) -> str:
    return f"{app_url}/t/{tenant_slug}"


def task_url(app_url: str, tenant_slug: str, project_id: str, task_id: str) -> str:
    return f"{tenant_url(app_url, tenant_slug)}/projects/{project_id}?task={task_id}"


def truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def format_due_date(due_date: datetime, tz: Optional[tzinfo] = None) -> str:
    """
    e.g. 'Mon, Jan 5', on the calendar of ``tz`` when given.

    Naive datetimes are taken as UTC.
    """
    if tz is not None:
        if due_date.tzinfo is None:
            due_date = due_date.replace(tzinfo=timezone.utc)
        due_date = due_date.astimezone(tz)
    return f"{due_date:%a, %b} {due_date.day}"


def _layout(content: str, app_url: str, product: str) -> str:
    return f"""
<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="margin: 0; padding: 0; font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background-color: #f3f4f6;">
<div style="max-width: 600px; margin: 40px auto; padding: 32px; background: #ffffff; border-radius: 12px;">
{content}
</div>
<p style="text-align: center; font-size: 12px; color: #9ca3af;">
    {escape(product)} &middot; <a href="{app_url}" style="color: #2563eb;">{escape(app_url)}</a>
</p>
</body>
</html>
    """.strip()


def _button(url: str, label: str) -> str:
    return (
        f'<div style="text-align: center; margin: 24px 0;">'
        f'<a href="{escape(url)}" style="display: inline-block; padding: 12px 24px; '
        f'background-color: #2563eb; color: #ffffff; text-decoration: none; '
        f'font-weight: 600; border-radius: 6px;">{label}</a></div>'
    )


def render_invite(
    *,
    tenant_name: str,
    inviter_name: str,
    role: str,
    accept_url: str,
    email: str,
    app_url: str,
    product: str = "Yetwork",
) -> RenderedEmail:
    """Invitation to join a tenant."""
    role_name = role[:1].upper() + role[1:]

    subject = f"You're invited to join {tenant_name} on {product}"

    content = f"""
<h1 style="margin: 0; font-size: 24px; color: #111827;">You're invited to join</h1>
<h2 style="margin: 8px 0 24px; font-size: 28px; color: #2563eb;">{escape(tenant_name)}</h2>
<p>Hi there,</p>
<p><strong>{escape(inviter_name)}</strong> has invited you to join <strong>{escape(tenant_name)}</strong>
as a <strong>{escape(role_name)}</strong> on {escape(product)}.</p>
{_button(accept_url, "Accept Invitation")}
<p style="font-size: 14px; color: #6b7280;">Or copy and paste this link into your browser:<br>{escape(accept_url)}</p>
<hr style="border: none; border-top: 1px solid #e5e7eb;">
<p style="font-size: 12px; color: #9ca3af;">This invitation was sent to {escape(email)}.
If you didn't expect this email, you can safely ignore it.
This invitation expires in {INVITE_EXPIRY_DAYS} days.</p>
    """

    text = f"""
You're invited to join {tenant_name}

Hi there,

{inviter_name} has invited you to join {tenant_name} as a {role_name} on {product}.

Accept your invitation by clicking the link below:
{accept_url}

This invitation expires in {INVITE_EXPIRY_DAYS} days.

---
{product} ({app_url})
    """.strip()

    return RenderedEmail(subject=subject, html=_layout(content, app_url, product), text=text)


def render_task_assigned(
    *,
    task_title: str,
    task_description: Optional[str],
    priority: Optional[str],
    due_date: Optional[datetime],
    project_title: str,
    tenant_name: str,
    assigner_name: str,
    task_link: str,
    app_url: str,
    product: str = "Yetwork",
    tz: Optional[tzinfo] = None,
) -> RenderedEmail:
    """A task was assigned to the recipient."""
    priority = priority if priority in PRIORITY_COLORS else "medium"
    color = PRIORITY_COLORS[priority]

    description_html = ""
    if task_description:
        description_html = (
            f'<p style="font-size: 14px; color: #6b7280;">'
            f"{escape(truncate(task_description, DESCRIPTION_PREVIEW_LENGTH))}</p>"
        )
    due_html = ""
    if due_date:
        due_html = f'<span style="font-size: 12px; color: #6b7280;">Due {format_due_date(due_date, tz)}</span>'

    content = f"""
<p style="font-size: 14px; color: #6b7280;">{escape(tenant_name)} &middot; {escape(project_title)}</p>
<h1 style="font-size: 20px; color: #111827;">Task Assigned to You</h1>
<p><strong>{escape(assigner_name)}</strong> assigned you a task:</p>
<div style="background-color: #f9fafb; border-radius: 8px; padding: 20px;">
    <h2 style="margin: 0 0 8px; font-size: 18px;">{escape(task_title)}</h2>
    {description_html}
    <span style="font-size: 12px; color: {color}; font-weight: 500;">&#9679; {priority.capitalize()} Priority</span>
    {due_html}
</div>
{_button(task_link, "View Task")}
    """

    text = f"""
Task Assigned to You

{assigner_name} assigned you a task in {tenant_name}:

{task_title}
Project: {project_title}

View task: {task_link}

---
{product} ({app_url})
    """.strip()

    return RenderedEmail(
        subject=f"Task assigned: {task_title}",
        html=_layout(content, app_url, product),
        text=text,
    )


def render_comment(
    *,
    task_title: str,
    project_title: str,
    tenant_name: str,
    commenter_name: str,
    comment_text: str,
    task_link: str,
    app_url: str,
    product: str = "Yetwork",
) -> RenderedEmail:
    """A comment was added to a task the recipient follows or was mentioned in."""
    content = f"""
<p style="font-size: 14px; color: #6b7280;">{escape(tenant_name)} &middot; {escape(project_title)}</p>
<h1 style="font-size: 20px; color: #111827;">New Comment on "{escape(task_title)}"</h1>
<div style="background-color: #f9fafb; border-left: 3px solid #2563eb; padding: 16px;">
    <p style="margin: 0 0 8px; font-weight: 600;">{escape(commenter_name)}</p>
    <p style="margin: 0; white-space: pre-wrap;">{escape(truncate(comment_text, COMMENT_PREVIEW_LENGTH))}</p>
</div>
{_button(task_link, "View Conversation")}
    """

    text = f"""
New Comment on "{task_title}"

{commenter_name} commented:

{comment_text}

View conversation: {task_link}

---
{product} ({app_url})
    """.strip()

    return RenderedEmail(
        subject=f"New comment on: {task_title}",
        html=_layout(content, app_url, product),
        text=text,
    )


def _due_label(task: DigestTask) -> str:
    return "Due Today" if task.is_due_today else "Due Tomorrow"


def render_due_reminder(
    *,
    user_name: str,
    tenant_name: str,
    tenant_slug: str,
    tasks: List[DigestTask],
    app_url: str,
    product: str = "Yetwork",
) -> RenderedEmail:
    """Digest of tasks due today or tomorrow in one tenant."""
    count = len(tasks)
    plural = "s" if count > 1 else ""

    rows = []
    for task in tasks:
        link = task_url(app_url, tenant_slug, task.project_id, task.task_id)
        color = "#ef4444" if task.is_due_today else "#f59e0b"
        rows.append(
            f'<tr><td style="padding: 12px; border-bottom: 1px solid #e5e7eb;">'
            f'<a href="{escape(link)}" style="color: #2563eb; text-decoration: none;">{escape(task.title)}</a>'
            f'<p style="margin: 4px 0 0; font-size: 12px; color: #6b7280;">{escape(task.project_title)}</p></td>'
            f'<td style="padding: 12px; border-bottom: 1px solid #e5e7eb; text-align: right; '
            f'font-size: 12px; color: {color};">{_due_label(task)}</td></tr>'
        )

    content = f"""
<h1 style="font-size: 20px; color: #111827;">Tasks Due Soon</h1>
<p>Hi {escape(user_name)}, you have {count} task{plural} due soon in {escape(tenant_name)}.</p>
<table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="border: 1px solid #e5e7eb;">
    <tbody>{"".join(rows)}</tbody>
</table>
{_button(tenant_url(app_url, tenant_slug), "View All Tasks")}
    """

    task_list = "\n".join(
        f"- {task.title} ({task.project_title}) - {_due_label(task)}" for task in tasks
    )
    text = f"""
Tasks Due Soon in {tenant_name}

{task_list}

---
{product} ({app_url})
    """.strip()

    return RenderedEmail(
        subject=f"{count} task{plural} due soon in {tenant_name}",
        html=_layout(content, app_url, product),
        text=text,
    )
