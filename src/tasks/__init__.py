"""
Background Tasks Module - Celery-based notification processing.

Provides:
- Celery app configuration with Redis broker
- Notification tasks for invites, task assignment and comments
- The daily due-date reminder beat entry
"""

from .celery_app import celery_app, get_celery_app
from .notification_tasks import (
    send_comment_notification,
    send_due_date_reminders,
    send_invite_email,
    send_task_assigned_email,
)

__all__ = [
    # Celery app
    "celery_app",
    "get_celery_app",
    # Notification tasks
    "send_comment_notification",
    "send_due_date_reminders",
    "send_invite_email",
    "send_task_assigned_email",
]
