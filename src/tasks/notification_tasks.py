"""
Notification Background Tasks - Celery entry points of the dispatch engine.

Document events arrive with their snapshots and path parameters; the daily
reminder is started by beat. Each task returns DispatchResult.to_dict().
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from celery import shared_task

from notifications import (
    DocumentCreatedEvent,
    DocumentUpdatedEvent,
    ScheduledEvent,
    get_dispatcher,
)

logger = logging.getLogger(__name__)


def _run_async(coro):
    """
    Run an async coroutine from sync context, handling existing event loops.

    Works in Celery workers and when a task is called eagerly from async code.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    import concurrent.futures
    with concurrent.futures.ThreadPoolExecutor() as executor:
        return executor.submit(asyncio.run, coro).result()


async def _dispatch(handler: str, event) -> Any:
    """
    Run one dispatcher handler and release its store connections.

    Pooled connections are bound to the event loop that opened them, and
    every task runs on a fresh loop.
    """
    dispatcher = get_dispatcher()
    try:
        return await getattr(dispatcher, handler)(event)
    finally:
        await dispatcher.close()


@shared_task(bind=True, name="tasks.notification_tasks.send_invite_email")
def send_invite_email(self, invite_id: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Email a newly created invite.

    Args:
        invite_id: Invite document id
        data: Invite document snapshot
    """
    event = DocumentCreatedEvent(
        params={"inviteId": invite_id},
        data=data,
        event_id=self.request.id,
    )
    result = _run_async(_dispatch("handle_invite_created", event))
    return result.to_dict()


@shared_task(bind=True, name="tasks.notification_tasks.send_task_assigned_email")
def send_task_assigned_email(
    self,
    tenant_id: str,
    project_id: str,
    task_id: str,
    before: Optional[Dict[str, Any]],
    after: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """Email the new assignee of an updated task."""
    event = DocumentUpdatedEvent(
        params={"tenantId": tenant_id, "projectId": project_id, "taskId": task_id},
        before=before,
        after=after,
        event_id=self.request.id,
    )
    result = _run_async(_dispatch("handle_task_updated", event))
    return result.to_dict()


@shared_task(bind=True, name="tasks.notification_tasks.send_comment_notification")
def send_comment_notification(
    self,
    tenant_id: str,
    project_id: str,
    task_id: str,
    comment_id: str,
    data: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    """Email the assignee and mentioned users about a new comment."""
    event = DocumentCreatedEvent(
        params={
            "tenantId": tenant_id,
            "projectId": project_id,
            "taskId": task_id,
            "commentId": comment_id,
        },
        data=data,
        event_id=self.request.id,
    )
    result = _run_async(_dispatch("handle_comment_created", event))
    return result.to_dict()


@shared_task(bind=True, name="tasks.notification_tasks.send_due_date_reminders")
def send_due_date_reminders(self, now: Optional[str] = None) -> Dict[str, Any]:
    """
    Send due-date digests.

    Args:
        now: ISO timestamp overriding the current time (manual runs)
    """
    event = ScheduledEvent(
        scheduled_time=datetime.fromisoformat(now) if now else None,
        event_id=self.request.id,
    )
    result = _run_async(_dispatch("handle_scheduled", event))
    logger.info(
        f"Due-date reminders finished: sent={result.sent} failed={result.failed}",
        extra={"extra_data": result.to_dict()},
    )
    return result.to_dict()
