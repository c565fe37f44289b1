"""
Notification Dispatcher

Turns trigger events into emails. Each handler walks the same states:

    RECEIVED -> GUARD_CHECKED -> RESOLVED -> FILTERED -> RENDERED -> SENT -> RECORDED

and ends in SKIPPED when a guard rejects the event or nobody is left to
notify, or FAILED on a delivery, storage or unexpected error.

Single-recipient events (invite, task assignment) stop at the first failure.
Fan-out events (comment, due-date digest) isolate failures per recipient and
keep going. No handler ever raises into the worker.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config.settings import Settings, get_settings
from datastore import DocumentStore, get_document_store

from .digest import DigestBuilder, DigestTask
from .email_provider import EmailMessage, EmailProvider, get_email_provider
from .events import DocumentCreatedEvent, DocumentUpdatedEvent, EventKind, ScheduledEvent
from .exceptions import DeliveryError, InvalidEventError
from .idempotency import InviteDeliveryTracker
from .mentions import extract_mentions
from .models import Comment, Invite, Task, Tenant, User
from .preferences import NotificationCategory, allows
from .recipients import RecipientResolver, reminder_window
from .repository import NotificationRepository
from .templates import (
    RenderedEmail,
    accept_invite_url,
    render_comment,
    render_due_reminder,
    render_invite,
    render_task_assigned,
    task_url,
)

logger = logging.getLogger(__name__)

DEFAULT_INVITER_NAME = "A team member"
DEFAULT_ACTOR_NAME = "Someone"
UNKNOWN_PROJECT = "Unknown Project"
UNKNOWN_ORGANIZATION = "Unknown Organization"
UNKNOWN_TENANT = "Unknown"
UNKNOWN_SLUG = "unknown"


class DispatchState(str, Enum):
    """Processing states of one event."""
    RECEIVED = "received"
    GUARD_CHECKED = "guard_checked"
    RESOLVED = "resolved"
    FILTERED = "filtered"
    RENDERED = "rendered"
    SENT = "sent"
    RECORDED = "recorded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DispatchResult:
    """Outcome of handling one event."""
    event: EventKind
    success: bool = True
    state: DispatchState = DispatchState.RECEIVED
    sent: int = 0
    failed: int = 0
    email_ids: List[str] = field(default_factory=list)
    error: Optional[str] = None
    skip_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event.value,
            "success": self.success,
            "state": self.state.value,
            "sent": self.sent,
            "failed": self.failed,
            "email_ids": list(self.email_ids),
            "error": self.error,
            "skip_reason": self.skip_reason,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDispatcher:
    """
    Orchestrates recipient resolution, preference filtering, rendering,
    delivery and delivery-state recording for every event kind.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        provider: Optional[EmailProvider] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = NotificationRepository(store or get_document_store())
        self._provider = provider
        self.settings = settings or get_settings()
        self.clock = clock or _utcnow

        self.resolver = RecipientResolver(self.repository)
        self.tracker = InviteDeliveryTracker(self.repository)
        self.digests = DigestBuilder(self.repository)

    @property
    def provider(self) -> EmailProvider:
        return self._provider or get_email_provider()

    @property
    def app_url(self) -> str:
        return self.settings.app_url

    async def close(self) -> None:
        """Release the document store connections opened on the current loop."""
        await self.repository.store.close()

    # =========================================================================
    # STATE HELPERS
    # =========================================================================

    @staticmethod
    def _advance(result: DispatchResult, state: DispatchState) -> None:
        logger.debug(f"[{result.event.value}] {result.state.value} -> {state.value}")
        result.state = state

    @staticmethod
    def _skip(result: DispatchResult, reason: str) -> DispatchResult:
        logger.info(f"[{result.event.value}] skipped: {reason}")
        result.state = DispatchState.SKIPPED
        result.skip_reason = reason
        result.success = True
        return result

    @staticmethod
    def _fail(result: DispatchResult, error: str) -> DispatchResult:
        result.state = DispatchState.FAILED
        result.success = False
        result.error = error
        return result

    def _deliver(self, to: str, email: RenderedEmail, kind: EventKind) -> str:
        """
        Send one rendered email.

        Returns:
            Provider message id

        Raises:
            DeliveryError: when the provider fails or reports failure
        """
        provider = self.provider
        message = EmailMessage(
            to=to,
            subject=email.subject,
            body_html=email.html,
            body_text=email.text,
            tags=[f"notification:{kind.value}"],
        )
        try:
            delivery = provider.send(message)
        except Exception as e:
            raise DeliveryError(str(e), provider=provider.provider_name) from e

        if not delivery.success:
            raise DeliveryError(
                delivery.error_message or "Email delivery failed",
                provider=delivery.provider or provider.provider_name,
                error_code=delivery.error_code,
            )

        logger.info(
            f"[{kind.value}] email sent to {to}",
            extra={"extra_data": {"message_id": delivery.message_id, "provider": delivery.provider}},
        )
        return delivery.message_id or ""

    async def _actor_name(self, user_id: Optional[str], fallback: str) -> str:
        user = await self.repository.get_user(user_id)
        return user.display_name(fallback) if user else fallback

    # =========================================================================
    # INVITES
    # =========================================================================

    async def handle_invite_created(self, event: DocumentCreatedEvent) -> DispatchResult:
        """Email a newly created pending invite, at most once per invite."""
        result = DispatchResult(event=EventKind.INVITE_CREATED)
        invite_id = None

        try:
            invite_id = event.param("inviteId")
            if event.data is None:
                return self._skip(result, "invite snapshot is empty")

            # A re-delivered event carries the original snapshot, the stored
            # document carries the delivery state written by the first run
            invite = await self.repository.get_invite(invite_id)
            if invite is None:
                invite = Invite.from_document(invite_id, event.data)

            reason = self.resolver.invite_skip_reason(invite)
            if reason:
                return self._skip(result, reason)
            self._advance(result, DispatchState.GUARD_CHECKED)

            recipient = self.resolver.invite_recipient(invite)
            inviter_name = await self._actor_name(invite.invited_by, DEFAULT_INVITER_NAME)
            tenant_name = invite.tenant_name
            if not tenant_name and invite.tenant_id:
                tenant = await self.repository.get_tenant(invite.tenant_id)
                tenant_name = tenant.name if tenant else ""
            self._advance(result, DispatchState.RESOLVED)

            # Invites are not subject to email preferences
            self._advance(result, DispatchState.FILTERED)

            email = render_invite(
                tenant_name=tenant_name or UNKNOWN_ORGANIZATION,
                inviter_name=inviter_name,
                role=invite.role,
                accept_url=accept_invite_url(self.app_url, invite_id),
                email=recipient,
                app_url=self.app_url,
                product=self.settings.name,
            )
            self._advance(result, DispatchState.RENDERED)

            try:
                email_id = self._deliver(recipient, email, result.event)
            except DeliveryError as e:
                logger.error(f"Invite {invite_id} email failed: {e}")
                await self.tracker.mark_failed(invite_id, str(e))
                result.failed = 1
                return self._fail(result, str(e))

            result.sent = 1
            result.email_ids.append(email_id)
            self._advance(result, DispatchState.SENT)

            if await self.tracker.mark_sent(invite_id, email_id):
                self._advance(result, DispatchState.RECORDED)
            return result

        except InvalidEventError as e:
            logger.error(f"Invalid invite event: {e}")
            return self._fail(result, str(e))
        except Exception as e:
            logger.exception(f"Error sending invite email for {invite_id}: {e}")
            if invite_id:
                await self.tracker.mark_failed(invite_id, str(e))
            return self._fail(result, str(e))

    # =========================================================================
    # TASK ASSIGNMENT
    # =========================================================================

    async def handle_task_updated(self, event: DocumentUpdatedEvent) -> DispatchResult:
        """Email the new assignee when a task's assignee changed."""
        result = DispatchResult(event=EventKind.TASK_UPDATED)

        try:
            tenant_id = event.param("tenantId")
            project_id = event.param("projectId")
            task_id = event.param("taskId")

            if event.after is None:
                return self._skip(result, "task was deleted")

            before = Task.from_document(task_id, event.before) if event.before is not None else None
            after = Task.from_document(task_id, event.after)

            reason = self.resolver.assignment_skip_reason(before, after)
            if reason:
                return self._skip(result, reason)
            self._advance(result, DispatchState.GUARD_CHECKED)

            assignee = await self.repository.get_user(self.resolver.task_assignment_recipient(before, after))
            if assignee is None:
                return self._skip(result, f"assignee {after.assigned_to} not found")
            if not assignee.email:
                return self._skip(result, f"assignee {assignee.id} has no email")
            self._advance(result, DispatchState.RESOLVED)

            if not allows(assignee, NotificationCategory.TASK_ASSIGNED):
                return self._skip(result, f"assignee {assignee.id} opted out of task emails")
            self._advance(result, DispatchState.FILTERED)

            project = await self.repository.get_project(tenant_id, project_id)
            tenant = await self.repository.get_tenant(tenant_id)
            assigner_name = await self._actor_name(after.updated_by, DEFAULT_ACTOR_NAME)
            slug = tenant.slug if tenant and tenant.slug else UNKNOWN_SLUG

            email = render_task_assigned(
                task_title=after.title,
                task_description=after.description,
                priority=after.priority,
                due_date=after.due_date,
                project_title=project.title if project else UNKNOWN_PROJECT,
                tenant_name=tenant.name if tenant else UNKNOWN_ORGANIZATION,
                assigner_name=assigner_name,
                task_link=task_url(self.app_url, slug, project_id, task_id),
                app_url=self.app_url,
                product=self.settings.name,
                tz=self.settings.timezone,
            )
            self._advance(result, DispatchState.RENDERED)

            try:
                email_id = self._deliver(assignee.email, email, result.event)
            except DeliveryError as e:
                logger.error(f"Task assignment email for task {task_id} failed: {e}")
                result.failed = 1
                return self._fail(result, str(e))

            result.sent = 1
            result.email_ids.append(email_id)
            self._advance(result, DispatchState.SENT)
            return result

        except InvalidEventError as e:
            logger.error(f"Invalid task event: {e}")
            return self._fail(result, str(e))
        except Exception as e:
            logger.exception(f"Error sending task assignment email: {e}")
            return self._fail(result, str(e))

    # =========================================================================
    # COMMENTS
    # =========================================================================

    async def _notify_commented(
        self,
        user_id: str,
        task: Task,
        project_title: str,
        tenant: Tenant,
        commenter_name: str,
        comment_text: str,
        link: str,
    ) -> Optional[str]:
        """Send one comment email, None when the recipient is skipped."""
        user: Optional[User] = await self.repository.get_user(user_id)
        if user is None or not user.email:
            logger.info(f"Comment recipient {user_id} not found or without email, skipping")
            return None
        if not allows(user, NotificationCategory.COMMENTS):
            logger.info(f"User {user_id} opted out of comment emails")
            return None

        email = render_comment(
            task_title=task.title,
            project_title=project_title,
            tenant_name=tenant.name,
            commenter_name=commenter_name,
            comment_text=comment_text,
            task_link=link,
            app_url=self.app_url,
            product=self.settings.name,
        )
        return self._deliver(user.email, email, EventKind.COMMENT_CREATED)

    async def handle_comment_created(self, event: DocumentCreatedEvent) -> DispatchResult:
        """Email the task assignee and every mentioned user about a new comment."""
        result = DispatchResult(event=EventKind.COMMENT_CREATED)

        try:
            tenant_id = event.param("tenantId")
            project_id = event.param("projectId")
            task_id = event.param("taskId")
            comment_id = event.param("commentId")

            if event.data is None:
                return self._skip(result, "comment snapshot is empty")
            comment = Comment.from_document(comment_id, event.data)

            task = await self.repository.get_task(tenant_id, project_id, task_id)
            if task is None:
                return self._skip(result, f"task {task_id} not found")
            self._advance(result, DispatchState.GUARD_CHECKED)

            recipients = self.resolver.comment_recipients(task, comment)
            if not recipients:
                return self._skip(result, "no recipients")
            self._advance(result, DispatchState.RESOLVED)

            project = await self.repository.get_project(tenant_id, project_id)
            tenant = await self.repository.get_tenant(tenant_id)
            if tenant is None:
                tenant = Tenant(id=tenant_id, name=UNKNOWN_TENANT, slug=UNKNOWN_SLUG)
            commenter_name = await self._actor_name(comment.created_by, DEFAULT_ACTOR_NAME)
            comment_text = extract_mentions(comment.text).display_text
            link = task_url(self.app_url, tenant.slug or UNKNOWN_SLUG, project_id, task_id)

            for user_id in recipients:
                try:
                    email_id = await self._notify_commented(
                        user_id,
                        task,
                        project.title if project else UNKNOWN_PROJECT,
                        tenant,
                        commenter_name,
                        comment_text,
                        link,
                    )
                except DeliveryError as e:
                    result.failed += 1
                    logger.error(f"Comment email to {user_id} failed: {e}")
                    continue
                except Exception as e:
                    result.failed += 1
                    logger.exception(f"Error notifying {user_id} about comment {comment_id}: {e}")
                    continue

                if email_id is not None:
                    result.sent += 1
                    result.email_ids.append(email_id)

            if result.sent == 0 and result.failed == 0:
                return self._skip(result, "all recipients filtered out")
            self._advance(result, DispatchState.SENT)
            return result

        except InvalidEventError as e:
            logger.error(f"Invalid comment event: {e}")
            return self._fail(result, str(e))
        except Exception as e:
            logger.exception(f"Error sending comment notifications: {e}")
            return self._fail(result, str(e))

    # =========================================================================
    # DUE-DATE REMINDERS
    # =========================================================================

    async def _send_digest(self, tenant: Tenant, user_id: str, tasks: List[DigestTask]) -> Optional[str]:
        """Send one user's digest for one tenant, None when the user is skipped."""
        user = await self.repository.get_user(user_id)
        if user is None or not user.email:
            logger.info(f"Digest recipient {user_id} not found or without email, skipping")
            return None
        if not allows(user, NotificationCategory.DUE_REMINDERS):
            logger.info(f"User {user_id} opted out of due-date reminders")
            return None

        email = render_due_reminder(
            user_name=user.name or "there",
            tenant_name=tenant.name,
            tenant_slug=tenant.slug or UNKNOWN_SLUG,
            tasks=tasks,
            app_url=self.app_url,
            product=self.settings.name,
        )
        email_id = self._deliver(user.email, email, EventKind.DUE_REMINDER)
        logger.info(f"Due reminder sent to {user.email} for {len(tasks)} tasks in tenant {tenant.id}")
        return email_id

    async def run_due_reminders(self, now: Optional[datetime] = None) -> DispatchResult:
        """
        Send one digest per (tenant, assignee) of tasks due today or tomorrow.

        The run fails when nothing was sent and a tenant, project query or
        delivery failed.

        Args:
            now: Reference time, defaults to the dispatcher clock
        """
        result = DispatchResult(event=EventKind.DUE_REMINDER)

        try:
            window = reminder_window(
                now or self.clock(),
                self.settings.timezone,
                self.settings.reminder_window_days,
            )
            logger.info(f"Running due-date reminders for [{window.start.isoformat()}, {window.end.isoformat()})")
            self._advance(result, DispatchState.GUARD_CHECKED)

            async for digest in self.digests.iter_tenant_digests(window):
                result.failed += digest.failures
                for user_id, tasks in digest.tasks_by_assignee.items():
                    try:
                        email_id = await self._send_digest(digest.tenant, user_id, tasks)
                    except DeliveryError as e:
                        result.failed += 1
                        logger.error(f"Due reminder to {user_id} in tenant {digest.tenant.id} failed: {e}")
                        continue
                    except Exception as e:
                        result.failed += 1
                        logger.exception(f"Error sending due reminder to {user_id}: {e}")
                        continue

                    if email_id is not None:
                        result.sent += 1
                        result.email_ids.append(email_id)

            if result.sent == 0 and result.failed == 0:
                return self._skip(result, "no due tasks to remind")
            if result.sent == 0:
                logger.error(f"Due-date reminders sent nothing, {result.failed} failures")
                return self._fail(result, f"{result.failed} digest or query failures, nothing sent")
            self._advance(result, DispatchState.SENT)
            return result

        except Exception as e:
            logger.exception(f"Error sending due date reminders: {e}")
            return self._fail(result, str(e))

    async def handle_scheduled(self, event: ScheduledEvent) -> DispatchResult:
        """Entry point for the daily timer."""
        return await self.run_due_reminders(event.scheduled_time)


def get_dispatcher() -> NotificationDispatcher:
    """Dispatcher wired to the configured document store and email provider."""
    return NotificationDispatcher()
