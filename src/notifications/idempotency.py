"""
Invite Delivery Tracking

Invites carry their own delivery state (emailSent, emailSentAt, emailId,
emailError, emailAttemptedAt). Recording it is what keeps a re-delivered
creation event from sending the invitation twice.

Writes are best-effort. When marking a send fails the email has already
gone out, so the failure is logged and reported but never raised.

There is no transaction between delivery and the state write: a crash in
between leaves emailSent unset after a successful send, and a retried event
will send again. Task, comment and reminder emails have no persistent guard
at all and rely on the trigger platform delivering each event once.
"""

import logging

from datastore import SERVER_TIMESTAMP

from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class InviteDeliveryTracker:
    """Records email delivery outcome on invite documents."""

    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    async def mark_sent(self, invite_id: str, delivery_id: str) -> bool:
        """
        Record a successful send.

        Args:
            invite_id: Invite document id
            delivery_id: Message id returned by the email provider

        Returns:
            True if the state was written
        """
        try:
            await self.repository.update_invite(
                invite_id,
                {
                    "emailSent": True,
                    "emailSentAt": SERVER_TIMESTAMP,
                    "emailId": delivery_id,
                },
            )
            return True
        except Exception as e:
            logger.error(
                f"Invite {invite_id} email was sent but marking it failed: {e}",
                extra={"extra_data": {"invite_id": invite_id, "email_id": delivery_id}},
            )
            return False

    async def mark_failed(self, invite_id: str, error_message: str) -> bool:
        """
        Leave an inspectable error trail on the invite.

        Returns:
            True if the state was written
        """
        try:
            await self.repository.update_invite(
                invite_id,
                {
                    "emailError": error_message,
                    "emailAttemptedAt": SERVER_TIMESTAMP,
                },
            )
            return True
        except Exception as e:
            logger.error(f"Could not record email failure on invite {invite_id}: {e}")
            return False
