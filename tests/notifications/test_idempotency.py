"""Tests for invite delivery-state tracking."""

from unittest.mock import AsyncMock

import pytest

from datastore import DocumentStoreError
from notifications.idempotency import InviteDeliveryTracker

from notification_factories import FIXED_NOW


class TestInviteDeliveryTracker:
    """Tests for mark_sent / mark_failed."""

    @pytest.mark.asyncio
    async def test_mark_sent_writes_delivery_state(self, store, repository):
        await store.set("invites", "inv1", {"email": "new@example.com", "status": "pending"})
        tracker = InviteDeliveryTracker(repository)

        assert await tracker.mark_sent("inv1", "msg-123") is True

        invite = store.dump("invites")["inv1"]
        assert invite["emailSent"] is True
        assert invite["emailSentAt"] == FIXED_NOW
        assert invite["emailId"] == "msg-123"
        # Domain fields untouched
        assert invite["status"] == "pending"

    @pytest.mark.asyncio
    async def test_mark_failed_leaves_error_trail(self, store, repository):
        await store.set("invites", "inv1", {"email": "new@example.com", "status": "pending"})
        tracker = InviteDeliveryTracker(repository)

        assert await tracker.mark_failed("inv1", "Mailbox unavailable") is True

        invite = store.dump("invites")["inv1"]
        assert invite["emailError"] == "Mailbox unavailable"
        assert invite["emailAttemptedAt"] == FIXED_NOW
        assert "emailSent" not in invite

    @pytest.mark.asyncio
    async def test_missing_invite_is_reported_not_raised(self, repository):
        tracker = InviteDeliveryTracker(repository)

        assert await tracker.mark_sent("does-not-exist", "msg-1") is False
        assert await tracker.mark_failed("does-not-exist", "boom") is False

    @pytest.mark.asyncio
    async def test_store_errors_are_swallowed(self):
        repository = AsyncMock()
        repository.update_invite.side_effect = DocumentStoreError("connection reset")
        tracker = InviteDeliveryTracker(repository)

        assert await tracker.mark_sent("inv1", "msg-1") is False
        assert await tracker.mark_failed("inv1", "boom") is False
        assert repository.update_invite.await_count == 2
