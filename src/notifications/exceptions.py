"""Notification engine errors."""

from typing import Optional


class NotificationError(Exception):
    """Base class for notification failures."""


class InvalidEventError(NotificationError):
    """The trigger payload is missing required parameters."""


class DeliveryError(NotificationError):
    """The email provider rejected or failed a send."""

    def __init__(self, message: str, provider: Optional[str] = None, error_code: Optional[str] = None):
        self.provider = provider
        self.error_code = error_code
        super().__init__(message)
