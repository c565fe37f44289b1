"""
Trigger Events

Payloads handed to the dispatcher by the trigger platform. Document events
carry the document data (or before/after data for updates) and the path
parameters of the changed document; the scheduled event carries nothing but
its fire time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import InvalidEventError


class EventKind(str, Enum):
    """Kinds of triggering events."""
    INVITE_CREATED = "invite_created"
    TASK_UPDATED = "task_updated"
    COMMENT_CREATED = "comment_created"
    DUE_REMINDER = "due_reminder"


@dataclass
class _PathEvent:
    params: Dict[str, str] = field(default_factory=dict)
    event_id: Optional[str] = None

    def param(self, name: str) -> str:
        """Required path parameter."""
        value = self.params.get(name)
        if not value:
            raise InvalidEventError(f"Missing path parameter: {name}")
        return value


@dataclass
class DocumentCreatedEvent(_PathEvent):
    """A document was created. ``data`` is None when the snapshot is empty."""
    data: Optional[Dict[str, Any]] = None


@dataclass
class DocumentUpdatedEvent(_PathEvent):
    """A document was updated; both snapshots are delivered."""
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None


@dataclass
class ScheduledEvent:
    """The daily timer fired."""
    scheduled_time: Optional[datetime] = None
    event_id: Optional[str] = None
