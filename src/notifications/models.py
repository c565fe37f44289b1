"""
Notification Domain Documents

Pydantic models over the documents the web client writes. Documents use
camelCase field names; models expose snake_case attributes with camelCase
aliases so either form can be validated.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskPriority(str, Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InviteStatus(str, Enum):
    """Lifecycle of a tenant invite."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REVOKED = "revoked"
    EXPIRED = "expired"


TASK_STATUS_DONE = "done"


class Document(BaseModel):
    """Base class for store documents."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        use_enum_values=True,
    )

    id: str = ""

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]):
        """Build a model from a document id and its stored fields."""
        return cls.model_validate({**data, "id": doc_id})


class Tenant(Document):
    name: str = ""
    slug: str = ""


class Project(Document):
    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    title: str = ""


class Task(Document):
    project_id: Optional[str] = Field(default=None, alias="projectId")
    title: str = ""
    description: Optional[str] = None
    assigned_to: Optional[str] = Field(default=None, alias="assignedTo")
    # Kept as stored; unknown values fall back to medium when rendered
    priority: Optional[str] = TaskPriority.MEDIUM.value
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")
    status: Optional[str] = None
    updated_by: Optional[str] = Field(default=None, alias="updatedBy")

    @property
    def is_done(self) -> bool:
        return self.status == TASK_STATUS_DONE


class Comment(Document):
    task_id: Optional[str] = Field(default=None, alias="taskId")
    text: str = ""
    created_by: Optional[str] = Field(default=None, alias="createdBy")

    @field_validator("text", mode="before")
    @classmethod
    def none_text_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class Invite(Document):
    tenant_id: Optional[str] = Field(default=None, alias="tenantId")
    email: str = ""
    role: str = ""
    tenant_name: str = Field(default="", alias="tenantName")
    invited_by: Optional[str] = Field(default=None, alias="invitedBy")
    status: Optional[str] = None
    email_sent: Any = Field(default=False, alias="emailSent")
    email_sent_at: Optional[datetime] = Field(default=None, alias="emailSentAt")
    email_id: Optional[str] = Field(default=None, alias="emailId")
    email_error: Optional[str] = Field(default=None, alias="emailError")
    email_attempted_at: Optional[datetime] = Field(default=None, alias="emailAttemptedAt")

    @property
    def is_pending(self) -> bool:
        return self.status == InviteStatus.PENDING.value

    @property
    def already_sent(self) -> bool:
        return bool(self.email_sent)


class EmailPreferences(BaseModel):
    """
    Per-user email opt-outs.

    Values are kept untyped. Only a literal ``False`` disables a category;
    ``"no"`` or ``0`` must not be coerced into ``False``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    task_assigned: Any = Field(default=None, alias="taskAssigned")
    due_reminders: Any = Field(default=None, alias="dueReminders")
    comments: Any = None


class User(Document):
    name: Optional[str] = None
    email: str = ""
    email_preferences: Optional[EmailPreferences] = Field(default=None, alias="emailPreferences")

    @field_validator("email_preferences", mode="before")
    @classmethod
    def ignore_malformed_preferences(cls, value: Any) -> Any:
        if isinstance(value, (dict, EmailPreferences)):
            return value
        return None

    def display_name(self, fallback: str) -> str:
        """Name, else email, else the given fallback."""
        return self.name or self.email or fallback
