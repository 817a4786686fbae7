"""Notification aggregate — one entry in a user's in-app notification feed.

A notification is created exclusively by the dispatcher, once per recipient
of a domain event. After creation the only state change is read tracking:

    UNREAD → READ (mark_read, idempotent)

Removal happens only when the owning user is deleted.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from notifications.domain import notifications
from notifications.notification.events import NotificationCreated, NotificationRead
from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

TITLE_MAX_LENGTH = 255
MESSAGE_MAX_LENGTH = 1000


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    SYSTEM = "system"
    ORGANIZATION_ADDED = "organization_added"
    PROJECT_ADDED = "project_added"
    TASK_ASSIGNED = "task_assigned"
    TASK_UPDATED = "task_updated"
    TASK_COMMENT = "task_comment"
    COMMENT_MENTION = "comment_mention"
    TASK_UNASSIGNED = "task_unassigned"
    FORM_ASSIGNED = "form_assigned"
    FORM_UNASSIGNED = "form_unassigned"
    APPROVAL_REQUESTED = "approval_requested"
    APPROVAL_STATUS_CHANGED = "approval_status_changed"
    ENTITY_ASSIGNED = "entity_assigned"


class NotificationPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Higher rank is more urgent; queue consumers sort on it.
PRIORITY_RANK = {
    NotificationPriority.LOW: 0,
    NotificationPriority.MEDIUM: 1,
    NotificationPriority.HIGH: 2,
    NotificationPriority.CRITICAL: 3,
}


class EntityType(Enum):
    TASK = "task"
    FORM = "form"
    ENTRIES = "entries"
    SITE_DIARY = "site_diary"
    FORM_ENTRY = "form_entry"
    TASK_COMMENT = "task_comment"
    PROJECT = "project"
    ORGANIZATION = "organization"
    APPROVAL = "approval"
    APPROVAL_COMMENT = "approval_comment"
    APPROVAL_RESPONSE = "approval_response"


def priority_rank(priority: str) -> int:
    return PRIORITY_RANK[NotificationPriority(priority)]


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifications.aggregate
class Notification:
    """A message in a user's in-app feed, optionally linked to the entity it is about."""

    # Recipient
    recipient_id: Identifier(required=True)

    # Classification
    notification_type: String(choices=NotificationType, required=True)
    priority: String(choices=NotificationPriority, default=NotificationPriority.MEDIUM.value)

    # Content
    title: String(max_length=TITLE_MAX_LENGTH, required=True)
    message: String(max_length=MESSAGE_MAX_LENGTH, required=True)
    context_data: Text()  # JSON payload that channel senders render from

    # Source entity linkage
    entity_type: String(choices=EntityType)
    entity_id: String(max_length=255)

    # Read state
    is_read: Boolean(default=False)
    read_at: DateTime()

    # Attribution (None for system-originated notifications)
    created_by: Identifier()

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def title_and_message_must_not_be_blank(self):
        if self.title is not None and not self.title.strip():
            raise ValidationError({"title": ["Title cannot be blank"]})
        if self.message is not None and not self.message.strip():
            raise ValidationError({"message": ["Message cannot be blank"]})

    @invariant.post
    def entity_linkage_is_all_or_nothing(self):
        if bool(self.entity_type) != bool(self.entity_id):
            raise ValidationError({"entity_type": ["entity_type and entity_id must be set together"]})

    @invariant.post
    def read_flag_matches_read_timestamp(self):
        if bool(self.is_read) != (self.read_at is not None):
            raise ValidationError({"read_at": ["A read notification must carry a read timestamp, and only then"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        recipient_id,
        notification_type,
        title,
        message,
        context_data=None,
        entity_type=None,
        entity_id=None,
        priority=NotificationPriority.MEDIUM.value,
        created_by=None,
    ):
        """Create an unread notification and raise NotificationCreated."""
        if not recipient_id:
            raise ValidationError({"recipient_id": ["Recipient is required"]})

        now = datetime.now(UTC)

        notification = cls(
            recipient_id=recipient_id,
            notification_type=notification_type,
            priority=priority or NotificationPriority.MEDIUM.value,
            title=title,
            message=message,
            context_data=context_data,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id else None,
            is_read=False,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                recipient_id=str(recipient_id),
                notification_type=notification.notification_type,
                priority=notification.priority,
                title=notification.title,
                entity_type=notification.entity_type,
                entity_id=notification.entity_id,
                created_by=str(created_by) if created_by else None,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # Read state
    # -------------------------------------------------------------------
    def mark_read(self, read_at=None):
        """Mark as read. Returns False when the notification was already read."""
        if self.is_read:
            return False

        now = read_at or datetime.now(UTC)
        with atomic_change(self):
            self.is_read = True
            self.read_at = now
            self.updated_at = now

        self.raise_(
            NotificationRead(
                notification_id=str(self.id),
                recipient_id=str(self.recipient_id),
                read_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Query helpers
    # -------------------------------------------------------------------
    def context(self) -> dict:
        """Return the decoded context payload."""
        return json.loads(self.context_data) if self.context_data else {}
