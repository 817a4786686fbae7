"""Domain events for the Notification aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, String


@notifications.event(part_of="Notification")
class NotificationCreated:
    """A notification was written to a recipient's in-app feed."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    notification_type: String(required=True)
    priority: String(required=True)
    title: String(required=True, max_length=255)
    entity_type: String()
    entity_id: String()
    created_by: Identifier()
    created_at: DateTime(required=True)


@notifications.event(part_of="Notification")
class NotificationRead:
    """A recipient marked a notification as read."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    read_at: DateTime(required=True)
