"""Domain events for the DeliveryRecord aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, Integer, String


@notifications.event(part_of="DeliveryRecord")
class DeliverySucceeded:
    """A notification reached its recipient through a channel."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    notification_id: Identifier(required=True)
    channel: String(required=True)
    delivered_at: DateTime(required=True)


@notifications.event(part_of="DeliveryRecord")
class DeliveryAttemptFailed:
    """A delivery attempt through a channel failed."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    notification_id: Identifier(required=True)
    channel: String(required=True)
    error: String(required=True, max_length=1000)
    retry_count: Integer(required=True)
    failed_at: DateTime(required=True)
