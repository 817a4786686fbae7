"""Domain events for the EmailQueueItem and PushQueueItem aggregates."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, Integer, String


# ---------------------------------------------------------------------------
# Email queue
# ---------------------------------------------------------------------------
@notifications.event(part_of="EmailQueueItem")
class EmailQueued:
    """An email was queued for an external sender."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier()
    recipient_id: Identifier(required=True)
    to_email: String(required=True, max_length=254)
    priority: String(required=True)
    scheduled_for: DateTime(required=True)
    queued_at: DateTime(required=True)


@notifications.event(part_of="EmailQueueItem")
class EmailSent:
    """The sender reported the email as sent."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier()
    sent_at: DateTime(required=True)


@notifications.event(part_of="EmailQueueItem")
class EmailFailed:
    """A send attempt failed; the item can be retried."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier()
    error: String(required=True, max_length=1000)
    retry_count: Integer(required=True)
    failed_at: DateTime(required=True)


@notifications.event(part_of="EmailQueueItem")
class EmailExhausted:
    """A send attempt failed with the retry budget spent; the item is dead-lettered."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier()
    error: String(required=True, max_length=1000)
    retry_count: Integer(required=True)
    exhausted_at: DateTime(required=True)


@notifications.event(part_of="EmailQueueItem")
class EmailRequeued:
    """A failed email went back to pending with backoff."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier()
    retry_count: Integer(required=True)
    scheduled_for: DateTime(required=True)


# ---------------------------------------------------------------------------
# Push queue
# ---------------------------------------------------------------------------
@notifications.event(part_of="PushQueueItem")
class PushQueued:
    """A push message was queued for one device."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    device_id: Identifier(required=True)
    platform: String(required=True)
    priority: String(required=True)
    scheduled_for: DateTime(required=True)
    queued_at: DateTime(required=True)


@notifications.event(part_of="PushQueueItem")
class PushDelivered:
    """The sender reported the push message as delivered."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier(required=True)
    delivered_at: DateTime(required=True)


@notifications.event(part_of="PushQueueItem")
class PushFailed:
    """A push attempt failed; the item can be retried."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier(required=True)
    error: String(required=True, max_length=1000)
    retry_count: Integer(required=True)
    failed_at: DateTime(required=True)


@notifications.event(part_of="PushQueueItem")
class PushExhausted:
    """A push attempt failed with the retry budget spent; the item is dead-lettered."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier(required=True)
    error: String(required=True, max_length=1000)
    retry_count: Integer(required=True)
    exhausted_at: DateTime(required=True)


@notifications.event(part_of="PushQueueItem")
class PushRequeued:
    """A failed push went back to pending with backoff."""

    __version__ = 1

    item_id: Identifier(required=True)
    notification_id: Identifier(required=True)
    retry_count: Integer(required=True)
    scheduled_for: DateTime(required=True)
