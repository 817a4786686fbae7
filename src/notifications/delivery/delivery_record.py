"""DeliveryRecord aggregate — audit row per (notification, channel).

The dispatcher writes a `realtime` record, already delivered, for every
notification. Email and push records are written when a channel sender
reports an outcome (see `notifications.queue.consumption`).

    PENDING → DELIVERED
    PENDING → FAILED → FAILED ... (retry counter capped at 10)
    FAILED  → DELIVERED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from notifications.delivery.events import DeliveryAttemptFailed, DeliverySucceeded
from notifications.domain import notifications
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

MAX_DELIVERY_RETRIES = 10


class DeliveryChannel(Enum):
    REALTIME = "realtime"
    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"
    WEBHOOK = "webhook"


class DeliveryStatus(Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"


@notifications.aggregate
class DeliveryRecord:
    """Outcome of delivering one notification through one channel."""

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)
    channel: String(choices=DeliveryChannel, required=True)
    status: String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    delivered_at: DateTime()
    retry_count: Integer(default=0, min_value=0)
    error_message: String(max_length=1000)
    delivery_metadata: Text()  # JSON

    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def retry_count_within_ceiling(self):
        if self.retry_count is not None and self.retry_count > MAX_DELIVERY_RETRIES:
            raise ValidationError({"retry_count": [f"Retry count cannot exceed {MAX_DELIVERY_RETRIES}"]})

    @classmethod
    def open(cls, notification_id, recipient_id, channel, metadata=None):
        """Start tracking a channel that has not reported an outcome yet."""
        now = datetime.now(UTC)
        return cls(
            notification_id=notification_id,
            recipient_id=recipient_id,
            channel=channel,
            status=DeliveryStatus.PENDING.value,
            retry_count=0,
            delivery_metadata=json.dumps(metadata or {}),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def realtime(cls, notification_id, recipient_id, delivered_at=None):
        """The in-app feed write: delivered the moment the notification exists."""
        record = cls.open(notification_id, recipient_id, DeliveryChannel.REALTIME.value)
        record.mark_delivered(delivered_at)
        return record

    def mark_delivered(self, delivered_at=None):
        now = delivered_at or datetime.now(UTC)
        self.status = DeliveryStatus.DELIVERED.value
        self.delivered_at = now
        self.error_message = None
        self.updated_at = now

        self.raise_(
            DeliverySucceeded(
                delivery_id=str(self.id),
                notification_id=str(self.notification_id),
                channel=self.channel,
                delivered_at=now,
            )
        )

    def mark_failed(self, error):
        """Record a failed attempt. The retry counter saturates at the ceiling."""
        if DeliveryStatus(self.status) == DeliveryStatus.DELIVERED:
            raise ValidationError({"status": ["A delivered record cannot fail"]})

        now = datetime.now(UTC)
        self.status = DeliveryStatus.FAILED.value
        self.error_message = (error or "Unknown delivery error")[:1000]
        self.retry_count = min((self.retry_count or 0) + 1, MAX_DELIVERY_RETRIES)
        self.updated_at = now

        self.raise_(
            DeliveryAttemptFailed(
                delivery_id=str(self.id),
                notification_id=str(self.notification_id),
                channel=self.channel,
                error=self.error_message,
                retry_count=self.retry_count,
                failed_at=now,
            )
        )


def record_outcome(notification_id, recipient_id, channel, error=None, metadata=None) -> DeliveryRecord:
    """Upsert the (notification, channel) record with a sender-reported outcome.

    A channel that already delivered (e.g. one of several push devices)
    stays delivered; later failures for it are ignored.
    """
    repo = current_domain.repository_for(DeliveryRecord)
    rows = repo._dao.query.filter(notification_id=str(notification_id), channel=channel).all().items
    record = rows[0] if rows else DeliveryRecord.open(notification_id, recipient_id, channel, metadata)

    if error is None:
        record.mark_delivered()
    elif DeliveryStatus(record.status) != DeliveryStatus.DELIVERED:
        record.mark_failed(error)

    repo.add(record)
    return record
