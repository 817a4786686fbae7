"""PushQueueItem aggregate — one push message for one registered device.

Push items are always scheduled for immediate delivery. Status values are
the shared delivery-status enumeration (pending / delivered / failed).
"""

import json
from datetime import UTC, datetime

from notifications.delivery.delivery_record import DeliveryStatus
from notifications.device.device import DevicePlatform
from notifications.domain import notifications
from notifications.notification.notification import NotificationPriority
from notifications.queue import claiming
from notifications.queue.events import (
    PushDelivered,
    PushExhausted,
    PushFailed,
    PushQueued,
    PushRequeued,
)
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

MAX_PUSH_RETRIES = 10


@notifications.aggregate
class PushQueueItem:
    """A push payload addressed to one device token."""

    notification_id: Identifier(required=True)
    recipient_id: Identifier(required=True)

    # Target device
    device_id: Identifier(required=True)
    platform: String(choices=DevicePlatform, required=True)
    token: Text(required=True)

    payload: Text(required=True)  # JSON: title, body, data, ...

    priority: String(choices=NotificationPriority, default=NotificationPriority.MEDIUM.value)
    status: String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    scheduled_for: DateTime(required=True)

    claimed_by: String(max_length=100)
    claimed_at: DateTime()
    sent_at: DateTime()
    error_message: String(max_length=1000)
    retry_count: Integer(default=0, min_value=0)
    dead_lettered_at: DateTime()

    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def retry_count_within_ceiling(self):
        if self.retry_count is not None and self.retry_count > MAX_PUSH_RETRIES:
            raise ValidationError({"retry_count": [f"Retry count cannot exceed {MAX_PUSH_RETRIES}"]})

    @classmethod
    def enqueue(cls, notification_id, recipient_id, device_id, platform, token, payload, scheduled_for, priority):
        now = datetime.now(UTC)

        item = cls(
            notification_id=notification_id,
            recipient_id=recipient_id,
            device_id=device_id,
            platform=platform,
            token=token,
            payload=json.dumps(payload),
            priority=priority,
            status=DeliveryStatus.PENDING.value,
            scheduled_for=scheduled_for,
            retry_count=0,
            created_at=now,
            updated_at=now,
        )

        item.raise_(
            PushQueued(
                item_id=str(item.id),
                notification_id=str(notification_id),
                recipient_id=str(recipient_id),
                device_id=str(device_id),
                platform=platform,
                priority=item.priority,
                scheduled_for=scheduled_for,
                queued_at=now,
            )
        )

        return item

    def decoded_payload(self) -> dict:
        return json.loads(self.payload) if self.payload else {}

    # -------------------------------------------------------------------
    # Claiming
    # -------------------------------------------------------------------
    def is_due(self, as_of) -> bool:
        return claiming.is_due(self, as_of)

    def is_claimable(self, as_of, claim_timeout) -> bool:
        return claiming.is_claimable(self, as_of, claim_timeout)

    def claim(self, worker_id, claim_timeout, claimed_at=None):
        claiming.claim(self, worker_id, claim_timeout, claimed_at)

    # -------------------------------------------------------------------
    # Sender outcomes
    # -------------------------------------------------------------------
    def mark_delivered(self, delivered_at=None):
        claiming.assert_pending(self)

        now = delivered_at or datetime.now(UTC)
        self.status = DeliveryStatus.DELIVERED.value
        self.sent_at = now
        self.error_message = None
        claiming.release_claim(self)
        self.updated_at = now

        self.raise_(
            PushDelivered(
                item_id=str(self.id),
                notification_id=str(self.notification_id),
                delivered_at=now,
            )
        )

    def mark_failed(self, error):
        """Record a failed attempt. Reaching the retry ceiling dead-letters the item."""
        claiming.assert_pending(self)

        now = datetime.now(UTC)
        self.status = DeliveryStatus.FAILED.value
        self.error_message = (error or "Unknown push delivery error")[:1000]
        self.retry_count = min((self.retry_count or 0) + 1, MAX_PUSH_RETRIES)
        claiming.release_claim(self)
        self.updated_at = now

        if self.retry_count >= MAX_PUSH_RETRIES:
            self.dead_lettered_at = now
            self.raise_(
                PushExhausted(
                    item_id=str(self.id),
                    notification_id=str(self.notification_id),
                    error=self.error_message,
                    retry_count=self.retry_count,
                    exhausted_at=now,
                )
            )
        else:
            self.raise_(
                PushFailed(
                    item_id=str(self.id),
                    notification_id=str(self.notification_id),
                    error=self.error_message,
                    retry_count=self.retry_count,
                    failed_at=now,
                )
            )

    # -------------------------------------------------------------------
    # Retry sweep
    # -------------------------------------------------------------------
    def can_retry(self) -> bool:
        return (
            self.status == DeliveryStatus.FAILED.value
            and self.dead_lettered_at is None
            and (self.retry_count or 0) < MAX_PUSH_RETRIES
        )

    def requeue(self, scheduled_for):
        if not self.can_retry():
            raise ValidationError({"status": ["Only failed push messages with retries left can be requeued"]})

        self.status = DeliveryStatus.PENDING.value
        self.scheduled_for = scheduled_for
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PushRequeued(
                item_id=str(self.id),
                notification_id=str(self.notification_id),
                retry_count=self.retry_count,
                scheduled_for=scheduled_for,
            )
        )
