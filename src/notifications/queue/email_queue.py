"""EmailQueueItem aggregate — one email waiting for the external sender.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry sweep) → PENDING
    PENDING → FAILED with retry_count == 5 → dead-lettered (terminal)
"""

import json
import re
from datetime import UTC, datetime
from enum import Enum

from notifications.domain import notifications
from notifications.notification.notification import NotificationPriority
from notifications.queue import claiming
from notifications.queue.events import (
    EmailExhausted,
    EmailFailed,
    EmailQueued,
    EmailRequeued,
    EmailSent,
)
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

MAX_EMAIL_RETRIES = 5
EMAIL_ADDRESS_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class EmailStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


def is_valid_email(address: str | None) -> bool:
    return bool(address) and EMAIL_ADDRESS_PATTERN.match(address) is not None


@notifications.aggregate
class EmailQueueItem:
    """An email for one notification, addressed to its recipient."""

    # Linkage (nullable: an item may outlive its notification)
    notification_id: Identifier()
    recipient_id: Identifier(required=True)

    # Envelope
    to_email: String(required=True, max_length=254)
    to_name: String(max_length=255)
    subject: String(required=True, max_length=255)
    template_id: String(max_length=100)
    template_data: Text()  # JSON

    # Scheduling
    priority: String(choices=NotificationPriority, default=NotificationPriority.MEDIUM.value)
    status: String(choices=EmailStatus, default=EmailStatus.PENDING.value)
    scheduled_for: DateTime(required=True)

    # Sender bookkeeping
    claimed_by: String(max_length=100)
    claimed_at: DateTime()
    sent_at: DateTime()
    error_message: String(max_length=1000)
    retry_count: Integer(default=0, min_value=0)
    dead_lettered_at: DateTime()

    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def recipient_address_must_be_valid(self):
        if self.to_email is not None and not is_valid_email(self.to_email):
            raise ValidationError({"to_email": [f"Invalid email address: {self.to_email!r}"]})

    @invariant.post
    def retry_count_within_ceiling(self):
        if self.retry_count is not None and self.retry_count > MAX_EMAIL_RETRIES:
            raise ValidationError({"retry_count": [f"Retry count cannot exceed {MAX_EMAIL_RETRIES}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def enqueue(
        cls,
        recipient_id,
        to_email,
        subject,
        scheduled_for,
        notification_id=None,
        to_name=None,
        template_id=None,
        template_data=None,
        priority=NotificationPriority.MEDIUM.value,
    ):
        now = datetime.now(UTC)

        item = cls(
            notification_id=notification_id,
            recipient_id=recipient_id,
            to_email=to_email,
            to_name=to_name,
            subject=subject,
            template_id=template_id,
            template_data=json.dumps(template_data or {}),
            priority=priority,
            status=EmailStatus.PENDING.value,
            scheduled_for=scheduled_for,
            retry_count=0,
            created_at=now,
            updated_at=now,
        )

        item.raise_(
            EmailQueued(
                item_id=str(item.id),
                notification_id=str(notification_id) if notification_id else None,
                recipient_id=str(recipient_id),
                to_email=to_email,
                priority=item.priority,
                scheduled_for=scheduled_for,
                queued_at=now,
            )
        )

        return item

    def decoded_template_data(self) -> dict:
        return json.loads(self.template_data) if self.template_data else {}

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
    def mark_sent(self, sent_at=None):
        claiming.assert_pending(self)

        now = sent_at or datetime.now(UTC)
        self.status = EmailStatus.SENT.value
        self.sent_at = now
        self.error_message = None
        claiming.release_claim(self)
        self.updated_at = now

        self.raise_(
            EmailSent(
                item_id=str(self.id),
                notification_id=str(self.notification_id) if self.notification_id else None,
                sent_at=now,
            )
        )

    def mark_failed(self, error):
        """Record a failed attempt. Reaching the retry ceiling dead-letters the item."""
        claiming.assert_pending(self)

        now = datetime.now(UTC)
        self.status = EmailStatus.FAILED.value
        self.error_message = (error or "Unknown email delivery error")[:1000]
        self.retry_count = min((self.retry_count or 0) + 1, MAX_EMAIL_RETRIES)
        claiming.release_claim(self)
        self.updated_at = now

        notification_id = str(self.notification_id) if self.notification_id else None
        if self.retry_count >= MAX_EMAIL_RETRIES:
            self.dead_lettered_at = now
            self.raise_(
                EmailExhausted(
                    item_id=str(self.id),
                    notification_id=notification_id,
                    error=self.error_message,
                    retry_count=self.retry_count,
                    exhausted_at=now,
                )
            )
        else:
            self.raise_(
                EmailFailed(
                    item_id=str(self.id),
                    notification_id=notification_id,
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
            self.status == EmailStatus.FAILED.value
            and self.dead_lettered_at is None
            and (self.retry_count or 0) < MAX_EMAIL_RETRIES
        )

    def requeue(self, scheduled_for):
        if not self.can_retry():
            raise ValidationError({"status": ["Only failed emails with retries left can be requeued"]})

        self.status = EmailStatus.PENDING.value
        self.scheduled_for = scheduled_for
        self.updated_at = datetime.now(UTC)

        self.raise_(
            EmailRequeued(
                item_id=str(self.id),
                notification_id=str(self.notification_id) if self.notification_id else None,
                retry_count=self.retry_count,
                scheduled_for=scheduled_for,
            )
        )
