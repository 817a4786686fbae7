"""DeliveryLog — audit trail of every email and push queue item and its outcome."""

from notifications.domain import notifications
from notifications.queue.email_queue import EmailQueueItem
from notifications.queue.events import (
    EmailExhausted,
    EmailFailed,
    EmailQueued,
    EmailRequeued,
    EmailSent,
    PushDelivered,
    PushExhausted,
    PushFailed,
    PushQueued,
    PushRequeued,
)
from notifications.queue.push_queue import PushQueueItem
from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain


@notifications.projection
class DeliveryLog:
    item_id: Identifier(identifier=True, required=True)
    channel: String(required=True, max_length=20)
    notification_id: Identifier()
    recipient_id: Identifier(required=True)
    destination: String(max_length=255)  # email address or device platform
    priority: String(max_length=20)
    status: String(required=True, max_length=20)
    retry_count: Integer(default=0)
    last_error: String(max_length=1000)
    dead_lettered: Boolean(default=False)
    queued_at: DateTime()
    scheduled_for: DateTime()
    completed_at: DateTime()
    updated_at: DateTime()


@notifications.projector(projector_for=DeliveryLog, aggregates=[EmailQueueItem, PushQueueItem])
class DeliveryLogProjector:
    def _add(self, **fields):
        current_domain.repository_for(DeliveryLog).add(DeliveryLog(**fields))

    def _update(self, item_id, **fields):
        repo = current_domain.repository_for(DeliveryLog)
        try:
            entry = repo.get(str(item_id))
        except ObjectNotFoundError:
            return
        for key, value in fields.items():
            setattr(entry, key, value)
        repo.add(entry)

    # Email
    @on(EmailQueued)
    def on_email_queued(self, event: EmailQueued):
        self._add(
            item_id=event.item_id,
            channel="email",
            notification_id=event.notification_id,
            recipient_id=event.recipient_id,
            destination=event.to_email,
            priority=event.priority,
            status="pending",
            queued_at=event.queued_at,
            scheduled_for=event.scheduled_for,
            updated_at=event.queued_at,
        )

    @on(EmailSent)
    def on_email_sent(self, event: EmailSent):
        self._update(event.item_id, status="sent", completed_at=event.sent_at, updated_at=event.sent_at)

    @on(EmailFailed)
    def on_email_failed(self, event: EmailFailed):
        self._update(
            event.item_id,
            status="failed",
            retry_count=event.retry_count,
            last_error=event.error,
            updated_at=event.failed_at,
        )

    @on(EmailExhausted)
    def on_email_exhausted(self, event: EmailExhausted):
        self._update(
            event.item_id,
            status="failed",
            retry_count=event.retry_count,
            last_error=event.error,
            dead_lettered=True,
            completed_at=event.exhausted_at,
            updated_at=event.exhausted_at,
        )

    @on(EmailRequeued)
    def on_email_requeued(self, event: EmailRequeued):
        self._update(event.item_id, status="pending", scheduled_for=event.scheduled_for)

    # Push
    @on(PushQueued)
    def on_push_queued(self, event: PushQueued):
        self._add(
            item_id=event.item_id,
            channel="push",
            notification_id=event.notification_id,
            recipient_id=event.recipient_id,
            destination=event.platform,
            priority=event.priority,
            status="pending",
            queued_at=event.queued_at,
            scheduled_for=event.scheduled_for,
            updated_at=event.queued_at,
        )

    @on(PushDelivered)
    def on_push_delivered(self, event: PushDelivered):
        self._update(
            event.item_id,
            status="delivered",
            completed_at=event.delivered_at,
            updated_at=event.delivered_at,
        )

    @on(PushFailed)
    def on_push_failed(self, event: PushFailed):
        self._update(
            event.item_id,
            status="failed",
            retry_count=event.retry_count,
            last_error=event.error,
            updated_at=event.failed_at,
        )

    @on(PushExhausted)
    def on_push_exhausted(self, event: PushExhausted):
        self._update(
            event.item_id,
            status="failed",
            retry_count=event.retry_count,
            last_error=event.error,
            dead_lettered=True,
            completed_at=event.exhausted_at,
            updated_at=event.exhausted_at,
        )

    @on(PushRequeued)
    def on_push_requeued(self, event: PushRequeued):
        self._update(event.item_id, status="pending", scheduled_for=event.scheduled_for)


def delivery_log_for(notification_id: str) -> list:
    """All DeliveryLog entries for one notification, email first."""
    repo = current_domain.repository_for(DeliveryLog)
    entries = repo._dao.query.filter(notification_id=str(notification_id)).limit(None).all().items
    return sorted(entries, key=lambda entry: (entry.channel, str(entry.item_id)))
