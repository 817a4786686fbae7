"""Queue maintenance — retry sweep, retention cleanup and queue status.

RetryFailedQueueItems puts recently failed items with retries left back to
pending, backing off linearly with the retry count (email 15 min per
retry inside a 24 h window, push 5 min per retry inside 6 h).
Dead-lettered items are never picked up again.

CleanupNotificationQueues deletes settled items (sent/delivered/failed)
older than the retention period (email 30 days, push 7 days).
"""

from datetime import UTC, datetime, timedelta

import structlog
from notifications.delivery.delivery_record import DeliveryStatus
from notifications.domain import notifications
from notifications.queue.email_queue import EmailQueueItem, EmailStatus
from notifications.queue.push_queue import PushQueueItem
from notifications.queue.scheduling import EMAIL_RETRY_BACKOFF, PUSH_RETRY_BACKOFF, to_utc
from notifications.settings import setting
from protean.fields import DateTime
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.command(part_of="EmailQueueItem")
class RetryFailedQueueItems:
    """Requeue failed email and push items that still have retries left."""

    as_of: DateTime()


@notifications.command(part_of="EmailQueueItem")
class CleanupNotificationQueues:
    """Delete settled queue items past their retention period."""

    as_of: DateTime()


def _requeue_failed(aggregate_cls, as_of: datetime, window: timedelta, backoff: timedelta) -> int:
    repo = current_domain.repository_for(aggregate_cls)
    failed = repo._dao.query.filter(status="failed").limit(None).all().items

    count = 0
    for item in failed:
        if not item.can_retry():
            continue
        if to_utc(item.created_at) <= to_utc(as_of) - window:
            continue
        item.requeue(scheduled_for=to_utc(as_of) + backoff * item.retry_count)
        repo.add(item)
        count += 1
    return count


def _delete_settled(aggregate_cls, settled_statuses, as_of: datetime, retention: timedelta) -> int:
    repo = current_domain.repository_for(aggregate_cls)
    cutoff = to_utc(as_of) - retention

    count = 0
    for status in settled_statuses:
        for item in repo._dao.query.filter(status=status).limit(None).all().items:
            if to_utc(item.created_at) < cutoff:
                repo._dao.delete(item)
                count += 1
    return count


@notifications.command_handler(part_of=EmailQueueItem)
class QueueMaintenanceHandler:
    @handle(RetryFailedQueueItems)
    def retry_failed(self, command: RetryFailedQueueItems):
        as_of = command.as_of or datetime.now(UTC)

        emails = _requeue_failed(
            EmailQueueItem,
            as_of,
            window=timedelta(hours=setting("EMAIL_RETRY_WINDOW_HOURS")),
            backoff=EMAIL_RETRY_BACKOFF,
        )
        pushes = _requeue_failed(
            PushQueueItem,
            as_of,
            window=timedelta(hours=setting("PUSH_RETRY_WINDOW_HOURS")),
            backoff=PUSH_RETRY_BACKOFF,
        )

        logger.info("Failed queue items requeued", email=emails, push=pushes, as_of=str(as_of))
        return {"email": emails, "push": pushes}

    @handle(CleanupNotificationQueues)
    def cleanup(self, command: CleanupNotificationQueues):
        as_of = command.as_of or datetime.now(UTC)

        emails = _delete_settled(
            EmailQueueItem,
            (EmailStatus.SENT.value, EmailStatus.FAILED.value),
            as_of,
            retention=timedelta(days=setting("EMAIL_RETENTION_DAYS")),
        )
        pushes = _delete_settled(
            PushQueueItem,
            (DeliveryStatus.DELIVERED.value, DeliveryStatus.FAILED.value),
            as_of,
            retention=timedelta(days=setting("PUSH_RETENTION_DAYS")),
        )

        logger.info("Notification queues cleaned up", email=emails, push=pushes, as_of=str(as_of))
        return {"email": emails, "push": pushes}


def queue_status() -> dict:
    """Per-queue, per-status item counts with the oldest and newest creation times."""
    status = {}
    for name, aggregate_cls in (("email", EmailQueueItem), ("push", PushQueueItem)):
        items = current_domain.repository_for(aggregate_cls)._dao.query.limit(None).all().items
        by_status: dict[str, dict] = {}
        for item in items:
            entry = by_status.setdefault(item.status, {"count": 0, "oldest": None, "newest": None})
            created = to_utc(item.created_at)
            entry["count"] += 1
            if entry["oldest"] is None or created < entry["oldest"]:
                entry["oldest"] = created
            if entry["newest"] is None or created > entry["newest"]:
                entry["newest"] = created
        status[name] = by_status
    return status
