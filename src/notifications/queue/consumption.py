"""Queue consumption contract for external channel senders.

Senders call `claim_due_emails` / `claim_due_pushes` to take a batch of
pending, due items (most urgent first, then oldest schedule), send them,
and report each outcome with `complete_email` / `complete_push`. Outcomes
are mirrored onto the notification's DeliveryRecord for that channel.
"""

from datetime import UTC, datetime, timedelta

import structlog
from notifications.delivery.delivery_record import DeliveryChannel, record_outcome
from notifications.notification.notification import priority_rank
from notifications.queue.email_queue import EmailQueueItem
from notifications.queue.push_queue import PushQueueItem
from notifications.queue.scheduling import to_utc
from notifications.settings import setting
from protean.exceptions import ExpectedVersionError, ValidationError
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def _claim_timeout() -> timedelta:
    return timedelta(minutes=setting("CLAIM_TIMEOUT_MINUTES"))


def due_items(aggregate_cls, as_of: datetime | None = None, limit: int | None = None) -> list:
    """Pending, due items ordered by priority (desc) then schedule (asc)."""
    as_of = as_of or datetime.now(UTC)
    repo = current_domain.repository_for(aggregate_cls)
    due = (
        repo._dao.query.filter(status="pending", scheduled_for__lte=to_utc(as_of))
        .limit(None)
        .all()
        .items
    )
    # Priority labels rank here, not in the store
    due = sorted(due, key=lambda item: (-priority_rank(item.priority), to_utc(item.scheduled_for)))
    return due[:limit] if limit else due


def _claim_batch(aggregate_cls, worker_id: str, limit: int, as_of: datetime | None) -> list:
    as_of = as_of or datetime.now(UTC)
    timeout = _claim_timeout()
    repo = current_domain.repository_for(aggregate_cls)

    claimed = []
    for item in due_items(aggregate_cls, as_of):
        if len(claimed) >= limit:
            break
        if not item.is_claimable(as_of, timeout):
            continue
        try:
            item.claim(worker_id, timeout, claimed_at=as_of)
            repo.add(item)
        except (ValidationError, ExpectedVersionError):
            # Another worker got there first
            logger.debug("Queue item claim lost", item_id=str(item.id), worker_id=worker_id)
            continue
        claimed.append(item)

    logger.info(
        "Queue items claimed",
        queue=aggregate_cls.__name__,
        worker_id=worker_id,
        count=len(claimed),
    )
    return claimed


def claim_due_emails(worker_id: str, limit: int | None = None, as_of: datetime | None = None) -> list[EmailQueueItem]:
    return _claim_batch(EmailQueueItem, worker_id, limit or setting("EMAIL_BATCH_SIZE"), as_of)


def claim_due_pushes(worker_id: str, limit: int | None = None, as_of: datetime | None = None) -> list[PushQueueItem]:
    return _claim_batch(PushQueueItem, worker_id, limit or setting("PUSH_BATCH_SIZE"), as_of)


def complete_email(item: EmailQueueItem | str, error: str | None = None) -> EmailQueueItem:
    """Write back a send outcome: sent when `error` is None, failed otherwise."""
    repo = current_domain.repository_for(EmailQueueItem)
    if not isinstance(item, EmailQueueItem):
        item = repo.get(str(item))

    if error is None:
        item.mark_sent()
    else:
        item.mark_failed(error)
        logger.warning(
            "Email delivery failed",
            item_id=str(item.id),
            retry_count=item.retry_count,
            dead_lettered=item.dead_lettered_at is not None,
            error=error,
        )
    repo.add(item)

    if item.notification_id:
        record_outcome(
            notification_id=str(item.notification_id),
            recipient_id=str(item.recipient_id),
            channel=DeliveryChannel.EMAIL.value,
            error=error,
            metadata={"queue_item_id": str(item.id)},
        )
    return item


def complete_push(item: PushQueueItem | str, error: str | None = None) -> PushQueueItem:
    """Write back a push outcome: delivered when `error` is None, failed otherwise."""
    repo = current_domain.repository_for(PushQueueItem)
    if not isinstance(item, PushQueueItem):
        item = repo.get(str(item))

    if error is None:
        item.mark_delivered()
    else:
        item.mark_failed(error)
        logger.warning(
            "Push delivery failed",
            item_id=str(item.id),
            device_id=str(item.device_id),
            retry_count=item.retry_count,
            dead_lettered=item.dead_lettered_at is not None,
            error=error,
        )
    repo.add(item)

    record_outcome(
        notification_id=str(item.notification_id),
        recipient_id=str(item.recipient_id),
        channel=DeliveryChannel.PUSH.value,
        error=error,
        metadata={"queue_item_id": str(item.id)},
    )
    return item
