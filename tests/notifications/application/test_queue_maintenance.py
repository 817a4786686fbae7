"""Application tests for the retry sweep, retention cleanup and queue status."""

from datetime import UTC, datetime, timedelta

import pytest
from notifications.queue.email_queue import MAX_EMAIL_RETRIES, EmailQueueItem
from notifications.queue.maintenance import CleanupNotificationQueues, RetryFailedQueueItems, queue_status
from notifications.queue.push_queue import PushQueueItem
from notifications.queue.scheduling import to_utc
from protean import current_domain


def _email(status="pending", failures=0):
    item = EmailQueueItem.enqueue(
        recipient_id="user-1",
        to_email="dana@example.com",
        subject="New Task Assignment",
        scheduled_for=datetime.now(UTC),
    )
    for attempt in range(failures):
        if attempt:
            item.requeue(scheduled_for=datetime.now(UTC))
        item.mark_failed("SMTP 451")
    if status == "sent":
        item.mark_sent()
    current_domain.repository_for(EmailQueueItem).add(item)
    return item


def _push(status="pending"):
    item = PushQueueItem.enqueue(
        notification_id="n-1",
        recipient_id="user-1",
        device_id="dev-1",
        platform="android",
        token="fcm-1",
        payload={"title": "Hi"},
        scheduled_for=datetime.now(UTC),
        priority="medium",
    )
    if status == "delivered":
        item.mark_delivered()
    elif status == "failed":
        item.mark_failed("Unregistered")
    current_domain.repository_for(PushQueueItem).add(item)
    return item


def _retry(as_of):
    return current_domain.process(RetryFailedQueueItems(as_of=as_of), asynchronous=False)


def _cleanup(as_of):
    return current_domain.process(CleanupNotificationQueues(as_of=as_of), asynchronous=False)


def _get(aggregate_cls, item):
    return current_domain.repository_for(aggregate_cls).get(str(item.id))


class TestRetryFailed:
    def test_failed_email_is_requeued_with_backoff(self):
        item = _email(failures=2)
        as_of = datetime.now(UTC) + timedelta(hours=1)

        assert _retry(as_of) == {"email": 1, "push": 0}

        stored = _get(EmailQueueItem, item)
        assert stored.status == "pending"
        assert stored.retry_count == 2
        assert to_utc(stored.scheduled_for) == as_of + timedelta(minutes=30)

    def test_failed_push_is_requeued_with_backoff(self):
        item = _push(status="failed")
        as_of = datetime.now(UTC) + timedelta(hours=1)

        assert _retry(as_of) == {"email": 0, "push": 1}
        assert to_utc(_get(PushQueueItem, item).scheduled_for) == as_of + timedelta(minutes=5)

    def test_outside_the_retry_window(self):
        _email(failures=1)
        _push(status="failed")
        assert _retry(datetime.now(UTC) + timedelta(hours=25)) == {"email": 0, "push": 0}

    def test_push_window_is_shorter(self):
        _email(failures=1)
        _push(status="failed")
        assert _retry(datetime.now(UTC) + timedelta(hours=7)) == {"email": 1, "push": 0}

    def test_dead_lettered_items_are_never_requeued(self):
        item = _email(failures=MAX_EMAIL_RETRIES)
        assert _get(EmailQueueItem, item).dead_lettered_at is not None

        assert _retry(datetime.now(UTC) + timedelta(minutes=1)) == {"email": 0, "push": 0}
        assert _get(EmailQueueItem, item).status == "failed"

    def test_pending_and_sent_items_are_left_alone(self):
        _email()
        _email(status="sent")
        assert _retry(datetime.now(UTC)) == {"email": 0, "push": 0}


class TestCleanup:
    def test_settled_items_past_retention_are_deleted(self):
        _email(status="sent")
        _email(failures=1)
        _push(status="delivered")
        _push(status="failed")

        assert _cleanup(datetime.now(UTC) + timedelta(days=31)) == {"email": 2, "push": 2}

    def test_pending_items_are_kept(self):
        _email()
        _push()
        assert _cleanup(datetime.now(UTC) + timedelta(days=365)) == {"email": 0, "push": 0}

    def test_push_retention_is_shorter(self):
        _email(status="sent")
        _push(status="delivered")
        assert _cleanup(datetime.now(UTC) + timedelta(days=8)) == {"email": 0, "push": 1}
        assert len(current_domain.repository_for(EmailQueueItem)._dao.query.all().items) == 1


class TestQueueStatus:
    def test_counts_per_status(self):
        _email()
        _email()
        _email(status="sent")
        _push(status="failed")

        status = queue_status()
        assert status["email"]["pending"]["count"] == 2
        assert status["email"]["sent"]["count"] == 1
        assert status["push"]["failed"]["count"] == 1
        assert "pending" not in status["push"]

    def test_oldest_and_newest(self):
        first = _email()
        last = _email()

        entry = queue_status()["email"]["pending"]
        assert entry["oldest"] == to_utc(first.created_at)
        assert entry["newest"] == to_utc(last.created_at)

    @pytest.mark.parametrize("queue", ["email", "push"])
    def test_empty_queues(self, queue):
        assert queue_status()[queue] == {}


class TestLargeQueues:
    def test_retry_sweep_reaches_every_failed_item(self):
        for _ in range(120):
            _email(failures=1)
        assert _retry(datetime.now(UTC) + timedelta(minutes=1)) == {"email": 120, "push": 0}

    def test_cleanup_reaches_every_settled_item(self):
        for _ in range(120):
            _push(status="delivered")
        assert _cleanup(datetime.now(UTC) + timedelta(days=8)) == {"email": 0, "push": 120}
        assert current_domain.repository_for(PushQueueItem)._dao.query.all().items == []

    def test_status_counts_every_item(self):
        for _ in range(120):
            _email()
        assert queue_status()["email"]["pending"]["count"] == 120
