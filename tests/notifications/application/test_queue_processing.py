"""Application tests for the reference queue processor with fake channel adapters."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from notifications.channel import get_channel
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.delivery.delivery_record import DeliveryRecord
from notifications.device.device import UserDevice
from notifications.notification.dispatcher import create_notification
from notifications.queue.email_queue import EmailQueueItem
from notifications.queue.processing import ProcessEmailQueue, ProcessPushQueue
from notifications.queue.push_queue import PushQueueItem
from protean import current_domain


def _process_email(as_of=None, limit=None):
    as_of = as_of or datetime.now(UTC) + timedelta(hours=1)
    return current_domain.process(ProcessEmailQueue(as_of=as_of, limit=limit), asynchronous=False)


def _process_push(as_of=None):
    as_of = as_of or datetime.now(UTC) + timedelta(minutes=1)
    return current_domain.process(ProcessPushQueue(as_of=as_of), asynchronous=False)


def _notify(priority="medium"):
    return create_notification(
        recipient_id="user-1",
        notification_type="task_comment",
        title="New Comment",
        message="Sam commented on: Pour concrete",
        priority=priority,
    )


def _items(aggregate_cls):
    return current_domain.repository_for(aggregate_cls)._dao.query.all().items


@pytest.fixture(autouse=True)
def _recipient(directory):
    directory.add_user("user-1", email="dana@example.com", first_name="Dana", last_name="Reyes")
    repo = current_domain.repository_for(UserDevice)
    repo.add(UserDevice.register(user_id="user-1", platform="ios", token="apns-1"))
    repo.add(UserDevice.register(user_id="user-1", platform="android", token="fcm-1"))


class TestProcessEmailQueue:
    def test_sends_due_emails(self):
        notification_id = _notify()
        result = _process_email()

        assert result == {"sent": 1, "failed": 0}
        sent = get_channel("email").sent_emails
        assert len(sent) == 1
        assert sent[0]["to"] == "dana@example.com"
        assert sent[0]["to_name"] == "Dana Reyes"
        assert sent[0]["template_id"] == "task_comment"
        assert sent[0]["template_data"]["notification_id"] == notification_id

        assert _items(EmailQueueItem)[0].status == "sent"

    def test_not_yet_due_emails_wait(self):
        _notify(priority="low")
        assert _process_email(as_of=datetime.now(UTC) + timedelta(minutes=10)) == {"sent": 0, "failed": 0}
        assert get_channel("email").sent_emails == []

    def test_provider_failure_is_recorded(self):
        get_channel("email").configure(should_succeed=False, failure_reason="SMTP 550")
        notification_id = _notify()

        assert _process_email() == {"sent": 0, "failed": 1}

        item = _items(EmailQueueItem)[0]
        assert item.status == "failed"
        assert item.error_message == "SMTP 550"
        assert item.retry_count == 1

        records = (
            current_domain.repository_for(DeliveryRecord)
            ._dao.query.filter(notification_id=notification_id, channel="email")
            .all()
            .items
        )
        assert records[0].status == "failed"

    def test_provider_exception_is_recorded(self):
        _notify()

        with patch.object(FakeEmailAdapter, "send", side_effect=ConnectionError("mail relay unreachable")):
            assert _process_email() == {"sent": 0, "failed": 1}
        assert _items(EmailQueueItem)[0].error_message == "mail relay unreachable"

    def test_limit(self):
        _notify()
        _notify()
        assert _process_email(limit=1) == {"sent": 1, "failed": 0}


class TestProcessPushQueue:
    def test_sends_to_every_device(self):
        _notify()
        assert _process_push() == {"sent": 2, "failed": 0}

        pushes = get_channel("push").sent_pushes
        assert {push["device_token"] for push in pushes} == {"apns-1", "fcm-1"}
        assert pushes[0]["payload"]["title"] == "New Comment"

    def test_rejected_token_fails_only_that_device(self):
        get_channel("push").reject_token("fcm-1")
        notification_id = _notify()

        assert _process_push() == {"sent": 1, "failed": 1}

        statuses = {item.token: item.status for item in _items(PushQueueItem)}
        assert statuses == {"apns-1": "delivered", "fcm-1": "failed"}

        record = (
            current_domain.repository_for(DeliveryRecord)
            ._dao.query.filter(notification_id=notification_id, channel="push")
            .all()
            .items[0]
        )
        assert record.status == "delivered"

    def test_second_run_sends_nothing(self):
        _notify()
        _process_push()
        assert _process_push() == {"sent": 0, "failed": 0}
