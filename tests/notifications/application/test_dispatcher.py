"""Application tests for create_notification — storage, realtime record and channel fan-out."""

import json
from datetime import timedelta

import pytest
from notifications.delivery.delivery_record import DeliveryRecord
from notifications.device.device import UserDevice
from notifications.notification.dispatcher import NotifyUser, create_notification
from notifications.notification.notification import Notification
from notifications.notification.payloads import TaskUpdatedPayload
from notifications.preference.preference import NotificationPreference
from notifications.principal import acting_as
from notifications.queue.email_queue import EmailQueueItem
from notifications.queue.push_queue import PushQueueItem
from notifications.queue.scheduling import to_utc
from protean import current_domain
from protean.exceptions import ValidationError


def _rows(aggregate_cls, **filters):
    return current_domain.repository_for(aggregate_cls)._dao.query.filter(**filters).all().items


def _notify(recipient_id="user-1", notification_type="task_assigned", **overrides):
    defaults = {
        "recipient_id": recipient_id,
        "notification_type": notification_type,
        "title": "New Task Assignment",
        "message": "Dana assigned you to: Pour concrete",
    }
    defaults.update(overrides)
    return create_notification(**defaults)


def _add_device(user_id, token, push_enabled=True):
    device = UserDevice.register(user_id=user_id, platform="ios", token=token)
    if not push_enabled:
        device.disable_push()
    current_domain.repository_for(UserDevice).add(device)
    return device


def _disable(user_id, notification_type, email=True, push=True):
    pref = NotificationPreference.create(
        user_id=user_id,
        notification_type=notification_type,
        email_enabled=email,
        push_enabled=push,
    )
    current_domain.repository_for(NotificationPreference).add(pref)


@pytest.fixture(autouse=True)
def _users(directory):
    directory.add_user("user-1", email="dana@example.com", first_name="Dana", last_name="Reyes")
    directory.add_user("user-2", email="sam@example.com", first_name="Sam", last_name="Lee")
    directory.add_user("no-email")


class TestNotificationStore:
    def test_exactly_one_notification_and_realtime_record(self):
        notification_id = _notify()

        assert len(_rows(Notification, recipient_id="user-1")) == 1
        records = _rows(DeliveryRecord, notification_id=notification_id)
        assert len(records) == 1
        assert records[0].channel == "realtime"
        assert records[0].status == "delivered"

    def test_returns_notification_id(self):
        notification_id = _notify()
        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.title == "New Task Assignment"
        assert notification.is_read is False

    def test_typed_payload_is_stored_with_kind(self):
        notification_id = _notify(
            notification_type="task_updated",
            context=TaskUpdatedPayload(task_id="t-1", changes=["title"], change_summary="title"),
        )
        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.context()["kind"] == "task_updated"
        assert notification.context()["changes"] == ["title"]

    def test_creator_defaults_to_acting_principal(self):
        with acting_as("user-2"):
            notification_id = _notify()
        notification = current_domain.repository_for(Notification).get(notification_id)
        assert str(notification.created_by) == "user-2"

    def test_explicit_creator_wins(self):
        with acting_as("user-2"):
            notification_id = _notify(created_by="admin-1")
        notification = current_domain.repository_for(Notification).get(notification_id)
        assert str(notification.created_by) == "admin-1"


class TestValidation:
    def test_missing_recipient(self):
        with pytest.raises(ValidationError) as exc:
            _notify(recipient_id=None)
        assert "recipient_id" in exc.value.messages

    def test_disallowed_type_writes_nothing(self):
        with pytest.raises(ValidationError):
            _notify(notification_type="order_confirmation")
        assert _rows(Notification) == []
        assert _rows(DeliveryRecord) == []
        assert _rows(EmailQueueItem) == []

    def test_oversized_title_writes_nothing(self):
        with pytest.raises(ValidationError):
            _notify(title="x" * 300)
        assert _rows(Notification) == []

    @pytest.mark.parametrize(
        "field,value",
        [
            ("title", ""),
            ("title", "   "),
            ("message", ""),
            ("message", " \t "),
            ("message", "x" * 1001),
        ],
    )
    def test_blank_or_oversized_text_writes_nothing(self, field, value):
        with pytest.raises(ValidationError) as exc:
            _notify(**{field: value})
        assert field in exc.value.messages
        assert _rows(Notification) == []
        assert _rows(DeliveryRecord) == []
        assert _rows(EmailQueueItem) == []

    def test_message_at_length_limit_is_accepted(self):
        notification_id = _notify(message="x" * 1000)
        assert len(current_domain.repository_for(Notification).get(notification_id).message) == 1000

    def test_malformed_known_payload(self):
        with pytest.raises(ValidationError) as exc:
            _notify(context={"kind": "task_updated", "task_id": "t-1"})
        assert "context" in exc.value.messages


class TestEmailFanOut:
    def test_one_email_per_notification(self):
        notification_id = _notify()
        items = _rows(EmailQueueItem, notification_id=notification_id)
        assert len(items) == 1
        assert items[0].to_email == "dana@example.com"
        assert items[0].to_name == "Dana Reyes"
        assert items[0].subject == "New Task Assignment"
        assert items[0].template_id == "task_assigned"

    def test_template_data_carries_notification(self):
        notification_id = _notify(entity_type="task", entity_id="t-1", priority="high")
        data = _rows(EmailQueueItem, notification_id=notification_id)[0].decoded_template_data()
        assert data["notification_id"] == notification_id
        assert data["user_name"] == "Dana Reyes"
        assert data["entity_type"] == "task"
        assert data["priority"] == "high"

    @pytest.mark.parametrize(
        "priority, delay",
        [
            ("critical", timedelta(0)),
            ("high", timedelta(minutes=5)),
            ("medium", timedelta(minutes=15)),
            ("low", timedelta(minutes=30)),
        ],
    )
    def test_scheduled_by_priority(self, priority, delay):
        notification_id = _notify(priority=priority)
        notification = current_domain.repository_for(Notification).get(notification_id)
        item = _rows(EmailQueueItem, notification_id=notification_id)[0]
        assert to_utc(item.scheduled_for) - to_utc(notification.created_at) == delay

    def test_disabled_email_preference_suppresses_email(self):
        _disable("user-1", "task_assigned", email=False)
        notification_id = _notify()
        assert _rows(EmailQueueItem, notification_id=notification_id) == []
        assert len(_rows(Notification, recipient_id="user-1")) == 1

    def test_preference_for_other_type_does_not_apply(self):
        _disable("user-1", "task_updated", email=False)
        notification_id = _notify(notification_type="task_assigned")
        assert len(_rows(EmailQueueItem, notification_id=notification_id)) == 1

    def test_system_type_ignores_email_preference(self):
        _disable("user-1", "system", email=False, push=False)
        _add_device("user-1", "tok-1")
        notification_id = _notify(notification_type="system", title="Maintenance", message="Tonight at 10pm")
        assert len(_rows(EmailQueueItem, notification_id=notification_id)) == 1
        assert len(_rows(PushQueueItem, notification_id=notification_id)) == 1

    def test_recipient_without_address_gets_no_email(self):
        notification_id = _notify(recipient_id="no-email")
        assert _rows(EmailQueueItem, notification_id=notification_id) == []
        assert len(_rows(DeliveryRecord, notification_id=notification_id)) == 1

    def test_unknown_recipient_still_gets_in_app_notification(self):
        notification_id = _notify(recipient_id="not-in-directory")
        assert _rows(EmailQueueItem, notification_id=notification_id) == []
        assert len(_rows(Notification, recipient_id="not-in-directory")) == 1


class TestPushFanOut:
    def test_one_push_per_enabled_device(self):
        for token in ("tok-1", "tok-2", "tok-3"):
            _add_device("user-1", token)
        notification_id = _notify()

        items = _rows(PushQueueItem, notification_id=notification_id)
        assert sorted(item.token for item in items) == ["tok-1", "tok-2", "tok-3"]

    def test_no_devices_no_push(self):
        notification_id = _notify()
        assert _rows(PushQueueItem, notification_id=notification_id) == []

    def test_device_with_push_disabled_is_skipped(self):
        _add_device("user-1", "tok-on")
        _add_device("user-1", "tok-off", push_enabled=False)
        notification_id = _notify()
        assert [item.token for item in _rows(PushQueueItem, notification_id=notification_id)] == ["tok-on"]

    def test_disabled_push_preference_suppresses_push(self):
        _disable("user-1", "task_assigned", push=False)
        _add_device("user-1", "tok-1")
        notification_id = _notify()
        assert _rows(PushQueueItem, notification_id=notification_id) == []

    def test_push_is_immediate_and_carries_payload(self):
        _add_device("user-1", "tok-1")
        notification_id = _notify(entity_type="task", entity_id="t-1")
        notification = current_domain.repository_for(Notification).get(notification_id)
        item = _rows(PushQueueItem, notification_id=notification_id)[0]

        assert to_utc(item.scheduled_for) == to_utc(notification.created_at)
        payload = item.decoded_payload()
        assert payload["title"] == "New Task Assignment"
        assert payload["tag"] == f"notification-{notification_id}"
        assert payload["data"]["entity_id"] == "t-1"
        assert [a["action"] for a in payload["actions"]] == ["view", "dismiss"]


class TestNotifyUserCommand:
    def test_command_returns_id(self):
        notification_id = current_domain.process(
            NotifyUser(
                recipient_id="user-2",
                notification_type="project_added",
                title="Added to Project",
                message="Dana added you to project: Harbour Bridge",
                context_data=json.dumps({"project_id": "p-1"}),
                entity_type="project",
                entity_id="p-1",
            ),
            asynchronous=False,
        )
        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.context() == {"kind": "generic", "project_id": "p-1"}

    def test_command_rejects_non_object_context(self):
        with pytest.raises(ValidationError):
            current_domain.process(
                NotifyUser(
                    recipient_id="user-2",
                    notification_type="system",
                    title="Hello",
                    message="World",
                    context_data=json.dumps(["not", "an", "object"]),
                ),
                asynchronous=False,
            )
