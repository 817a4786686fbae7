"""Shared BDD fixtures and step definitions for the Notifications domain."""

import pytest
from notifications.device.device import UserDevice
from notifications.notification.notification import Notification
from notifications.preference.preference import NotificationPreference
from notifications.queue.email_queue import EmailQueueItem
from notifications.queue.push_queue import PushQueueItem
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, then


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


def notifications_for(user_id):
    return current_domain.repository_for(Notification)._dao.query.filter(recipient_id=user_id).all().items


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a user "{user_id}" named "{first_name} {last_name}"'))
def user_with_name(directory, user_id, first_name, last_name):
    directory.add_user(
        user_id,
        email=f"{user_id}@example.com",
        first_name=first_name,
        last_name=last_name,
    )


@given(parsers.cfparse('user "{user_id}" has a push-enabled "{platform}" device'))
def user_has_device(user_id, platform):
    current_domain.repository_for(UserDevice).add(
        UserDevice.register(user_id=user_id, platform=platform, token=f"{platform}-{user_id}")
    )


@given(parsers.cfparse('user "{user_id}" has disabled "{channel}" for "{notification_type}"'))
def user_disabled_channel(user_id, channel, notification_type):
    current_domain.repository_for(NotificationPreference).add(
        NotificationPreference.create(
            user_id=user_id,
            notification_type=notification_type,
            **{f"{channel}_enabled": False},
        )
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('user "{user_id}" has {count:d} notification'))
@then(parsers.cfparse('user "{user_id}" has {count:d} notifications'))
def user_has_notifications(user_id, count):
    assert len(notifications_for(user_id)) == count


@then(parsers.cfparse('user "{user_id}" has {count:d} queued email'))
@then(parsers.cfparse('user "{user_id}" has {count:d} queued emails'))
def user_has_emails(user_id, count):
    items = current_domain.repository_for(EmailQueueItem)._dao.query.filter(recipient_id=user_id).all().items
    assert len(items) == count


@then(parsers.cfparse('user "{user_id}" has {count:d} queued push message'))
@then(parsers.cfparse('user "{user_id}" has {count:d} queued push messages'))
def user_has_pushes(user_id, count):
    items = current_domain.repository_for(PushQueueItem)._dao.query.filter(recipient_id=user_id).all().items
    assert len(items) == count


@then(parsers.cfparse('the notification for "{user_id}" has priority "{priority}"'))
def notification_priority(user_id, priority):
    assert [n.priority for n in notifications_for(user_id)] == [priority]


@then(parsers.cfparse('the notification for "{user_id}" is titled "{title}"'))
def notification_title(user_id, title):
    assert [n.title for n in notifications_for(user_id)] == [title]


@then(parsers.cfparse('the notification for "{user_id}" reads "{message}"'))
def notification_message(user_id, message):
    assert [n.message for n in notifications_for(user_id)] == [message]


@then("the action fails as not found")
def action_not_found(error):
    assert isinstance(error["exc"], ObjectNotFoundError)


@then("the action fails validation")
def action_invalid(error):
    assert isinstance(error["exc"], ValidationError)
