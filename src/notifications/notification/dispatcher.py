"""Notification dispatcher — the single entry point for creating notifications.

For one recipient:

    1. persist the Notification (the in-app feed row)
    2. record realtime delivery, already delivered
    3. resolve channel preferences ("system" bypasses them)
    4. queue one email, and one push message per push-enabled device

The functions here never open a unit of work of their own. Called from a
command or event handler, everything they write commits or rolls back with
that handler's unit of work.
"""

import json

import structlog
from notifications.delivery.delivery_record import DeliveryRecord
from notifications.device.device import devices_for
from notifications.directory import get_directory
from notifications.domain import notifications
from notifications.notification.notification import (
    Notification,
    NotificationPriority,
    NotificationType,
)
from notifications.notification.payloads import payload_to_dict
from notifications.preference.resolver import ALL_ENABLED, resolve_preferences
from notifications.principal import current_principal
from notifications.queue.email_queue import EmailQueueItem, is_valid_email
from notifications.queue.push_queue import PushQueueItem
from notifications.queue.scheduling import email_scheduled_for, push_scheduled_for
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from pydantic import ValidationError as PayloadValidationError

logger = structlog.get_logger(__name__)

PUSH_ICON = "/icon-192x192.png"
PUSH_BADGE = "/icon-72x72.png"


def create_notification(
    recipient_id: str,
    notification_type: str,
    title: str,
    message: str,
    context=None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    priority: str = NotificationPriority.MEDIUM.value,
    created_by: str | None = None,
) -> str:
    """Create a notification for one recipient and fan it out to channels.

    Args:
        context: a payload model from `notifications.notification.payloads`
            or a plain dict (validated against its `kind` when known).
        created_by: defaults to the acting principal.

    Returns:
        The new notification's id.

    Raises:
        ValidationError: missing recipient, blank or oversized title/message,
            unknown type/priority/entity type, or a malformed payload.
    """
    if not recipient_id:
        raise ValidationError({"recipient_id": ["Recipient is required"]})

    try:
        context_data = payload_to_dict(context)
    except PayloadValidationError as exc:
        raise ValidationError({"context": [error["msg"] for error in exc.errors()]}) from exc

    creator = created_by or current_principal()

    notification = Notification.create(
        recipient_id=str(recipient_id),
        notification_type=notification_type,
        title=title,
        message=message,
        context_data=json.dumps(context_data),
        entity_type=entity_type,
        entity_id=entity_id,
        priority=priority,
        created_by=str(creator) if creator else None,
    )
    current_domain.repository_for(Notification).add(notification)

    # The in-app feed is authoritative: realtime delivery is recorded
    # synchronously, before any channel queue item.
    current_domain.repository_for(DeliveryRecord).add(
        DeliveryRecord.realtime(
            notification_id=str(notification.id),
            recipient_id=str(recipient_id),
            delivered_at=notification.created_at,
        )
    )

    if notification_type == NotificationType.SYSTEM.value:
        channels = ALL_ENABLED
    else:
        channels = resolve_preferences(str(recipient_id), notification_type)

    email_item_id = enqueue_email(notification) if channels.email else None
    push_item_ids = enqueue_push(notification) if channels.push else []

    logger.info(
        "Notification created",
        notification_id=str(notification.id),
        recipient_id=str(recipient_id),
        notification_type=notification_type,
        priority=notification.priority,
        email_queued=email_item_id is not None,
        push_queued=len(push_item_ids),
    )

    return str(notification.id)


def enqueue_email(notification: Notification) -> str | None:
    """Queue the notification's email. Returns None when the recipient has no usable address."""
    profile = get_directory().user_profile(str(notification.recipient_id))
    if profile is None or not is_valid_email(profile.email):
        logger.info(
            "Email skipped, no usable address",
            notification_id=str(notification.id),
            recipient_id=str(notification.recipient_id),
        )
        return None

    item = EmailQueueItem.enqueue(
        recipient_id=str(notification.recipient_id),
        notification_id=str(notification.id),
        to_email=profile.email,
        to_name=profile.display_name,
        subject=notification.title,
        template_id=notification.notification_type,
        template_data={
            "user_id": str(notification.recipient_id),
            "user_name": profile.display_name,
            "user_email": profile.email,
            "notification_id": str(notification.id),
            "title": notification.title,
            "message": notification.message,
            "type": notification.notification_type,
            "data": notification.context(),
            "entity_type": notification.entity_type,
            "entity_id": notification.entity_id,
            "priority": notification.priority,
            "created_at": notification.created_at.isoformat(),
        },
        priority=notification.priority,
        scheduled_for=email_scheduled_for(notification.priority, now=notification.created_at),
    )
    current_domain.repository_for(EmailQueueItem).add(item)
    return str(item.id)


def build_push_payload(notification: Notification) -> dict:
    return {
        "title": notification.title,
        "body": notification.message,
        "icon": PUSH_ICON,
        "badge": PUSH_BADGE,
        "tag": f"notification-{notification.id}",
        "data": {
            "notification_id": str(notification.id),
            "entity_type": notification.entity_type,
            "entity_id": notification.entity_id,
            "priority": notification.priority,
            "created_at": notification.created_at.isoformat(),
            "notification_data": notification.context(),
        },
        "actions": [
            {"action": "view", "title": "View"},
            {"action": "dismiss", "title": "Dismiss"},
        ],
    }


def enqueue_push(notification: Notification) -> list[str]:
    """Queue one push message per push-enabled device of the recipient."""
    devices = devices_for(str(notification.recipient_id), push_enabled_only=True)
    if not devices:
        logger.debug("Push skipped, no devices", recipient_id=str(notification.recipient_id))
        return []

    payload = build_push_payload(notification)
    scheduled_for = push_scheduled_for(now=notification.created_at)
    repo = current_domain.repository_for(PushQueueItem)

    item_ids = []
    for device in devices:
        item = PushQueueItem.enqueue(
            notification_id=str(notification.id),
            recipient_id=str(notification.recipient_id),
            device_id=str(device.id),
            platform=device.platform,
            token=device.token,
            payload=payload,
            scheduled_for=scheduled_for,
            priority=notification.priority,
        )
        repo.add(item)
        item_ids.append(str(item.id))

    return item_ids


# ---------------------------------------------------------------------------
# Command interface
# ---------------------------------------------------------------------------
@notifications.command(part_of="Notification")
class NotifyUser:
    """Create a notification for one user."""

    recipient_id: Identifier(required=True)
    notification_type: String(required=True, max_length=50)
    title: Text(required=True)
    message: Text(required=True)
    context_data: Text()  # JSON object
    entity_type: String(max_length=50)
    entity_id: String(max_length=255)
    priority: String(max_length=20, default=NotificationPriority.MEDIUM.value)
    created_by: Identifier()


@notifications.command_handler(part_of=Notification)
class NotifyUserHandler:
    @handle(NotifyUser)
    def notify_user(self, command: NotifyUser):
        try:
            context = json.loads(command.context_data) if command.context_data else None
        except json.JSONDecodeError as exc:
            raise ValidationError({"context_data": ["Context must be a JSON object"]}) from exc
        if context is not None and not isinstance(context, dict):
            raise ValidationError({"context_data": ["Context must be a JSON object"]})

        return create_notification(
            recipient_id=str(command.recipient_id),
            notification_type=command.notification_type,
            title=command.title,
            message=command.message,
            context=context,
            entity_type=command.entity_type,
            entity_id=command.entity_id,
            priority=command.priority,
            created_by=str(command.created_by) if command.created_by else None,
        )
