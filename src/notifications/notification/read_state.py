"""Read-state API — mark one, mark all, count unread.

Every operation is scoped to the calling user. Marking a notification that
does not exist and one that belongs to someone else fail identically, so
callers cannot discover other users' notifications.
"""

import structlog
from notifications.domain import notifications
from notifications.notification.notification import Notification
from notifications.principal import current_principal
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)

NOT_FOUND_MESSAGE = "Notification not found or unauthorized"


def _unread_for(user_id: str) -> list[Notification]:
    repo = current_domain.repository_for(Notification)
    return repo._dao.query.filter(recipient_id=str(user_id), is_read=False).limit(None).all().items


def unread_count(user_id: str | None = None) -> int:
    """Number of unread notifications for the user; 0 when none (or no user)."""
    user_id = user_id or current_principal()
    if not user_id:
        return 0
    return len(_unread_for(user_id))


def list_notifications(user_id: str, unread_only: bool = False, limit: int = 50) -> list[Notification]:
    """The user's notifications, newest first."""
    repo = current_domain.repository_for(Notification)
    filters = {"recipient_id": str(user_id)}
    if unread_only:
        filters["is_read"] = False
    return repo._dao.query.filter(**filters).order_by("-created_at").limit(limit).all().items


@notifications.command(part_of="Notification")
class MarkNotificationRead:
    """Mark one of the caller's notifications as read."""

    user_id: Identifier(required=True)
    notification_id: Identifier(required=True)


@notifications.command(part_of="Notification")
class MarkAllNotificationsRead:
    """Mark every unread notification of the caller as read."""

    user_id: Identifier(required=True)


@notifications.command_handler(part_of=Notification)
class ReadStateHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command: MarkNotificationRead):
        repo = current_domain.repository_for(Notification)
        try:
            notification = repo.get(str(command.notification_id))
        except ObjectNotFoundError:
            raise ObjectNotFoundError(NOT_FOUND_MESSAGE) from None

        if str(notification.recipient_id) != str(command.user_id):
            raise ObjectNotFoundError(NOT_FOUND_MESSAGE)

        if notification.mark_read():
            repo.add(notification)
        return str(notification.id)

    @handle(MarkAllNotificationsRead)
    def mark_all_read(self, command: MarkAllNotificationsRead):
        repo = current_domain.repository_for(Notification)
        count = 0
        for notification in _unread_for(command.user_id):
            if notification.mark_read():
                repo.add(notification)
                count += 1

        logger.info("Notifications marked read", user_id=str(command.user_id), count=count)
        return count


# ---------------------------------------------------------------------------
# Caller-scoped entry points (principal from `acting_as`)
# ---------------------------------------------------------------------------
def mark_read(notification_id: str, user_id: str | None = None) -> None:
    user_id = user_id or current_principal()
    if not user_id:
        raise ObjectNotFoundError(NOT_FOUND_MESSAGE)
    current_domain.process(
        MarkNotificationRead(user_id=str(user_id), notification_id=str(notification_id)),
        asynchronous=False,
    )


def mark_all_read(user_id: str | None = None) -> int:
    user_id = user_id or current_principal()
    if not user_id:
        return 0
    return current_domain.process(MarkAllNotificationsRead(user_id=str(user_id)), asynchronous=False)
