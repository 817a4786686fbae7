"""User cascade — forget everything stored for a deleted user."""

import structlog
from notifications.delivery.delivery_record import DeliveryRecord
from notifications.device.device import UserDevice
from notifications.domain import notifications
from notifications.notification.notification import Notification
from notifications.preference.preference import NotificationPreference
from notifications.queue.email_queue import EmailQueueItem
from notifications.queue.push_queue import PushQueueItem
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.identity import UserDeleted

logger = structlog.get_logger(__name__)

notifications.register_external_event(UserDeleted, "Identity.UserDeleted.v1")

# Aggregate -> field holding the owning user
_OWNED_BY = (
    (PushQueueItem, "recipient_id"),
    (EmailQueueItem, "recipient_id"),
    (DeliveryRecord, "recipient_id"),
    (Notification, "recipient_id"),
    (UserDevice, "user_id"),
    (NotificationPreference, "user_id"),
)


def purge_user(user_id: str) -> dict[str, int]:
    """Delete every row owned by the user. Returns deleted counts per aggregate."""
    deleted = {}
    for aggregate_cls, owner_field in _OWNED_BY:
        dao = current_domain.repository_for(aggregate_cls)._dao
        rows = dao.query.filter(**{owner_field: str(user_id)}).limit(None).all().items
        for row in rows:
            dao.delete(row)
        deleted[aggregate_cls.__name__] = len(rows)

    logger.info("User notification data purged", user_id=str(user_id), **deleted)
    return deleted


@notifications.event_handler(part_of=Notification, stream_category="identity::user")
class IdentityEventsHandler:
    """Reacts to Identity domain events."""

    @handle(UserDeleted)
    def on_user_deleted(self, event: UserDeleted) -> None:
        purge_user(str(event.user_id))
