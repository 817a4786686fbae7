"""UpdateNotificationPreference command + handler — upsert a (user, type) preference."""

import structlog
from notifications.domain import notifications
from notifications.preference.preference import NotificationPreference
from notifications.preference.resolver import find_preference
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.command(part_of="NotificationPreference")
class UpdateNotificationPreference:
    """Set one or more channel toggles for a user and notification type."""

    user_id: Identifier(required=True)
    notification_type: String(required=True, max_length=50)
    email_enabled: Boolean()
    push_enabled: Boolean()
    in_app_enabled: Boolean()


@notifications.command_handler(part_of=NotificationPreference)
class ManagePreferencesHandler:
    @handle(UpdateNotificationPreference)
    def update_preference(self, command: UpdateNotificationPreference):
        repo = current_domain.repository_for(NotificationPreference)
        preference = find_preference(command.user_id, command.notification_type)

        if preference is None:
            # Unspecified toggles keep the implicit default (enabled)
            preference = NotificationPreference.create(
                user_id=str(command.user_id),
                notification_type=command.notification_type,
                email_enabled=command.email_enabled if command.email_enabled is not None else True,
                push_enabled=command.push_enabled if command.push_enabled is not None else True,
                in_app_enabled=command.in_app_enabled if command.in_app_enabled is not None else True,
            )
        else:
            preference.update_channels(
                email=command.email_enabled,
                push=command.push_enabled,
                in_app=command.in_app_enabled,
            )
        repo.add(preference)

        logger.info(
            "Notification preference saved",
            user_id=str(command.user_id),
            notification_type=command.notification_type,
        )
        return str(preference.id)
