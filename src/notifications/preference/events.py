"""Domain events for the NotificationPreference aggregate."""

from notifications.domain import notifications
from protean.fields import Boolean, DateTime, Identifier, String


@notifications.event(part_of="NotificationPreference")
class PreferenceCreated:
    """A user stored an explicit channel preference for a notification type."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    notification_type: String(required=True)
    email_enabled: Boolean(required=True)
    push_enabled: Boolean(required=True)
    in_app_enabled: Boolean(required=True)
    created_at: DateTime(required=True)


@notifications.event(part_of="NotificationPreference")
class PreferenceUpdated:
    """A user changed the channels enabled for a notification type."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    notification_type: String(required=True)
    email_enabled: Boolean(required=True)
    push_enabled: Boolean(required=True)
    in_app_enabled: Boolean(required=True)
    updated_at: DateTime(required=True)
