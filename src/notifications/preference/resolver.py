"""Preference resolver — which channels a user wants for a notification type."""

from dataclasses import dataclass

from notifications.preference.preference import NotificationPreference
from protean.utils.globals import current_domain


@dataclass(frozen=True)
class ChannelPreferences:
    email: bool = True
    push: bool = True
    in_app: bool = True


ALL_ENABLED = ChannelPreferences()


def find_preference(user_id: str, notification_type: str) -> NotificationPreference | None:
    repo = current_domain.repository_for(NotificationPreference)
    rows = (
        repo._dao.query.filter(
            user_id=str(user_id),
            notification_type=notification_type,
        )
        .all()
        .items
    )
    return rows[0] if rows else None


def resolve_preferences(user_id: str, notification_type: str) -> ChannelPreferences:
    """Resolve the enabled channels for (user, type).

    A missing row is not an error: it resolves to every channel enabled.
    """
    preference = find_preference(user_id, notification_type)
    if preference is None:
        return ALL_ENABLED

    return ChannelPreferences(
        email=bool(preference.email_enabled),
        push=bool(preference.push_enabled),
        in_app=bool(preference.in_app_enabled),
    )
