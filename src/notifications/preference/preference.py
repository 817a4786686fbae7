"""NotificationPreference aggregate — per-user, per-type channel toggles.

One row per (user, notification type). Absence of a row means every channel
is enabled; see `notifications.preference.resolver`.
"""

from datetime import UTC, datetime

from notifications.domain import notifications
from notifications.notification.notification import NotificationType
from notifications.preference.events import PreferenceCreated, PreferenceUpdated
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String


@notifications.aggregate
class NotificationPreference:
    """Which channels a user receives for one notification type."""

    user_id: Identifier(required=True)
    notification_type: String(choices=NotificationType, required=True)

    email_enabled: Boolean(default=True)
    push_enabled: Boolean(default=True)
    in_app_enabled: Boolean(default=True)

    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, user_id, notification_type, email_enabled=True, push_enabled=True, in_app_enabled=True):
        """Store an explicit preference row."""
        now = datetime.now(UTC)

        preference = cls(
            user_id=user_id,
            notification_type=notification_type,
            email_enabled=email_enabled,
            push_enabled=push_enabled,
            in_app_enabled=in_app_enabled,
            created_at=now,
            updated_at=now,
        )

        preference.raise_(
            PreferenceCreated(
                preference_id=str(preference.id),
                user_id=str(user_id),
                notification_type=notification_type,
                email_enabled=email_enabled,
                push_enabled=push_enabled,
                in_app_enabled=in_app_enabled,
                created_at=now,
            )
        )

        return preference

    def update_channels(self, email=None, push=None, in_app=None):
        """Update channel toggles. Pass None to keep a toggle unchanged."""
        if email is None and push is None and in_app is None:
            raise ValidationError({"channels": ["At least one channel preference must be provided"]})

        now = datetime.now(UTC)

        if email is not None:
            self.email_enabled = email
        if push is not None:
            self.push_enabled = push
        if in_app is not None:
            self.in_app_enabled = in_app
        self.updated_at = now

        self.raise_(
            PreferenceUpdated(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                notification_type=self.notification_type,
                email_enabled=self.email_enabled,
                push_enabled=self.push_enabled,
                in_app_enabled=self.in_app_enabled,
                updated_at=now,
            )
        )
