"""UserDevice aggregate — a push-capable device registered by a user.

(user_id, token) is unique: registering a known token again refreshes the
existing row instead of adding a second one.
"""

from datetime import UTC, datetime
from enum import Enum

from notifications.device.events import DevicePushDisabled, DeviceRegistered
from notifications.domain import notifications
from protean.fields import Boolean, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain


class DevicePlatform(Enum):
    IOS = "ios"
    ANDROID = "android"
    WEB = "web"


@notifications.aggregate
class UserDevice:
    """A device token that push notifications can be sent to."""

    user_id: Identifier(required=True)
    platform: String(choices=DevicePlatform, required=True)
    token: Text(required=True)
    device_name: String(max_length=255)
    push_enabled: Boolean(default=True)
    last_used: DateTime()

    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(cls, user_id, platform, token, device_name=None):
        now = datetime.now(UTC)

        device = cls(
            user_id=user_id,
            platform=platform,
            token=token,
            device_name=device_name,
            push_enabled=True,
            last_used=now,
            created_at=now,
            updated_at=now,
        )

        device.raise_(
            DeviceRegistered(
                device_id=str(device.id),
                user_id=str(user_id),
                platform=platform,
                registered_at=now,
            )
        )

        return device

    def refresh(self, platform, device_name=None):
        """Re-registration of a known token: bump last-used and re-enable push."""
        now = datetime.now(UTC)
        self.platform = platform
        if device_name is not None:
            self.device_name = device_name
        self.push_enabled = True
        self.last_used = now
        self.updated_at = now

    def disable_push(self):
        if not self.push_enabled:
            return

        now = datetime.now(UTC)
        self.push_enabled = False
        self.updated_at = now

        self.raise_(
            DevicePushDisabled(
                device_id=str(self.id),
                user_id=str(self.user_id),
                disabled_at=now,
            )
        )


def devices_for(user_id: str, push_enabled_only: bool = False) -> list[UserDevice]:
    repo = current_domain.repository_for(UserDevice)
    filters = {"user_id": str(user_id)}
    if push_enabled_only:
        filters["push_enabled"] = True
    return repo._dao.query.filter(**filters).limit(None).all().items


def find_device(user_id: str, token: str) -> UserDevice | None:
    for device in devices_for(user_id):
        if device.token == token:
            return device
    return None
