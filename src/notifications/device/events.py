"""Domain events for the UserDevice aggregate."""

from notifications.domain import notifications
from protean.fields import DateTime, Identifier, String


@notifications.event(part_of="UserDevice")
class DeviceRegistered:
    """A user registered a device token for push notifications."""

    __version__ = 1

    device_id: Identifier(required=True)
    user_id: Identifier(required=True)
    platform: String(required=True)
    registered_at: DateTime(required=True)


@notifications.event(part_of="UserDevice")
class DevicePushDisabled:
    """Push delivery was switched off for a device."""

    __version__ = 1

    device_id: Identifier(required=True)
    user_id: Identifier(required=True)
    disabled_at: DateTime(required=True)
