"""Channel adapter registry — outbound senders used by the queue processor.

Provides singleton access to channel adapters. Uses fake adapters by
default; a deployment installs real mail and push providers with
`set_channel` at startup.
"""

from notifications.delivery.delivery_record import DeliveryChannel

_channel_instances: dict[str, object] = {}


def get_channel(channel_type: str):
    """Return the configured channel adapter (singleton per channel type).

    Args:
        channel_type: "email" or "push"
    """
    if channel_type not in _channel_instances:
        if channel_type == DeliveryChannel.EMAIL.value:
            from notifications.channel.fake_email import FakeEmailAdapter

            _channel_instances[channel_type] = FakeEmailAdapter()
        elif channel_type == DeliveryChannel.PUSH.value:
            from notifications.channel.fake_push import FakePushAdapter

            _channel_instances[channel_type] = FakePushAdapter()
        else:
            raise ValueError(f"No sender available for channel: {channel_type}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
