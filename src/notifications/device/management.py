"""Device registration commands + handlers."""

import structlog
from notifications.device.device import UserDevice, find_device
from notifications.domain import notifications
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

logger = structlog.get_logger(__name__)


@notifications.command(part_of="UserDevice")
class RegisterDevice:
    """Register (or refresh) a push token for a user."""

    user_id: Identifier(required=True)
    platform: String(required=True, max_length=20)
    token: Text(required=True)
    device_name: String(max_length=255)


@notifications.command(part_of="UserDevice")
class DisableDevicePush:
    """Stop sending push notifications to one of the user's devices."""

    user_id: Identifier(required=True)
    device_id: Identifier(required=True)


@notifications.command(part_of="UserDevice")
class RemoveDevice:
    """Forget one of the user's devices."""

    user_id: Identifier(required=True)
    device_id: Identifier(required=True)


def _owned_device(user_id, device_id) -> UserDevice:
    repo = current_domain.repository_for(UserDevice)
    try:
        device = repo.get(str(device_id))
    except ObjectNotFoundError:
        raise ObjectNotFoundError("Device not found or unauthorized") from None
    if str(device.user_id) != str(user_id):
        raise ObjectNotFoundError("Device not found or unauthorized")
    return device


@notifications.command_handler(part_of=UserDevice)
class ManageDevicesHandler:
    @handle(RegisterDevice)
    def register_device(self, command: RegisterDevice):
        repo = current_domain.repository_for(UserDevice)
        device = find_device(command.user_id, command.token)

        if device is None:
            device = UserDevice.register(
                user_id=str(command.user_id),
                platform=command.platform,
                token=command.token,
                device_name=command.device_name,
            )
        else:
            device.refresh(command.platform, command.device_name)
        repo.add(device)

        logger.info(
            "Device registered",
            user_id=str(command.user_id),
            device_id=str(device.id),
            platform=command.platform,
        )
        return str(device.id)

    @handle(DisableDevicePush)
    def disable_push(self, command: DisableDevicePush):
        device = _owned_device(command.user_id, command.device_id)
        device.disable_push()
        current_domain.repository_for(UserDevice).add(device)

    @handle(RemoveDevice)
    def remove_device(self, command: RemoveDevice):
        device = _owned_device(command.user_id, command.device_id)
        current_domain.repository_for(UserDevice)._dao.delete(device)
        logger.info("Device removed", user_id=str(command.user_id), device_id=str(command.device_id))
