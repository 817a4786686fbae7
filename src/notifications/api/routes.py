"""FastAPI routes for the Notifications domain.

Thin adapters that translate HTTP requests into domain commands and queries.
The calling user comes from the `X-User-Id` header, set by the gateway in
front of this service.
"""

import json

from fastapi import APIRouter, Depends, Header, HTTPException
from notifications.api.schemas import (
    CountResponse,
    CreateNotificationRequest,
    DeliveryLogEntry,
    DeliveryLogResponse,
    DeviceRegisteredResponse,
    MaintenanceRequest,
    NotificationCreatedResponse,
    NotificationListResponse,
    NotificationResponse,
    PreferenceResponse,
    ProcessQueueResponse,
    QueueCountsResponse,
    QueueStatusResponse,
    RegisterDeviceRequest,
    StatusResponse,
    UpdatePreferenceRequest,
)
from notifications.device.management import RegisterDevice, RemoveDevice
from notifications.notification.dispatcher import NotifyUser
from notifications.notification.notification import NotificationType
from notifications.notification.read_state import (
    MarkAllNotificationsRead,
    MarkNotificationRead,
    list_notifications,
    unread_count,
)
from notifications.preference.management import UpdateNotificationPreference
from notifications.preference.resolver import resolve_preferences
from notifications.principal import acting_as
from notifications.projections.delivery_log import delivery_log_for
from notifications.queue.maintenance import (
    CleanupNotificationQueues,
    RetryFailedQueueItems,
    queue_status,
)
from notifications.queue.processing import ProcessEmailQueue, ProcessPushQueue
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

router = APIRouter(prefix="/notifications", tags=["notifications"])


def current_user(x_user_id: str | None = Header(default=None)) -> str:
    """The calling user; 401 when the gateway did not identify one."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def _notification_response(notification) -> NotificationResponse:
    return NotificationResponse(
        notification_id=str(notification.id),
        notification_type=notification.notification_type,
        priority=notification.priority,
        title=notification.title,
        message=notification.message,
        context=notification.context(),
        entity_type=notification.entity_type,
        entity_id=notification.entity_id,
        is_read=bool(notification.is_read),
        read_at=notification.read_at,
        created_by=str(notification.created_by) if notification.created_by else None,
        created_at=notification.created_at,
    )


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@router.post("", status_code=201, response_model=NotificationCreatedResponse)
async def create_notification(
    body: CreateNotificationRequest,
    user_id: str = Depends(current_user),
) -> NotificationCreatedResponse:
    """Create a notification for one recipient (system and admin use)."""
    command = NotifyUser(
        recipient_id=body.recipient_id,
        notification_type=body.notification_type,
        title=body.title,
        message=body.message,
        context_data=json.dumps(body.context) if body.context is not None else None,
        entity_type=body.entity_type,
        entity_id=body.entity_id,
        priority=body.priority,
        created_by=user_id,
    )
    with acting_as(user_id):
        notification_id = current_domain.process(command, asynchronous=False)
    return NotificationCreatedResponse(notification_id=notification_id)


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    unread_only: bool = False,
    limit: int = 50,
    user_id: str = Depends(current_user),
) -> NotificationListResponse:
    """The caller's notifications, newest first."""
    items = list_notifications(user_id, unread_only=unread_only, limit=limit)
    return NotificationListResponse(notifications=[_notification_response(n) for n in items])


@router.get("/unread-count", response_model=CountResponse)
async def get_unread_count(user_id: str = Depends(current_user)) -> CountResponse:
    return CountResponse(count=unread_count(user_id))


@router.post("/read-all", response_model=CountResponse)
async def mark_all_read(user_id: str = Depends(current_user)) -> CountResponse:
    """Mark every unread notification of the caller as read."""
    with acting_as(user_id):
        count = current_domain.process(MarkAllNotificationsRead(user_id=user_id), asynchronous=False)
    return CountResponse(count=count)


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------
def _known_type(notification_type: str) -> str:
    if notification_type not in {t.value for t in NotificationType}:
        raise ValidationError({"notification_type": [f"Unknown notification type: {notification_type}"]})
    return notification_type


@router.get("/preferences/{notification_type}", response_model=PreferenceResponse)
async def get_preference(notification_type: str, user_id: str = Depends(current_user)) -> PreferenceResponse:
    """Effective channel preferences of the caller for one notification type."""
    channels = resolve_preferences(user_id, _known_type(notification_type))
    return PreferenceResponse(
        user_id=user_id,
        notification_type=notification_type,
        email_enabled=channels.email,
        push_enabled=channels.push,
        in_app_enabled=channels.in_app,
    )


@router.put("/preferences/{notification_type}", response_model=PreferenceResponse)
async def update_preference(
    notification_type: str,
    body: UpdatePreferenceRequest,
    user_id: str = Depends(current_user),
) -> PreferenceResponse:
    """Set one or more channel toggles for one notification type."""
    command = UpdateNotificationPreference(
        user_id=user_id,
        notification_type=_known_type(notification_type),
        email_enabled=body.email_enabled,
        push_enabled=body.push_enabled,
        in_app_enabled=body.in_app_enabled,
    )
    with acting_as(user_id):
        current_domain.process(command, asynchronous=False)
    return await get_preference(notification_type, user_id)


# ---------------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------------
@router.post("/devices", status_code=201, response_model=DeviceRegisteredResponse)
async def register_device(
    body: RegisterDeviceRequest,
    user_id: str = Depends(current_user),
) -> DeviceRegisteredResponse:
    """Register (or refresh) a push token for the caller."""
    command = RegisterDevice(
        user_id=user_id,
        platform=body.platform,
        token=body.token,
        device_name=body.device_name,
    )
    with acting_as(user_id):
        device_id = current_domain.process(command, asynchronous=False)
    return DeviceRegisteredResponse(device_id=device_id)


@router.delete("/devices/{device_id}", response_model=StatusResponse)
async def remove_device(device_id: str, user_id: str = Depends(current_user)) -> StatusResponse:
    with acting_as(user_id):
        current_domain.process(RemoveDevice(user_id=user_id, device_id=device_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Maintenance: periodic background job endpoints
# ---------------------------------------------------------------------------
@router.post("/maintenance/process-email", response_model=ProcessQueueResponse)
async def process_email_queue(body: MaintenanceRequest | None = None) -> ProcessQueueResponse:
    """Send due emails through the configured email channel."""
    command = ProcessEmailQueue(as_of=body.as_of if body else None, limit=body.limit if body else None)
    return ProcessQueueResponse(**current_domain.process(command, asynchronous=False))


@router.post("/maintenance/process-push", response_model=ProcessQueueResponse)
async def process_push_queue(body: MaintenanceRequest | None = None) -> ProcessQueueResponse:
    """Send due push messages through the configured push channel."""
    command = ProcessPushQueue(as_of=body.as_of if body else None, limit=body.limit if body else None)
    return ProcessQueueResponse(**current_domain.process(command, asynchronous=False))


@router.post("/maintenance/retry-failed", response_model=QueueCountsResponse)
async def retry_failed(body: MaintenanceRequest | None = None) -> QueueCountsResponse:
    """Requeue failed items with retries left. Designed to run every few minutes."""
    command = RetryFailedQueueItems(as_of=body.as_of if body else None)
    return QueueCountsResponse(**current_domain.process(command, asynchronous=False))


@router.post("/maintenance/cleanup", response_model=QueueCountsResponse)
async def cleanup(body: MaintenanceRequest | None = None) -> QueueCountsResponse:
    """Delete settled queue items past retention. Designed to run daily."""
    command = CleanupNotificationQueues(as_of=body.as_of if body else None)
    return QueueCountsResponse(**current_domain.process(command, asynchronous=False))


@router.get("/maintenance/queue-status", response_model=QueueStatusResponse)
async def get_queue_status() -> QueueStatusResponse:
    return QueueStatusResponse(**queue_status())


# ---------------------------------------------------------------------------
# Single notification
# ---------------------------------------------------------------------------
@router.post("/{notification_id}/read", response_model=StatusResponse)
async def mark_read(notification_id: str, user_id: str = Depends(current_user)) -> StatusResponse:
    """Mark one of the caller's notifications as read (404 for anyone else's)."""
    with acting_as(user_id):
        current_domain.process(
            MarkNotificationRead(user_id=user_id, notification_id=notification_id),
            asynchronous=False,
        )
    return StatusResponse()


@router.get("/{notification_id}/deliveries", response_model=DeliveryLogResponse)
async def get_deliveries(notification_id: str) -> DeliveryLogResponse:
    """Email and push delivery history of one notification."""
    return DeliveryLogResponse(
        notification_id=notification_id,
        entries=[
            DeliveryLogEntry(
                item_id=str(entry.item_id),
                channel=entry.channel,
                status=entry.status,
                destination=entry.destination,
                retry_count=entry.retry_count or 0,
                last_error=entry.last_error,
                dead_lettered=bool(entry.dead_lettered),
                scheduled_for=entry.scheduled_for,
                completed_at=entry.completed_at,
            )
            for entry in delivery_log_for(notification_id)
        ],
    )
