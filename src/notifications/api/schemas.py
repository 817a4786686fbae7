"""Pydantic request/response models for the Notifications API.

API schemas are separate from Protean commands (anti-corruption pattern).
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class CreateNotificationRequest(BaseModel):
    recipient_id: str = Field(..., min_length=1)
    notification_type: str = Field(..., examples=["system"])
    title: str
    message: str
    context: dict[str, Any] | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    priority: str = "medium"


class UpdatePreferenceRequest(BaseModel):
    email_enabled: bool | None = None
    push_enabled: bool | None = None
    in_app_enabled: bool | None = None


class RegisterDeviceRequest(BaseModel):
    platform: str = Field(..., examples=["ios", "android", "web"])
    token: str = Field(..., min_length=1)
    device_name: str | None = None


class MaintenanceRequest(BaseModel):
    as_of: datetime | None = None
    limit: int | None = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class NotificationCreatedResponse(BaseModel):
    notification_id: str


class NotificationResponse(BaseModel):
    notification_id: str
    notification_type: str
    priority: str
    title: str
    message: str
    context: dict[str, Any] = {}
    entity_type: str | None = None
    entity_id: str | None = None
    is_read: bool
    read_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]


class CountResponse(BaseModel):
    count: int


class PreferenceResponse(BaseModel):
    user_id: str
    notification_type: str
    email_enabled: bool
    push_enabled: bool
    in_app_enabled: bool


class DeviceRegisteredResponse(BaseModel):
    device_id: str


class QueueCountsResponse(BaseModel):
    email: int = 0
    push: int = 0


class ProcessQueueResponse(BaseModel):
    sent: int = 0
    failed: int = 0


class QueueStatusEntry(BaseModel):
    count: int
    oldest: datetime | None = None
    newest: datetime | None = None


class QueueStatusResponse(BaseModel):
    email: dict[str, QueueStatusEntry] = {}
    push: dict[str, QueueStatusEntry] = {}


class DeliveryLogEntry(BaseModel):
    item_id: str
    channel: str
    status: str
    destination: str | None = None
    retry_count: int = 0
    last_error: str | None = None
    dead_lettered: bool = False
    scheduled_for: datetime | None = None
    completed_at: datetime | None = None


class DeliveryLogResponse(BaseModel):
    notification_id: str
    entries: list[DeliveryLogEntry]
