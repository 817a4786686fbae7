"""Typed context payloads carried by notifications.

Each trigger builds one of the known shapes below; the `kind` field is the
discriminator. Anything without a known `kind` is kept as a GenericPayload so
callers can attach ad-hoc data without a schema change. Channel senders read
the payload back with `parse_payload`.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class TaskUpdatedPayload(_Payload):
    kind: Literal["task_updated"] = "task_updated"
    task_id: str
    task_title: str | None = None
    changes: list[str]
    change_summary: str
    updated_by: str | None = None
    updater_name: str | None = None
    project_name: str | None = None
    old_values: dict[str, Any] = {}
    new_values: dict[str, Any] = {}


class TaskMetadataChangedPayload(_Payload):
    kind: Literal["task_metadata_changed"] = "task_metadata_changed"
    task_id: str
    task_title: str | None = None
    metadata_change: bool = True
    operation: Literal["INSERT", "UPDATE", "DELETE"]
    metadata_key: str
    old_value: str | None = None
    new_value: str | None = None
    change_description: str
    updated_by: str | None = None
    updater_name: str | None = None
    project_name: str | None = None


class ApprovalRequestedPayload(_Payload):
    kind: Literal["approval_requested"] = "approval_requested"
    approval_id: str
    entity_type: str | None = None
    entity_id: str | None = None
    entity_title: str
    requested_by: str
    requester_name: str | None = None
    role: Literal["requester", "approver"]
    status: str | None = None


class ApprovalStatusChangedPayload(_Payload):
    kind: Literal["approval_status_changed"] = "approval_status_changed"
    approval_id: str
    entity_type: str | None = None
    entity_id: str | None = None
    entity_title: str
    old_status: str | None = None
    new_status: str
    approved_by: str
    approved_by_name: str | None = None


class ApprovalCommentPayload(_Payload):
    kind: Literal["approval_comment"] = "approval_comment"
    approval_id: str
    comment_id: str
    comment_preview: str
    entity_type: str | None = None
    entity_id: str | None = None
    entity_title: str
    commenter_id: str
    commenter_name: str | None = None
    role: Literal["requester", "approver"]


class ApprovalResponsePayload(_Payload):
    kind: Literal["approval_response"] = "approval_response"
    approval_id: str
    response_id: str
    response_status: str
    entity_type: str | None = None
    entity_id: str | None = None
    entity_title: str
    approver_id: str
    approver_name: str | None = None
    comments: str | None = None
    responded_at: str | None = None


class GenericPayload(BaseModel):
    """Escape hatch for payloads without a registered shape."""

    model_config = ConfigDict(extra="allow")

    kind: str = "generic"


KnownPayload = Annotated[
    TaskUpdatedPayload
    | TaskMetadataChangedPayload
    | ApprovalRequestedPayload
    | ApprovalStatusChangedPayload
    | ApprovalCommentPayload
    | ApprovalResponsePayload,
    Field(discriminator="kind"),
]

_known_adapter = TypeAdapter(KnownPayload)

KNOWN_KINDS = {
    "task_updated",
    "task_metadata_changed",
    "approval_requested",
    "approval_status_changed",
    "approval_comment",
    "approval_response",
}


def parse_payload(data: dict | None) -> BaseModel:
    """Decode a stored payload into its typed shape (GenericPayload if unknown)."""
    data = data or {}
    if data.get("kind") in KNOWN_KINDS:
        return _known_adapter.validate_python(data)
    return GenericPayload(**data)


def payload_to_dict(payload: BaseModel | dict | None) -> dict:
    """Normalise a payload argument to a JSON-ready dict.

    Dicts are validated through `parse_payload` so that a dict carrying a
    known `kind` must match that shape.
    """
    if payload is None:
        return {}
    if isinstance(payload, dict):
        payload = parse_payload(payload)
    return payload.model_dump(mode="json")
