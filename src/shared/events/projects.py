"""Cross-domain event contracts for project-management changes.

Tasks, task metadata fields and approvals are owned by the Projects part of
the application. It publishes these events after every relevant row change,
carrying old/new snapshots as JSON and the id of the acting user, so the
Notifications domain can fan out without reading Projects' tables.

They are registered as external events via domain.register_external_event()
with matching __type__ strings so Protean's stream deserialization works
correctly.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String, Text


class TaskUpdated(BaseEvent):
    """A task row was updated.

    `old_task` / `new_task` are JSON objects with the task's user-facing
    fields: title, description, status_id, priority_id, due_date,
    project_id, parent_task_id (plus bookkeeping such as updated_at).
    """

    __version__ = 1

    task_id = Identifier(required=True)
    actor_id = Identifier()
    old_task = Text(required=True)  # JSON
    new_task = Text(required=True)  # JSON
    updated_at = DateTime(required=True)


class TaskMetadataChanged(BaseEvent):
    """A custom metadata field of a task was added, updated or removed."""

    __version__ = 1

    task_id = Identifier(required=True)
    operation = String(required=True, choices=("INSERT", "UPDATE", "DELETE"))
    key = String(required=True, max_length=255)
    old_key = String(max_length=255)
    old_value = Text()
    new_value = Text()
    actor_id = Identifier()
    changed_at = DateTime(required=True)


class ApprovalRequested(BaseEvent):
    """An approval request was created."""

    __version__ = 1

    approval_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    approver_ids = Text(required=True)  # JSON list of user ids
    entity_type = String(max_length=50)
    entity_id = String(max_length=255)
    requested_at = DateTime(required=True)


class ApprovalStatusChanged(BaseEvent):
    """The status of an approval request changed.

    `action_taken_by` is the user who changed the status; `user_id` is the
    generic actor on the row and is used when the former is missing.
    """

    __version__ = 1

    approval_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    entity_type = String(max_length=50)
    entity_id = String(max_length=255)
    old_status = String(max_length=50)
    new_status = String(required=True, max_length=50)
    action_taken_by = Identifier()
    user_id = Identifier()
    changed_at = DateTime(required=True)


class ApprovalCommentAdded(BaseEvent):
    """Someone commented on an approval request."""

    __version__ = 1

    approval_id = Identifier(required=True)
    comment_id = Identifier(required=True)
    commenter_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    approver_ids = Text(required=True)  # JSON list of user ids
    entity_type = String(max_length=50)
    entity_id = String(max_length=255)
    comment = Text()
    added_at = DateTime(required=True)


class ApprovalResponseSubmitted(BaseEvent):
    """An approver responded to an approval request."""

    __version__ = 1

    approval_id = Identifier(required=True)
    response_id = Identifier(required=True)
    approver_id = Identifier(required=True)
    requester_id = Identifier(required=True)
    approver_ids = Text(required=True)  # JSON list of user ids
    entity_type = String(max_length=50)
    entity_id = String(max_length=255)
    status = String(required=True, max_length=50)
    comment = Text()
    responded_at = DateTime(required=True)
