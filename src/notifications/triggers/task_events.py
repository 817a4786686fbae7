"""Task triggers — notify a task's assignees when the task or its metadata changes.

Listens for TaskUpdated and TaskMetadataChanged from the Projects part of
the application. The acting user is never notified of their own change.
"""

import json

import structlog
from notifications.directory import get_directory
from notifications.domain import notifications
from notifications.notification.dispatcher import create_notification
from notifications.notification.notification import (
    EntityType,
    Notification,
    NotificationPriority,
    NotificationType,
)
from notifications.notification.payloads import TaskMetadataChangedPayload, TaskUpdatedPayload
from notifications.principal import acting_as
from notifications.templates import render_template
from notifications.triggers.diffing import changed_fields, diff_and_notify, notify_recipients
from protean.utils.mixins import handle
from shared.events.projects import TaskMetadataChanged, TaskUpdated

logger = structlog.get_logger(__name__)

notifications.register_external_event(TaskUpdated, "Projects.TaskUpdated.v1")
notifications.register_external_event(TaskMetadataChanged, "Projects.TaskMetadataChanged.v1")

# User-significant task fields; anything else (updated_at, ...) is bookkeeping
TASK_WATCHED_FIELDS = (
    "title",
    "description",
    "status_id",
    "priority_id",
    "due_date",
    "project_id",
    "parent_task_id",
)
ESCALATING_TASK_FIELDS = {"status_id", "due_date"}
ESCALATING_METADATA_KEYS = {"due_date", "status", "priority"}

SOMEONE = "Someone"
EMPTY_VALUE = "empty"


def _date_part(value) -> str:
    return str(value)[:10]


def _lookup_name(lookup, value) -> str:
    """Display name for a status/priority id, falling back to the raw id."""
    if value is None:
        return "none"
    return lookup(str(value)) or str(value)


def _named_change(label: str, lookup, before, after) -> str:
    return f"{label} ({_lookup_name(lookup, before)} → {_lookup_name(lookup, after)})"


def describe_task_change(field: str, old: dict, new: dict) -> str:
    """Human-readable description of one changed task field."""
    directory = get_directory()
    before, after = old.get(field), new.get(field)

    if field == "status_id":
        return _named_change("status", directory.status_name, before, after)
    if field == "priority_id":
        return _named_change("priority", directory.priority_name, before, after)
    if field == "due_date":
        if after is None:
            return "due date (removed)"
        if before is None:
            return f"due date (set to {_date_part(after)})"
        return f"due date ({_date_part(before)} → {_date_part(after)})"
    if field == "project_id":
        return "project"
    if field == "parent_task_id":
        if after is None:
            return "parent task (removed)"
        if before is None:
            return "parent task (set)"
        return "parent task (changed)"
    return field


def task_update_priority(changed: list[str]) -> str:
    if ESCALATING_TASK_FIELDS.intersection(changed):
        return NotificationPriority.HIGH.value
    return NotificationPriority.MEDIUM.value


def notify_task_updated(task_id: str, old_task: dict, new_task: dict, actor_id: str | None = None) -> list[str]:
    """Notify every assignee of the task, except the actor, about what changed.

    A change limited to bookkeeping fields is a no-op. Returns the ids of the
    notifications created.
    """
    task_id = str(task_id)
    directory = get_directory()

    def notify(recipient_id: str, changed: list[str], priority: str) -> str:
        changes = [describe_task_change(field, old_task, new_task) for field in changed]
        title = new_task.get("title") or directory.task_title(task_id)
        updater_name = directory.display_name(actor_id)
        project_id = new_task.get("project_id")

        rendered = render_template(
            NotificationType.TASK_UPDATED.value,
            "default",
            [title, updater_name or SOMEONE],
        )
        payload = TaskUpdatedPayload(
            task_id=task_id,
            task_title=title,
            changes=changes,
            change_summary=", ".join(changes),
            updated_by=str(actor_id) if actor_id else None,
            updater_name=updater_name,
            project_name=directory.project_name(str(project_id)) if project_id else None,
            old_values={field: old_task.get(field) for field in TASK_WATCHED_FIELDS},
            new_values={field: new_task.get(field) for field in TASK_WATCHED_FIELDS},
        )
        return create_notification(
            recipient_id=recipient_id,
            notification_type=NotificationType.TASK_UPDATED.value,
            title=rendered["subject"],
            message=rendered["message"],
            context=payload,
            entity_type=EntityType.TASK.value,
            entity_id=task_id,
            priority=priority,
            created_by=str(actor_id) if actor_id else None,
        )

    notification_ids = diff_and_notify(
        old_task,
        new_task,
        TASK_WATCHED_FIELDS,
        recipients=lambda: directory.task_assignees(task_id),
        actor_id=actor_id,
        priority_rule=task_update_priority,
        notify=notify,
    )

    if not notification_ids:
        logger.debug("Task update produced no notifications", task_id=task_id)
    else:
        logger.info("Task update notifications sent", task_id=task_id, count=len(notification_ids))
    return notification_ids


def _show(value) -> str:
    return EMPTY_VALUE if value is None else str(value)


def describe_metadata_change(operation: str, key: str, old_value, new_value) -> str:
    if operation == "INSERT":
        return f"added {key}: {_show(new_value)}"
    if operation == "UPDATE":
        return f"updated {key}: {_show(old_value)} → {_show(new_value)}"
    return f"removed {key}: {_show(old_value)}"


def metadata_change_priority(key: str) -> str:
    if key in ESCALATING_METADATA_KEYS:
        return NotificationPriority.HIGH.value
    return NotificationPriority.MEDIUM.value


def notify_task_metadata_changed(
    task_id: str,
    operation: str,
    key: str,
    old_value=None,
    new_value=None,
    actor_id: str | None = None,
    old_key: str | None = None,
) -> list[str]:
    """Notify every assignee of the task, except the actor, about a metadata change.

    An UPDATE that leaves both the key and the value unchanged is a no-op.
    For DELETE only the old value is meaningful.
    """
    task_id = str(task_id)
    operation = operation.upper()

    if operation == "UPDATE":
        before = {"key": old_key or key, "value": old_value}
        after = {"key": key, "value": new_value}
        if not changed_fields(before, after, ("key", "value")):
            logger.debug("Task metadata update without changes", task_id=task_id, key=key)
            return []
    if operation == "DELETE":
        new_value = None

    directory = get_directory()
    title = directory.task_title(task_id)
    updater_name = directory.display_name(actor_id)
    project_id = directory.task_project_id(task_id)
    description = describe_metadata_change(operation, key, old_value, new_value)
    priority = metadata_change_priority(key)

    rendered = render_template(
        NotificationType.TASK_UPDATED.value,
        "metadata_change",
        [updater_name or SOMEONE, title],
    )
    payload = TaskMetadataChangedPayload(
        task_id=task_id,
        task_title=title,
        operation=operation,
        metadata_key=key,
        old_value=None if old_value is None else str(old_value),
        new_value=None if new_value is None else str(new_value),
        change_description=description,
        updated_by=str(actor_id) if actor_id else None,
        updater_name=updater_name,
        project_name=directory.project_name(project_id) if project_id else None,
    )

    def notify(recipient_id: str) -> str:
        return create_notification(
            recipient_id=recipient_id,
            notification_type=NotificationType.TASK_UPDATED.value,
            title=rendered["subject"],
            message=rendered["message"],
            context=payload,
            entity_type=EntityType.TASK.value,
            entity_id=task_id,
            priority=priority,
            created_by=str(actor_id) if actor_id else None,
        )

    notification_ids = notify_recipients(directory.task_assignees(task_id), actor_id, notify)
    logger.info(
        "Task metadata notifications sent",
        task_id=task_id,
        key=key,
        operation=operation,
        count=len(notification_ids),
    )
    return notification_ids


@notifications.event_handler(part_of=Notification, stream_category="projects::task")
class TaskEventsHandler:
    """Reacts to task changes from the Projects part of the application."""

    @handle(TaskUpdated)
    def on_task_updated(self, event: TaskUpdated) -> None:
        with acting_as(event.actor_id):
            notify_task_updated(
                task_id=str(event.task_id),
                old_task=json.loads(event.old_task),
                new_task=json.loads(event.new_task),
                actor_id=str(event.actor_id) if event.actor_id else None,
            )

    @handle(TaskMetadataChanged)
    def on_task_metadata_changed(self, event: TaskMetadataChanged) -> None:
        with acting_as(event.actor_id):
            notify_task_metadata_changed(
                task_id=str(event.task_id),
                operation=event.operation,
                key=event.key,
                old_value=event.old_value,
                new_value=event.new_value,
                actor_id=str(event.actor_id) if event.actor_id else None,
                old_key=event.old_key,
            )
