"""Templates for membership, assignment and comment notifications."""

from notifications.notification.notification import NotificationType
from notifications.templates.base import MessageTemplate

TEMPLATES = [
    MessageTemplate(NotificationType.SYSTEM.value, "default", "System Notification", "%s"),
    MessageTemplate(
        NotificationType.ORGANIZATION_ADDED.value,
        "default",
        "Added to Organization",
        "%s added you to %s",
    ),
    MessageTemplate(
        NotificationType.PROJECT_ADDED.value,
        "default",
        "Added to Project",
        "%s added you to project: %s",
    ),
    MessageTemplate(
        NotificationType.TASK_ASSIGNED.value,
        "default",
        "New Task Assignment",
        "%s assigned you to: %s",
    ),
    MessageTemplate(
        NotificationType.TASK_UNASSIGNED.value,
        "default",
        "Task Unassigned",
        "You were removed from task: %s",
    ),
    MessageTemplate(
        NotificationType.TASK_COMMENT.value,
        "default",
        "New Comment on Your Task",
        '%s commented on "%s"',
    ),
    MessageTemplate(
        NotificationType.COMMENT_MENTION.value,
        "default",
        "You were mentioned",
        '%s mentioned you in "%s"',
    ),
    MessageTemplate(
        NotificationType.FORM_ASSIGNED.value,
        "default",
        "New Form Assignment",
        "%s assigned you to form: %s",
    ),
    MessageTemplate(
        NotificationType.FORM_UNASSIGNED.value,
        "default",
        "Form Unassigned",
        "You were removed from form: %s",
    ),
    MessageTemplate(
        NotificationType.ENTITY_ASSIGNED.value,
        "default",
        "New Assignment",
        "%s assigned you to: %s",
    ),
]
