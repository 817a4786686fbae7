"""Templates for task change notifications.

Slots:
    default          — task title, updater name
    metadata_change  — updater name, task title
"""

from notifications.notification.notification import NotificationType
from notifications.templates.base import MessageTemplate

TEMPLATES = [
    MessageTemplate(
        NotificationType.TASK_UPDATED.value,
        "default",
        "Task Status Updated",
        'Task "%s" status was updated by %s',
    ),
    MessageTemplate(
        NotificationType.TASK_UPDATED.value,
        "metadata_change",
        "Task Metadata Updated",
        '%s updated metadata for "%s"',
    ),
]
