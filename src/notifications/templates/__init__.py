"""Template registry — maps (notification type, template name) to a MessageTemplate.

Lookup falls back to the type's "default" template, then to a generic
message, so a missing template never blocks a notification. Rendered text is
clamped to the Notification title/message bounds.
"""

import structlog
from notifications.notification.notification import MESSAGE_MAX_LENGTH, TITLE_MAX_LENGTH
from notifications.templates import approvals, general, tasks
from notifications.templates.base import MessageTemplate

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATE_NAME = "default"
FALLBACK_SUBJECT = "Notification"
FALLBACK_MESSAGE = "You have a new notification"

TEMPLATE_REGISTRY: dict[tuple[str, str], MessageTemplate] = {
    (template.notification_type, template.name): template
    for module in (general, tasks, approvals)
    for template in module.TEMPLATES
}


def get_template(notification_type: str, name: str = DEFAULT_TEMPLATE_NAME) -> MessageTemplate | None:
    """Look up a template, falling back to the type's default template."""
    template = TEMPLATE_REGISTRY.get((notification_type, name))
    if template is None and name != DEFAULT_TEMPLATE_NAME:
        template = TEMPLATE_REGISTRY.get((notification_type, DEFAULT_TEMPLATE_NAME))
    return template


def _clamp(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def render_template(notification_type: str, name: str = DEFAULT_TEMPLATE_NAME, slots=()) -> dict:
    """Render subject and message for (type, name) with positional slots."""
    template = get_template(notification_type, name)
    if template is None:
        logger.warning("No notification template found", notification_type=notification_type, template_name=name)
        return {"subject": FALLBACK_SUBJECT, "message": FALLBACK_MESSAGE}

    rendered = template.render(slots)
    return {
        "subject": _clamp(rendered["subject"], TITLE_MAX_LENGTH),
        "message": _clamp(rendered["message"], MESSAGE_MAX_LENGTH),
    }
