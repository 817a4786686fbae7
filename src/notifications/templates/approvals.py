"""Templates for the approval lifecycle.

Slots:
    approval_requested/default                 — requester name, entity title
    approval_requested/requester_confirmation  — entity title
    approval_requested/comment_notification    — commenter name, entity title
    approval_requested/response_notification   — approver name, entity title
    approval_status_changed/default            — status, entity title, status, actor name
    approval_status_changed/response_received  — approver name, entity title
"""

from notifications.notification.notification import NotificationType
from notifications.templates.base import MessageTemplate

_REQUESTED = NotificationType.APPROVAL_REQUESTED.value
_STATUS_CHANGED = NotificationType.APPROVAL_STATUS_CHANGED.value

TEMPLATES = [
    MessageTemplate(_REQUESTED, "default", "Approval Required", "%s requested approval for: %s"),
    MessageTemplate(
        _REQUESTED,
        "requester_confirmation",
        "Approval Request Submitted",
        'Your approval request for "%s" has been submitted and is pending review',
    ),
    MessageTemplate(
        _REQUESTED,
        "comment_notification",
        '%s commented on your approval request for "%s"',
        "%s added a comment to your approval request",
    ),
    MessageTemplate(
        _REQUESTED,
        "response_notification",
        '%s responded to your approval request for "%s"',
        "%s has responded to your approval request",
    ),
    MessageTemplate(
        _STATUS_CHANGED,
        "default",
        "Approval %s",
        'Your approval request "%s" has been %s by %s',
        message_offset=1,
    ),
    MessageTemplate(
        _STATUS_CHANGED,
        "response_received",
        "Approval Response Received",
        '%s responded to your approval request for "%s"',
    ),
]
