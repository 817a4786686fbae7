"""Approval triggers — the approval lifecycle as seen by requesters and approvers.

    requested        requester gets a confirmation, every other approver a request
    status changed   requester hears who changed it, unless they did it themselves
    comment added    requester and approvers hear about it, except the commenter
    response         requester and the other approvers hear about it, except the responder
"""

import json
from datetime import datetime

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
from notifications.notification.payloads import (
    ApprovalCommentPayload,
    ApprovalRequestedPayload,
    ApprovalResponsePayload,
    ApprovalStatusChangedPayload,
)
from notifications.principal import acting_as
from notifications.templates import render_template
from notifications.triggers.diffing import notify_recipients
from notifications.triggers.entity_titles import UNKNOWN_ITEM, entity_title
from protean.utils.mixins import handle
from shared.events.projects import (
    ApprovalCommentAdded,
    ApprovalRequested,
    ApprovalResponseSubmitted,
    ApprovalStatusChanged,
)

logger = structlog.get_logger(__name__)

notifications.register_external_event(ApprovalRequested, "Projects.ApprovalRequested.v1")
notifications.register_external_event(ApprovalStatusChanged, "Projects.ApprovalStatusChanged.v1")
notifications.register_external_event(ApprovalCommentAdded, "Projects.ApprovalCommentAdded.v1")
notifications.register_external_event(ApprovalResponseSubmitted, "Projects.ApprovalResponseSubmitted.v1")

SOMEONE = "Someone"
AN_APPROVER = "An approver"
COMMENT_PREVIEW_LENGTH = 100

_REQUESTED = NotificationType.APPROVAL_REQUESTED.value
_STATUS_CHANGED = NotificationType.APPROVAL_STATUS_CHANGED.value


def _notify(
    recipient_id, notification_type, template_name, slots, payload, entity_type, entity_id, priority, created_by
):
    rendered = render_template(notification_type, template_name, slots)
    return create_notification(
        recipient_id=recipient_id,
        notification_type=notification_type,
        title=rendered["subject"],
        message=rendered["message"],
        context=payload,
        entity_type=entity_type,
        entity_id=str(entity_id),
        priority=priority,
        created_by=str(created_by) if created_by else None,
    )


def notify_approval_requested(
    approval_id: str,
    requester_id: str,
    approver_ids: list[str],
    entity_type: str | None = None,
    entity_id: str | None = None,
) -> list[str]:
    """Confirm the request to the requester and ask every other approver to act.

    The requester's confirmation is the one notification a user gets about
    their own action. A requester listed among the approvers gets no approver
    notification.
    """
    approval_id, requester_id = str(approval_id), str(requester_id)
    title = entity_title(entity_type, entity_id)
    requester_name = get_directory().display_name(requester_id)

    def payload(role: str, status: str | None = None) -> ApprovalRequestedPayload:
        return ApprovalRequestedPayload(
            approval_id=approval_id,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_title=title or UNKNOWN_ITEM,
            requested_by=requester_id,
            requester_name=requester_name,
            role=role,
            status=status,
        )

    notification_ids = [
        _notify(
            requester_id,
            _REQUESTED,
            "requester_confirmation",
            [title or UNKNOWN_ITEM],
            payload("requester", status="pending"),
            EntityType.APPROVAL.value,
            approval_id,
            NotificationPriority.MEDIUM.value,
            requester_id,
        )
    ]

    notification_ids += notify_recipients(
        approver_ids,
        requester_id,
        lambda approver_id: _notify(
            approver_id,
            _REQUESTED,
            "default",
            [requester_name or SOMEONE, title or UNKNOWN_ITEM],
            payload("approver"),
            EntityType.APPROVAL.value,
            approval_id,
            NotificationPriority.HIGH.value,
            requester_id,
        ),
    )

    logger.info("Approval request notifications sent", approval_id=approval_id, count=len(notification_ids))
    return notification_ids


def notify_approval_status_changed(
    approval_id: str,
    requester_id: str,
    new_status: str,
    old_status: str | None = None,
    action_taken_by: str | None = None,
    user_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
) -> str | None:
    """Tell the requester who changed the status of their approval request.

    The actor is `action_taken_by`, falling back to `user_id`. Nothing is sent
    when the status did not change, when the requester changed it, or when
    the actor is unknown.
    """
    approval_id, requester_id = str(approval_id), str(requester_id)
    if old_status == new_status:
        logger.debug("Approval saved without status change", approval_id=approval_id)
        return None

    changed_by = action_taken_by or user_id
    if not changed_by or str(changed_by) == requester_id:
        logger.debug("Approval status change not notified", approval_id=approval_id, changed_by=changed_by)
        return None
    changed_by = str(changed_by)

    title = entity_title(entity_type, entity_id) or UNKNOWN_ITEM
    changed_by_name = get_directory().display_name(changed_by)

    notification_id = _notify(
        requester_id,
        _STATUS_CHANGED,
        "default",
        [new_status, title, new_status, changed_by_name or SOMEONE],
        ApprovalStatusChangedPayload(
            approval_id=approval_id,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_title=title,
            old_status=old_status,
            new_status=new_status,
            approved_by=changed_by,
            approved_by_name=changed_by_name,
        ),
        EntityType.APPROVAL.value,
        approval_id,
        NotificationPriority.HIGH.value,
        changed_by,
    )
    logger.info("Approval status change notified", approval_id=approval_id, new_status=new_status)
    return notification_id


def notify_approval_comment(
    approval_id: str,
    comment_id: str,
    commenter_id: str,
    requester_id: str,
    approver_ids: list[str],
    comment: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
) -> list[str]:
    """Tell the requester and every approver about a new comment, except the commenter."""
    approval_id, comment_id, commenter_id = str(approval_id), str(comment_id), str(commenter_id)
    title = entity_title(entity_type, entity_id) or UNKNOWN_ITEM
    commenter_name = get_directory().display_name(commenter_id)
    requester_id = str(requester_id)

    def notify(recipient_id: str) -> str:
        return _notify(
            recipient_id,
            _REQUESTED,
            "comment_notification",
            [commenter_name or SOMEONE, title],
            ApprovalCommentPayload(
                approval_id=approval_id,
                comment_id=comment_id,
                comment_preview=(comment or "")[:COMMENT_PREVIEW_LENGTH],
                entity_type=entity_type,
                entity_id=entity_id,
                entity_title=title,
                commenter_id=commenter_id,
                commenter_name=commenter_name,
                role="requester" if recipient_id == requester_id else "approver",
            ),
            EntityType.APPROVAL_COMMENT.value,
            comment_id,
            NotificationPriority.MEDIUM.value,
            commenter_id,
        )

    notification_ids = notify_recipients([requester_id, *approver_ids], commenter_id, notify)
    logger.info("Approval comment notifications sent", approval_id=approval_id, count=len(notification_ids))
    return notification_ids


def notify_approval_response(
    approval_id: str,
    response_id: str,
    approver_id: str,
    requester_id: str,
    approver_ids: list[str],
    status: str,
    comment: str | None = None,
    responded_at: datetime | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
) -> list[str]:
    """Tell the requester and the other approvers that an approver responded."""
    approval_id, response_id = str(approval_id), str(response_id)
    approver_id, requester_id = str(approver_id), str(requester_id)
    title = entity_title(entity_type, entity_id) or UNKNOWN_ITEM
    approver_name = get_directory().display_name(approver_id)

    payload = ApprovalResponsePayload(
        approval_id=approval_id,
        response_id=response_id,
        response_status=status,
        entity_type=entity_type,
        entity_id=entity_id,
        entity_title=title,
        approver_id=approver_id,
        approver_name=approver_name,
        comments=comment,
        responded_at=responded_at.isoformat() if responded_at else None,
    )
    slots = [approver_name or AN_APPROVER, title]

    def notify(recipient_id: str) -> str:
        if recipient_id == requester_id:
            notification_type, template_name, priority = (
                _STATUS_CHANGED,
                "response_received",
                NotificationPriority.HIGH.value,
            )
        else:
            notification_type, template_name, priority = (
                _REQUESTED,
                "response_notification",
                NotificationPriority.MEDIUM.value,
            )
        return _notify(
            recipient_id,
            notification_type,
            template_name,
            slots,
            payload,
            EntityType.APPROVAL_RESPONSE.value,
            response_id,
            priority,
            approver_id,
        )

    notification_ids = notify_recipients([requester_id, *approver_ids], approver_id, notify)
    logger.info("Approval response notifications sent", approval_id=approval_id, count=len(notification_ids))
    return notification_ids


def _ids(raw: str | None) -> list[str]:
    return [str(user_id) for user_id in json.loads(raw or "[]")]


@notifications.event_handler(part_of=Notification, stream_category="projects::approval")
class ApprovalEventsHandler:
    """Reacts to approval lifecycle events from the Projects part of the application."""

    @handle(ApprovalRequested)
    def on_approval_requested(self, event: ApprovalRequested) -> None:
        with acting_as(event.requester_id):
            notify_approval_requested(
                approval_id=str(event.approval_id),
                requester_id=str(event.requester_id),
                approver_ids=_ids(event.approver_ids),
                entity_type=event.entity_type,
                entity_id=event.entity_id,
            )

    @handle(ApprovalStatusChanged)
    def on_approval_status_changed(self, event: ApprovalStatusChanged) -> None:
        with acting_as(event.action_taken_by or event.user_id):
            notify_approval_status_changed(
                approval_id=str(event.approval_id),
                requester_id=str(event.requester_id),
                new_status=event.new_status,
                old_status=event.old_status,
                action_taken_by=str(event.action_taken_by) if event.action_taken_by else None,
                user_id=str(event.user_id) if event.user_id else None,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
            )

    @handle(ApprovalCommentAdded)
    def on_approval_comment_added(self, event: ApprovalCommentAdded) -> None:
        with acting_as(event.commenter_id):
            notify_approval_comment(
                approval_id=str(event.approval_id),
                comment_id=str(event.comment_id),
                commenter_id=str(event.commenter_id),
                requester_id=str(event.requester_id),
                approver_ids=_ids(event.approver_ids),
                comment=event.comment,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
            )

    @handle(ApprovalResponseSubmitted)
    def on_approval_response_submitted(self, event: ApprovalResponseSubmitted) -> None:
        with acting_as(event.approver_id):
            notify_approval_response(
                approval_id=str(event.approval_id),
                response_id=str(event.response_id),
                approver_id=str(event.approver_id),
                requester_id=str(event.requester_id),
                approver_ids=_ids(event.approver_ids),
                status=event.status,
                comment=event.comment,
                responded_at=event.responded_at,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
            )
