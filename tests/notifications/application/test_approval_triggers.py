"""Application tests for the approval lifecycle triggers."""

import json
from datetime import UTC, datetime

import pytest
from notifications.notification.notification import Notification
from notifications.triggers.approval_events import (
    ApprovalEventsHandler,
    notify_approval_comment,
    notify_approval_requested,
    notify_approval_response,
    notify_approval_status_changed,
)
from notifications.triggers.entity_titles import entity_title
from protean import current_domain
from shared.events.projects import (
    ApprovalCommentAdded,
    ApprovalRequested,
    ApprovalResponseSubmitted,
    ApprovalStatusChanged,
)


def _notifications(recipient_id=None):
    filters = {"recipient_id": recipient_id} if recipient_id else {}
    return current_domain.repository_for(Notification)._dao.query.filter(**filters).all().items


def _by_recipient():
    grouped = {}
    for notification in _notifications():
        grouped.setdefault(str(notification.recipient_id), []).append(notification)
    return grouped


@pytest.fixture(autouse=True)
def _people(directory):
    directory.add_user("req", email="rita@example.com", first_name="Rita", last_name="Moss")
    directory.add_user("ap-1", email="alan@example.com", first_name="Alan", last_name="Park")
    directory.add_user("ap-2", email="bea@example.com", first_name="Bea", last_name="Chan")
    directory.add_task("task-1", "Pour concrete", assignee_ids=["ap-1"])
    directory.add_form("form-1", "Daily Safety Checklist")


class TestEntityTitles:
    def test_general_approval_without_entity(self):
        assert entity_title(None, None) == "General Approval"
        assert entity_title("tasks", None) == "General Approval"

    def test_unknown_entity_type(self):
        assert entity_title("invoice", "inv-1") == "Unknown Entity"

    @pytest.mark.parametrize(
        "entity_type, entity_id, expected",
        [
            ("tasks", "task-1", "Pour concrete"),
            ("task", "task-1", "Pour concrete"),
            ("form", "form-1", "Daily Safety Checklist"),
        ],
    )
    def test_known_entity(self, entity_type, entity_id, expected):
        assert entity_title(entity_type, entity_id) == expected

    def test_known_type_missing_row(self):
        assert entity_title("site_diary", "diary-404") is None

    def test_missing_row_renders_unknown_item(self):
        notify_approval_requested("apr-1", "req", ["ap-1"], entity_type="form", entity_id="form-404")
        notification = _notifications("ap-1")[0]
        assert notification.message == "Rita Moss requested approval for: Unknown Item"


class TestApprovalRequested:
    def test_requester_among_approvers(self):
        """Three approvers, one of them the requester."""
        ids = notify_approval_requested(
            "apr-1", "req", ["req", "ap-1", "ap-2"], entity_type="tasks", entity_id="task-1"
        )

        assert len(ids) == 3
        grouped = _by_recipient()
        assert len(grouped["req"]) == 1
        assert grouped["req"][0].title == "Approval Request Submitted"
        assert grouped["req"][0].context()["role"] == "requester"
        assert len(grouped["ap-1"]) == 1
        assert len(grouped["ap-2"]) == 1

    def test_confirmation_to_requester(self):
        notify_approval_requested("apr-1", "req", ["ap-1"], entity_type="tasks", entity_id="task-1")
        confirmation = _notifications("req")[0]

        assert confirmation.notification_type == "approval_requested"
        assert confirmation.priority == "medium"
        assert confirmation.message == (
            'Your approval request for "Pour concrete" has been submitted and is pending review'
        )
        assert confirmation.context()["status"] == "pending"
        assert confirmation.entity_type == "approval"
        assert confirmation.entity_id == "apr-1"

    def test_request_to_approvers(self):
        notify_approval_requested("apr-1", "req", ["ap-1", "ap-2"], entity_type="form", entity_id="form-1")
        request = _notifications("ap-1")[0]

        assert request.title == "Approval Required"
        assert request.message == "Rita Moss requested approval for: Daily Safety Checklist"
        assert request.priority == "high"
        assert request.context()["role"] == "approver"
        assert str(request.created_by) == "req"

    def test_general_approval(self):
        notify_approval_requested("apr-1", "req", ["ap-1"])
        assert _notifications("ap-1")[0].message.endswith("for: General Approval")

    def test_duplicate_approvers_notified_once(self):
        ids = notify_approval_requested("apr-1", "req", ["ap-1", "ap-1"])
        assert len(ids) == 2


class TestApprovalStatusChanged:
    def test_requester_is_notified(self):
        notification_id = notify_approval_status_changed(
            "apr-1",
            "req",
            "approved",
            old_status="pending",
            action_taken_by="ap-1",
            entity_type="tasks",
            entity_id="task-1",
        )

        notification = current_domain.repository_for(Notification).get(notification_id)
        assert str(notification.recipient_id) == "req"
        assert notification.title == "Approval approved"
        assert notification.message == 'Your approval request "Pour concrete" has been approved by Alan Park'
        assert notification.priority == "high"
        context = notification.context()
        assert context["approved_by"] == "ap-1"
        assert context["old_status"] == "pending"

    def test_unchanged_status_is_silent(self):
        result = notify_approval_status_changed("apr-1", "req", "pending", old_status="pending", action_taken_by="ap-1")
        assert result is None
        assert _notifications() == []

    def test_requester_changing_their_own_request_is_silent(self):
        result = notify_approval_status_changed(
            "apr-1", "req", "cancelled", old_status="pending", action_taken_by="req"
        )
        assert result is None
        assert _notifications() == []

    def test_unknown_actor_is_silent(self):
        assert notify_approval_status_changed("apr-1", "req", "approved", old_status="pending") is None
        assert _notifications() == []

    def test_falls_back_to_row_actor(self):
        notification_id = notify_approval_status_changed(
            "apr-1", "req", "rejected", old_status="pending", user_id="ap-2"
        )
        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.message.endswith("has been rejected by Bea Chan")
        assert str(notification.created_by) == "ap-2"


class TestApprovalComment:
    def test_everyone_but_the_commenter(self):
        ids = notify_approval_comment(
            "apr-1",
            "c-1",
            "ap-1",
            "req",
            ["ap-1", "ap-2"],
            comment="Please attach the pour log",
            entity_type="tasks",
            entity_id="task-1",
        )

        assert len(ids) == 2
        grouped = _by_recipient()
        assert set(grouped) == {"req", "ap-2"}
        assert grouped["req"][0].context()["role"] == "requester"
        assert grouped["ap-2"][0].context()["role"] == "approver"
        assert grouped["req"][0].title == 'Alan Park commented on your approval request for "Pour concrete"'
        assert grouped["req"][0].entity_type == "approval_comment"
        assert grouped["req"][0].entity_id == "c-1"

    def test_requester_who_is_also_approver_gets_one(self):
        notify_approval_comment("apr-1", "c-1", "ap-1", "req", ["req", "ap-1"], comment="ok")
        grouped = _by_recipient()
        assert set(grouped) == {"req"}
        assert len(grouped["req"]) == 1
        assert grouped["req"][0].context()["role"] == "requester"

    def test_preview_is_truncated(self):
        notify_approval_comment("apr-1", "c-1", "ap-1", "req", [], comment="x" * 250)
        assert _notifications("req")[0].context()["comment_preview"] == "x" * 100


class TestApprovalResponse:
    def test_requester_and_other_approvers(self):
        notify_approval_response(
            "apr-1", "r-1", "ap-1", "req", ["ap-1", "ap-2"], status="approved", comment="Looks good"
        )

        requester = _notifications("req")[0]
        assert requester.notification_type == "approval_status_changed"
        assert requester.title == "Approval Response Received"
        assert requester.priority == "high"
        assert requester.entity_type == "approval_response"

        other = _notifications("ap-2")[0]
        assert other.notification_type == "approval_requested"
        assert other.priority == "medium"
        assert other.message == "Alan Park has responded to your approval request"

        assert _notifications("ap-1") == []

    def test_unknown_approver_name(self):
        notify_approval_response("apr-1", "r-1", "ghost", "req", [], status="approved")
        assert _notifications("req")[0].message.startswith("An approver responded")


class TestApprovalEventsHandler:
    def test_approval_requested_event(self):
        ApprovalEventsHandler().on_approval_requested(
            ApprovalRequested(
                approval_id="apr-1",
                requester_id="req",
                approver_ids=json.dumps(["req", "ap-1", "ap-2"]),
                entity_type="tasks",
                entity_id="task-1",
                requested_at=datetime.now(UTC),
            )
        )
        grouped = _by_recipient()
        assert {recipient: len(items) for recipient, items in grouped.items()} == {"req": 1, "ap-1": 1, "ap-2": 1}

    def test_status_changed_event(self):
        ApprovalEventsHandler().on_approval_status_changed(
            ApprovalStatusChanged(
                approval_id="apr-1",
                requester_id="req",
                old_status="pending",
                new_status="approved",
                action_taken_by="ap-1",
                changed_at=datetime.now(UTC),
            )
        )
        assert len(_notifications("req")) == 1

    def test_comment_added_event(self):
        ApprovalEventsHandler().on_approval_comment_added(
            ApprovalCommentAdded(
                approval_id="apr-1",
                comment_id="c-1",
                commenter_id="req",
                requester_id="req",
                approver_ids=json.dumps(["ap-1"]),
                comment="Updated drawings attached",
                added_at=datetime.now(UTC),
            )
        )
        assert [str(n.recipient_id) for n in _notifications()] == ["ap-1"]

    def test_response_submitted_event(self):
        ApprovalEventsHandler().on_approval_response_submitted(
            ApprovalResponseSubmitted(
                approval_id="apr-1",
                response_id="r-1",
                approver_id="ap-2",
                requester_id="req",
                approver_ids=json.dumps(["ap-1", "ap-2"]),
                status="rejected",
                responded_at=datetime.now(UTC),
            )
        )
        assert {str(n.recipient_id) for n in _notifications()} == {"req", "ap-1"}
        assert _notifications("req")[0].context()["responded_at"] is not None
