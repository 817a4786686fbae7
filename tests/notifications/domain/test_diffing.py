"""Tests for the shared diff-and-notify helpers."""

from notifications.triggers.diffing import changed_fields, diff_and_notify, notify_recipients

WATCHED = ("title", "status_id", "due_date")


class TestChangedFields:
    def test_reports_changed_watched_fields_in_order(self):
        old = {"title": "A", "status_id": "s1", "due_date": None}
        new = {"title": "B", "status_id": "s1", "due_date": "2026-04-01"}
        assert changed_fields(old, new, WATCHED) == ["title", "due_date"]

    def test_ignores_unwatched_fields(self):
        old = {"title": "A", "updated_at": "2026-01-01"}
        new = {"title": "A", "updated_at": "2026-02-01"}
        assert changed_fields(old, new, WATCHED) == []

    def test_missing_key_equals_none(self):
        assert changed_fields({}, {"due_date": None}, WATCHED) == []


class TestNotifyRecipients:
    def test_actor_is_excluded(self):
        notified = []
        notify_recipients(["u1", "actor", "u2"], "actor", lambda r: notified.append(r) or r)
        assert notified == ["u1", "u2"]

    def test_duplicates_are_notified_once(self):
        ids = notify_recipients(["u1", "u1", "u2"], None, lambda r: f"n-{r}")
        assert ids == ["n-u1", "n-u2"]

    def test_unknown_actor_excludes_nobody(self):
        ids = notify_recipients(["u1", "u2"], None, lambda r: r)
        assert ids == ["u1", "u2"]

    def test_empty_recipients_are_skipped(self):
        assert notify_recipients([None, "", "u1"], None, lambda r: r) == ["u1"]


class TestDiffAndNotify:
    def test_no_change_never_resolves_recipients(self):
        def recipients():
            raise AssertionError("recipients resolved without a change")

        result = diff_and_notify(
            {"title": "A"},
            {"title": "A"},
            WATCHED,
            recipients=recipients,
            actor_id="actor",
            priority_rule=lambda changed: "medium",
            notify=lambda r, changed, priority: r,
        )
        assert result == []

    def test_priority_rule_sees_changed_fields(self):
        calls = []
        diff_and_notify(
            {"status_id": "s1"},
            {"status_id": "s2"},
            WATCHED,
            recipients=lambda: ["u1", "actor"],
            actor_id="actor",
            priority_rule=lambda changed: "high" if "status_id" in changed else "medium",
            notify=lambda r, changed, priority: calls.append((r, changed, priority)) or r,
        )
        assert calls == [("u1", ["status_id"], "high")]
