"""Shared diff-and-notify helpers for the event-source triggers.

Every trigger follows the same shape: work out what changed between two
snapshots, give up quietly when nothing user-visible changed, then fan out
one notification per recipient, never to the user who made the change.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence

import structlog

logger = structlog.get_logger(__name__)


def changed_fields(old: Mapping, new: Mapping, watched: Sequence[str]) -> list[str]:
    """Watched fields whose values differ between the two snapshots, in `watched` order.

    Fields outside `watched` (bookkeeping timestamps and the like) never count
    as a change.
    """
    return [field for field in watched if old.get(field) != new.get(field)]


def notify_recipients(
    recipients: Iterable[str],
    actor_id: str | None,
    notify: Callable[[str], str],
) -> list[str]:
    """Call `notify(recipient_id)` once for every distinct recipient except the actor.

    Returns the ids `notify` produced, in recipient order.
    """
    actor = str(actor_id) if actor_id else None
    seen = set()
    notification_ids = []

    for recipient_id in recipients:
        if not recipient_id:
            continue
        recipient_id = str(recipient_id)
        if recipient_id in seen:
            continue
        seen.add(recipient_id)

        if recipient_id == actor:
            logger.debug("Actor excluded from fan-out", recipient_id=recipient_id)
            continue

        notification_ids.append(notify(recipient_id))

    return notification_ids


def diff_and_notify(
    old: Mapping,
    new: Mapping,
    watched: Sequence[str],
    recipients: Callable[[], Iterable[str]],
    actor_id: str | None,
    priority_rule: Callable[[list[str]], str],
    notify: Callable[[str, list[str], str], str],
) -> list[str]:
    """Diff two snapshots and fan out when a watched field changed.

    `recipients` is only called once a change is found. `notify` receives
    (recipient_id, changed field names, priority) and returns a notification id.
    """
    changed = changed_fields(old, new, watched)
    if not changed:
        return []

    priority = priority_rule(changed)
    return notify_recipients(recipients(), actor_id, lambda recipient_id: notify(recipient_id, changed, priority))
