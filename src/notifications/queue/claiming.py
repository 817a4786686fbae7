"""Claim protocol shared by the channel queue aggregates.

A sender claims a pending, due item before sending it. The claim is a
conditional update: it succeeds only while the item is still pending and
unclaimed (or its previous claim has gone stale), and persisting it goes
through the aggregate's optimistic version check.
"""

from datetime import UTC, datetime, timedelta

from notifications.queue.scheduling import to_utc
from protean.exceptions import ValidationError

PENDING = "pending"


def is_due(item, as_of: datetime) -> bool:
    return item.status == PENDING and to_utc(item.scheduled_for) <= to_utc(as_of)


def claim_is_stale(item, as_of: datetime, claim_timeout: timedelta) -> bool:
    return item.claimed_at is not None and to_utc(item.claimed_at) + claim_timeout <= to_utc(as_of)


def is_claimable(item, as_of: datetime, claim_timeout: timedelta) -> bool:
    if not is_due(item, as_of):
        return False
    return item.claimed_by is None or claim_is_stale(item, as_of, claim_timeout)


def claim(item, worker_id: str, claim_timeout: timedelta, claimed_at: datetime | None = None):
    now = claimed_at or datetime.now(UTC)
    if not is_claimable(item, now, claim_timeout):
        raise ValidationError({"claimed_by": [f"Queue item {item.id} is not claimable"]})
    item.claimed_by = worker_id
    item.claimed_at = now
    item.updated_at = now


def assert_pending(item):
    if item.status != PENDING:
        raise ValidationError({"status": [f"Queue item is {item.status}, expected {PENDING}"]})


def release_claim(item):
    item.claimed_by = None
    item.claimed_at = None
