"""Scheduling policy for channel queues.

Email is deferred by priority so that downstream senders can coalesce
low-urgency mail; push is always sent immediately.
"""

from datetime import UTC, datetime, timedelta

from notifications.notification.notification import NotificationPriority

EMAIL_DELAYS = {
    NotificationPriority.CRITICAL: timedelta(0),
    NotificationPriority.HIGH: timedelta(minutes=5),
    NotificationPriority.MEDIUM: timedelta(minutes=15),
    NotificationPriority.LOW: timedelta(minutes=30),
}

PUSH_DELAY = timedelta(0)

# Retry sweep backoff, multiplied by the item's retry count
EMAIL_RETRY_BACKOFF = timedelta(minutes=15)
PUSH_RETRY_BACKOFF = timedelta(minutes=5)


def to_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (as some stores return them) as UTC."""
    if value is None:
        return None
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def email_delay(priority: str) -> timedelta:
    return EMAIL_DELAYS[NotificationPriority(priority)]


def email_scheduled_for(priority: str, now: datetime | None = None) -> datetime:
    return (now or datetime.now(UTC)) + email_delay(priority)


def push_scheduled_for(now: datetime | None = None) -> datetime:
    return (now or datetime.now(UTC)) + PUSH_DELAY
