"""Notifications bounded context: fan-out of project events to users.

Turns task, task-metadata and approval changes into per-recipient
notifications, records realtime delivery for the in-app feed, and queues
email and push deliveries according to each user's channel preferences.
External channel senders consume the queues and report outcomes back.
"""

import structlog
from protean.domain import Domain

from notifications.utils.logging import configure_logging

configure_logging()

logger = structlog.get_logger(__name__)

notifications = Domain(name="notifications")
