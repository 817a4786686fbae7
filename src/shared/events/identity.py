"""Cross-domain event contracts for Identity domain events.

Consumed by the Notifications domain to purge everything it stores for a
user once their account is gone. Registered as an external event via
domain.register_external_event() with a matching __type__ string.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier


class UserDeleted(BaseEvent):
    """A user account was deleted from the platform."""

    __version__ = 1

    user_id = Identifier(required=True)
    deleted_at = DateTime(required=True)
