"""Acting principal: the user on whose behalf the current code runs.

The HTTP layer and event handlers set it with `acting_as()`. The dispatcher
uses it to attribute notifications when no creator is passed explicitly.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

_principal: ContextVar[str | None] = ContextVar("notifications_principal", default=None)


def current_principal() -> str | None:
    return _principal.get()


@contextmanager
def acting_as(user_id: str | None) -> Iterator[str | None]:
    """Run the enclosed block as `user_id` (None clears the principal)."""
    token = _principal.set(str(user_id) if user_id else None)
    try:
        with structlog.contextvars.bound_contextvars(principal=user_id):
            yield user_id
    finally:
        _principal.reset(token)
