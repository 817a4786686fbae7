"""Tunables read from the `[custom]` table of domain.toml."""

from protean.utils.globals import current_domain

DEFAULTS = {
    "EMAIL_BATCH_SIZE": 100,
    "PUSH_BATCH_SIZE": 50,
    "EMAIL_RETENTION_DAYS": 30,
    "PUSH_RETENTION_DAYS": 7,
    "EMAIL_RETRY_WINDOW_HOURS": 24,
    "PUSH_RETRY_WINDOW_HOURS": 6,
    "CLAIM_TIMEOUT_MINUTES": 10,
}


def setting(name: str) -> int:
    """Return a configured tunable, falling back to the built-in default."""
    custom = current_domain.config.get("custom") or {}
    return custom.get(name, DEFAULTS[name])
