"""Directory adapter registry.

Provides singleton access to the directory used for user and entity
lookups. Defaults to the in-memory adapter; the hosting application installs
its own adapter with `set_directory` at startup.
"""

from notifications.directory.port import DirectoryPort

_directory: DirectoryPort | None = None


def get_directory() -> DirectoryPort:
    """Return the configured directory adapter."""
    global _directory
    if _directory is None:
        from notifications.directory.memory import InMemoryDirectory

        _directory = InMemoryDirectory()
    return _directory


def set_directory(directory: DirectoryPort) -> None:
    global _directory
    _directory = directory


def reset_directory():
    """Drop the configured adapter (useful for testing)."""
    global _directory
    _directory = None
