"""Push channel port — abstract interface for the push provider."""

from abc import ABC, abstractmethod


class PushPort(ABC):
    """Abstract interface for push sending adapters."""

    @abstractmethod
    def send(self, device_token: str, platform: str, payload: dict) -> dict:
        """Send a push payload (title, body, data, ...) to one device.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
