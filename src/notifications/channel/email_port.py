"""Email channel port — abstract interface for the mail provider."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """Abstract interface for email sending adapters."""

    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        template_id: str,
        template_data: dict,
        to_name: str | None = None,
    ) -> dict:
        """Send one templated email.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
