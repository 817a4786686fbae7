"""Message template with positional `%s` slots."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MessageTemplate:
    """Subject and message texts filled from one shared slot list.

    Both texts read the slot list from the start unless `message_offset` is
    set, in which case the message skips that many leading slots.
    """

    notification_type: str
    name: str
    subject: str
    message: str
    message_offset: int = 0

    @staticmethod
    def _fill(text: str, slots: tuple[str, ...]) -> str:
        needed = text.count("%s")
        if needed == 0 or len(slots) < needed:
            # Too few slots leaves the text unformatted
            return text
        return text % slots[:needed]

    def render(self, slots=()) -> dict:
        values = tuple("" if s is None else str(s) for s in slots)
        return {
            "subject": self._fill(self.subject, values),
            "message": self._fill(self.message, values[self.message_offset :]),
        }
