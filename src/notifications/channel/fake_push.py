"""Fake push adapter — records sent pushes for testing."""

from uuid import uuid4

from notifications.channel.push_port import PushPort


class FakePushAdapter(PushPort):
    """Push adapter that records payloads in memory for test assertions."""

    def __init__(self):
        self.sent_pushes: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Push delivery failed"
        self.rejected_tokens: set[str] = set()

    def configure(self, should_succeed: bool = True, failure_reason: str = "Push delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def reject_token(self, token: str):
        """Fail every send to `token` (an expired subscription)."""
        self.rejected_tokens.add(token)

    def send(self, device_token, platform, payload) -> dict:
        if not self.should_succeed or device_token in self.rejected_tokens:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"push-{uuid4().hex[:12]}"
        self.sent_pushes.append(
            {
                "message_id": message_id,
                "device_token": device_token,
                "platform": platform,
                "payload": payload,
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent pushes (useful between tests)."""
        self.sent_pushes.clear()
        self.rejected_tokens.clear()
        self.should_succeed = True
        self.failure_reason = "Push delivery failed"
