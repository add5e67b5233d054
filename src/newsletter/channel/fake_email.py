"""Fake email adapter: records sent emails for testing."""

import threading
from uuid import uuid4

from newsletter.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Email adapter that records messages in memory for test assertions.

    Safe to share between dispatcher workers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.sent_emails: list[dict] = []
        self.attempts: list[str] = []
        self.should_succeed = True
        self.failing_addresses: set[str] = set()
        self.failure_reason = "Email delivery failed"

    def configure(
        self,
        should_succeed: bool = True,
        failing_addresses=None,
        failure_reason: str = "Email delivery failed",
    ):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failing_addresses = {a.lower() for a in (failing_addresses or ())}
        self.failure_reason = failure_reason

    def send(self, to: str, subject: str, html: str) -> dict:
        with self._lock:
            self.attempts.append(to)
            if not self.should_succeed or to.lower() in self.failing_addresses:
                return {"message_id": None, "status": "failed", "error": self.failure_reason}

            message_id = f"email-{uuid4().hex[:12]}"
            self.sent_emails.append({"message_id": message_id, "to": to, "subject": subject, "html": html})
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        """Clear sent emails (useful between tests)."""
        with self._lock:
            self.sent_emails.clear()
            self.attempts.clear()
            self.should_succeed = True
            self.failing_addresses = set()
            self.failure_reason = "Email delivery failed"
