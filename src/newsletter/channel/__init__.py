"""Email transport registry.

Provides singleton access to the broadcast email adapter. Uses the fake
adapter by default; ``EMAIL_ADAPTER=resend`` selects the Resend API.
"""

import os

from newsletter.channel.email_port import EmailPort

_current_adapter: EmailPort | None = None


def get_email_adapter() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _current_adapter
    if _current_adapter is None:
        kind = os.environ.get("EMAIL_ADAPTER", "fake").strip().lower()
        if kind == "resend":
            from newsletter.channel.resend_email import ResendEmailAdapter

            _current_adapter = ResendEmailAdapter()
        elif kind == "fake":
            from newsletter.channel.fake_email import FakeEmailAdapter

            _current_adapter = FakeEmailAdapter()
        else:
            raise ValueError(f"Unknown email adapter: {kind}")
    return _current_adapter


def set_email_adapter(adapter: EmailPort) -> None:
    """Override the active email adapter (useful for tests)."""
    global _current_adapter
    _current_adapter = adapter


def reset_email_adapter() -> None:
    """Reset the email adapter singleton (useful for testing)."""
    global _current_adapter
    _current_adapter = None
