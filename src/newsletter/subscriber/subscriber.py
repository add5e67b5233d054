"""Subscriber aggregate (CQRS): newsletter mailing list entries.

Emails are stored lowercase and unique. Unsubscribing keeps the row (with
``unsubscribed_at``) so a later subscribe reactivates the same subscriber.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String

from newsletter.domain import newsletter


def normalize_email(email) -> str:
    return (email or "").strip().lower() if isinstance(email, str) else ""


@newsletter.aggregate
class Subscriber:
    full_name = String(max_length=120)
    email = String(required=True, max_length=254, unique=True)
    is_active = Boolean(default=True)
    unsubscribed_at = DateTime()
    created_at = DateTime()

    @classmethod
    def register(cls, email, full_name=None):
        email = normalize_email(email)
        if "@" not in email:
            raise ValidationError({"email": ["Email address is invalid"]})
        return cls(
            email=email,
            full_name=(full_name or "").strip() or None,
            created_at=datetime.now(UTC),
        )

    def update_details(self, email=None, full_name=None):
        if email is not None:
            email = normalize_email(email)
            if "@" not in email:
                raise ValidationError({"email": ["Email address is invalid"]})
            self.email = email
        if full_name is not None:
            self.full_name = full_name.strip() or None

    def deactivate(self):
        if not self.is_active:
            return
        self.is_active = False
        self.unsubscribed_at = datetime.now(UTC)

    def reactivate(self):
        self.is_active = True
        self.unsubscribed_at = None
