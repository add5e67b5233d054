"""BroadcastMessage and BroadcastRecipient aggregates (CQRS).

A BroadcastMessage is created before any email goes out, so a failed send
still leaves a record. Its counters are written once, when dispatch has
finished. BroadcastRecipient rows are append-only: one per recipient and
broadcast, and they are the source of truth for the counts.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from newsletter.domain import newsletter


class BroadcastMode(Enum):
    ALL = "all"
    SINGLE = "single"


class BroadcastStatus(Enum):
    SENDING = "sending"
    COMPLETED = "completed"


class DeliveryStatus(Enum):
    SENT = "sent"
    FAILED = "failed"


@newsletter.aggregate
class BroadcastMessage:
    mode = String(required=True, choices=BroadcastMode)
    target_subscriber_id = Identifier()
    subject = String(required=True, max_length=160)
    headline = String(required=True, max_length=160)
    body = Text(required=True)
    image_url = String(max_length=2000)
    sent_by = Identifier(required=True)
    sent_count = Integer(default=0)
    failed_count = Integer(default=0)
    status = String(choices=BroadcastStatus, default=BroadcastStatus.SENDING.value)
    created_at = DateTime()
    completed_at = DateTime()

    @classmethod
    def start(cls, mode, subject, headline, body, sent_by, target_subscriber_id=None, image_url=None):
        return cls(
            mode=mode,
            target_subscriber_id=target_subscriber_id,
            subject=subject,
            headline=headline,
            body=body,
            image_url=image_url,
            sent_by=sent_by,
            created_at=datetime.now(UTC),
        )

    def complete(self, sent_count, failed_count):
        if self.status == BroadcastStatus.COMPLETED.value:
            raise ValidationError({"status": ["Broadcast already completed"]})
        self.sent_count = sent_count
        self.failed_count = failed_count
        self.status = BroadcastStatus.COMPLETED.value
        self.completed_at = datetime.now(UTC)


@newsletter.aggregate
class BroadcastRecipient:
    broadcast_id = Identifier(required=True)
    subscriber_id = Identifier(required=True)
    email_snapshot = String(required=True, max_length=254)
    status = String(required=True, choices=DeliveryStatus)
    error_message = String(max_length=1000)
    created_at = DateTime()

    @classmethod
    def record(cls, broadcast_id, subscriber_id, email, status, error_message=None):
        return cls(
            broadcast_id=broadcast_id,
            subscriber_id=subscriber_id,
            email_snapshot=email,
            status=status,
            error_message=(error_message or None) and error_message[:1000],
            created_at=datetime.now(UTC),
        )
