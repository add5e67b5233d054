"""Broadcast sending: validates the message, resolves recipients and dispatches.

Steps:
    1. Validate the message and mode
    2. Resolve recipients (all active subscribers, or one)
    3. Create the BroadcastMessage row with zero counts
    4. Fan out through the dispatcher, one BroadcastRecipient row each
    5. Write the final counts once
"""

import os
import threading
from dataclasses import dataclass

from protean.utils.globals import current_domain

from newsletter.broadcast.broadcast import BroadcastMessage, BroadcastMode, BroadcastRecipient
from newsletter.broadcast.dispatcher import DEFAULT_WORKERS, BroadcastDispatcher, DeliveryRecorder, Recipient
from newsletter.broadcast.template import BroadcastTemplate
from newsletter.channel import get_email_adapter
from newsletter.domain import logger, newsletter
from newsletter.subscriber.management import get_active_subscriber, list_subscribers
from shared.errors import ConflictError, InvalidRequestError

MAX_TITLE_LENGTH = 160
MAX_BODY_LENGTH = 4000


@dataclass(frozen=True)
class BroadcastSummary:
    broadcast_id: str
    mode: str
    sent_count: int
    failed_count: int


class RepositoryDeliveryRecorder(DeliveryRecorder):
    """Writes BroadcastRecipient rows from worker threads.

    Writes go through one at a time; only the email sends run in parallel.
    """

    def __init__(self, broadcast_id: str, domain=newsletter):
        self.broadcast_id = broadcast_id
        self.domain = domain
        self._lock = threading.Lock()

    def record(self, recipient, status, error=None) -> None:
        with self._lock, self.domain.domain_context():
            current_domain.repository_for(BroadcastRecipient).add(
                BroadcastRecipient.record(
                    broadcast_id=self.broadcast_id,
                    subscriber_id=recipient.subscriber_id,
                    email=recipient.email,
                    status=status.value,
                    error_message=error,
                )
            )


def _required_text(value, label, max_length) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not 1 <= len(text) <= max_length:
        raise InvalidRequestError(f"{label} must be between 1 and {max_length} characters")
    return text


def _worker_count() -> int:
    try:
        return max(1, int(os.environ.get("BROADCAST_WORKERS", DEFAULT_WORKERS)))
    except ValueError:
        return DEFAULT_WORKERS


class BroadcastService:
    def __init__(self, transport=None, workers: int | None = None, recorder_factory=RepositoryDeliveryRecorder):
        self._transport = transport
        self.workers = workers or _worker_count()
        self.recorder_factory = recorder_factory

    @property
    def transport(self):
        return self._transport or get_email_adapter()

    def send(
        self,
        mode,
        subject,
        headline,
        body,
        sent_by,
        target_subscriber_id=None,
        image_url="",
    ) -> BroadcastSummary:
        if mode not in {m.value for m in BroadcastMode}:
            raise InvalidRequestError("Mode must be all or single")
        subject = _required_text(subject, "Subject", MAX_TITLE_LENGTH)
        headline = _required_text(headline, "Headline", MAX_TITLE_LENGTH)
        body = _required_text(body, "Message", MAX_BODY_LENGTH)
        image_url = (image_url or "").strip() or None
        if not sent_by:
            raise InvalidRequestError("Sender is required")
        if mode == BroadcastMode.SINGLE.value and not target_subscriber_id:
            raise InvalidRequestError("A target subscriber is required for single mode")

        recipients = self._resolve_recipients(mode, target_subscriber_id)
        if not recipients:
            raise ConflictError("NO_RECIPIENTS", "No active subscribers to send to")

        repo = current_domain.repository_for(BroadcastMessage)
        message = BroadcastMessage.start(
            mode=mode,
            subject=subject,
            headline=headline,
            body=body,
            sent_by=sent_by,
            target_subscriber_id=target_subscriber_id if mode == BroadcastMode.SINGLE.value else None,
            image_url=image_url,
        )
        repo.add(message)
        logger.info("Broadcast started", broadcast_id=str(message.id), mode=mode, recipients=len(recipients))

        dispatcher = BroadcastDispatcher(
            transport=self.transport,
            recorder=self.recorder_factory(str(message.id)),
            workers=self.workers,
        )
        tally = dispatcher.dispatch(
            recipients,
            subject,
            lambda recipient: BroadcastTemplate.render(
                {
                    "headline": headline,
                    "body": body,
                    "image_url": image_url,
                    "recipient_name": recipient.full_name,
                }
            ),
        )

        message = repo.get(message.id)
        message.complete(tally.sent, tally.failed)
        repo.add(message)

        logger.info(
            "Broadcast completed",
            broadcast_id=str(message.id),
            sent=tally.sent,
            failed=tally.failed,
        )
        return BroadcastSummary(
            broadcast_id=str(message.id),
            mode=mode,
            sent_count=tally.sent,
            failed_count=tally.failed,
        )

    def _resolve_recipients(self, mode, target_subscriber_id) -> list[Recipient]:
        if mode == BroadcastMode.SINGLE.value:
            subscriber = get_active_subscriber(target_subscriber_id)
            subscribers = [subscriber] if subscriber is not None else []
        else:
            subscribers = list_subscribers(active=True)
        return [Recipient(subscriber_id=str(s.id), email=s.email, full_name=s.full_name) for s in subscribers]
