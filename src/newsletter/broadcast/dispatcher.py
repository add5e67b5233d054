"""Bounded fan-out of one broadcast to its recipients.

A fixed pool of worker threads drains a shared queue of recipients. Each
worker sends one email at a time, with a single attempt, and records the
outcome before taking the next recipient. Workers share only the queue and
the tally; both are safe under concurrent access.

The delivery log decides the count: a send that succeeded but whose log
write failed is counted as failed.
"""

import queue
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from newsletter.broadcast.broadcast import DeliveryStatus
from newsletter.channel.email_port import EmailPort
from newsletter.domain import logger

DEFAULT_WORKERS = 6


@dataclass(frozen=True)
class Recipient:
    subscriber_id: str
    email: str
    full_name: str | None = None


class DeliveryRecorder(ABC):
    """Persists one delivery outcome per recipient."""

    @abstractmethod
    def record(self, recipient: Recipient, status: DeliveryStatus, error: str | None = None) -> None:
        """Write the outcome. Raises when the write fails."""
        ...


class DispatchTally:
    """Lock-guarded sent/failed counters and the set of processed recipients."""

    def __init__(self):
        self._lock = threading.Lock()
        self.sent = 0
        self.failed = 0
        self.processed: list[str] = []

    def record(self, recipient: Recipient, delivered: bool) -> None:
        with self._lock:
            if delivered:
                self.sent += 1
            else:
                self.failed += 1
            self.processed.append(recipient.subscriber_id)

    @property
    def total(self) -> int:
        with self._lock:
            return self.sent + self.failed


class BroadcastDispatcher:
    def __init__(self, transport: EmailPort, recorder: DeliveryRecorder, workers: int = DEFAULT_WORKERS):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.transport = transport
        self.recorder = recorder
        self.workers = workers

    def dispatch(self, recipients: list[Recipient], subject: str, render: Callable[[Recipient], str]) -> DispatchTally:
        tally = DispatchTally()
        if not recipients:
            return tally

        work: queue.Queue[Recipient] = queue.Queue()
        for recipient in recipients:
            work.put(recipient)

        threads = [
            threading.Thread(
                target=self._worker,
                args=(work, tally, subject, render),
                name=f"broadcast-worker-{index}",
                daemon=True,
            )
            for index in range(min(self.workers, len(recipients)))
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        return tally

    def _worker(self, work: queue.Queue, tally: DispatchTally, subject: str, render) -> None:
        while True:
            try:
                recipient = work.get_nowait()
            except queue.Empty:
                return
            try:
                tally.record(recipient, self._deliver(recipient, subject, render))
            finally:
                work.task_done()

    def _deliver(self, recipient: Recipient, subject: str, render) -> bool:
        try:
            response = self.transport.send(recipient.email, subject, render(recipient))
            delivered = response.get("status") == DeliveryStatus.SENT.value
            error = None if delivered else (response.get("error") or "Email delivery failed")
        except Exception as exc:
            delivered, error = False, str(exc)

        if not delivered:
            logger.warning("Broadcast delivery failed", subscriber_id=recipient.subscriber_id, error=error)

        status = DeliveryStatus.SENT if delivered else DeliveryStatus.FAILED
        try:
            self.recorder.record(recipient, status, error)
        except Exception as exc:
            logger.error(
                "Broadcast delivery log write failed",
                subscriber_id=recipient.subscriber_id,
                delivered=delivered,
                error=str(exc),
            )
            return False
        return delivered
