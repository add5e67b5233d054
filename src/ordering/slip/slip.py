"""PaymentSlip aggregate (CQRS): a customer's proof of a PromptPay transfer.

Slips are append-only evidence: a rejected slip stays on record and a new
upload adds another row. ``sequence`` numbers the slips of one order. Only
the newest slip can be reviewed, and only while it is still pending: once it
is reviewed, older pending uploads are superseded and the order waits for a
fresh upload.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.slip.events import SlipApproved, SlipRejected, SlipUploaded
from shared.queries import fetch_all


class SlipStatus(Enum):
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"


@ordering.aggregate
class PaymentSlip:
    order_id = Identifier(required=True)
    order_number = String(required=True, max_length=40)
    customer_id = Identifier(required=True)
    sequence = Integer(required=True, min_value=1)
    file_path = String(required=True, max_length=500)
    file_url = String(max_length=2000)
    content_type = String(max_length=100)
    status = String(choices=SlipStatus, default=SlipStatus.PENDING_REVIEW.value)
    uploaded_at = DateTime()
    reviewed_at = DateTime()
    reviewer_id = Identifier()
    note = String(max_length=500)

    @classmethod
    def submit(cls, order, customer_id, sequence, file_path, file_url, content_type):
        now = datetime.now(UTC)
        slip = cls(
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=customer_id,
            sequence=sequence,
            file_path=file_path,
            file_url=file_url,
            content_type=content_type,
            uploaded_at=now,
        )
        slip.raise_(
            SlipUploaded(
                slip_id=str(slip.id),
                order_id=str(order.id),
                order_number=order.order_number,
                customer_id=str(customer_id),
                uploaded_at=now,
            )
        )
        return slip

    @property
    def is_pending(self) -> bool:
        return self.status == SlipStatus.PENDING_REVIEW.value

    def _review(self, status, reviewer_id, note):
        if not self.is_pending:
            raise ValidationError({"status": [f"Slip already {self.status}"]})
        self.status = status.value
        self.reviewer_id = reviewer_id
        self.note = note
        self.reviewed_at = datetime.now(UTC)

    def approve(self, reviewer_id, note=None):
        self._review(SlipStatus.APPROVED, reviewer_id, note)
        self.raise_(
            SlipApproved(
                slip_id=str(self.id),
                order_id=str(self.order_id),
                order_number=self.order_number,
                reviewer_id=str(reviewer_id),
                reviewed_at=self.reviewed_at,
            )
        )

    def reject(self, reviewer_id, note=None):
        self._review(SlipStatus.REJECTED, reviewer_id, note)
        self.raise_(
            SlipRejected(
                slip_id=str(self.id),
                order_id=str(self.order_id),
                order_number=self.order_number,
                reviewer_id=str(reviewer_id),
                note=note,
                reviewed_at=self.reviewed_at,
            )
        )


def slips_for_order(order_id) -> list[PaymentSlip]:
    """Every slip of an order, oldest first."""
    query = current_domain.repository_for(PaymentSlip)._dao.query.filter(order_id=str(order_id))
    return sorted(fetch_all(query), key=lambda slip: slip.sequence)


def actionable_slip(order_id) -> PaymentSlip | None:
    """The newest slip of an order, if it still awaits review."""
    slips = slips_for_order(order_id)
    if slips and slips[-1].is_pending:
        return slips[-1]
    return None
