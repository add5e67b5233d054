"""Admin review of a payment slip: the only way an order becomes paid.

The slip is looked up by ``(slip_id, order_id)``: a slip id that belongs to
another order is reported as missing, never reviewed. Only the newest
slip of an order can be reviewed, and only while it is pending; older
uploads are kept as evidence.
"""

from dataclasses import dataclass

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.lookup import find_order_by_number
from ordering.order.order import Order
from ordering.slip.slip import PaymentSlip, ReviewAction, actionable_slip
from shared.errors import ConflictError, InvalidRequestError, NotFoundError


@dataclass(frozen=True)
class ReviewOutcome:
    order_number: str
    slip_id: str
    slip_status: str
    status: str
    payment_status: str


@ordering.command(part_of="PaymentSlip")
class ReviewPaymentSlip:
    order_number = String(required=True, max_length=40)
    slip_id = Identifier(required=True)
    action = String(required=True, choices=ReviewAction)
    reviewer_id = Identifier(required=True)
    note = String(max_length=500)


def _scoped_slip(slip_id, order_id) -> PaymentSlip | None:
    try:
        slip = current_domain.repository_for(PaymentSlip).get(slip_id)
    except ObjectNotFoundError:
        return None
    return slip if str(slip.order_id) == str(order_id) else None


@ordering.command_handler(part_of=PaymentSlip)
class ReviewPaymentSlipHandler:
    @handle(ReviewPaymentSlip)
    def review_slip(self, command):
        order = find_order_by_number(command.order_number.strip())
        if order is None:
            raise NotFoundError("ORDER_NOT_FOUND", "Order not found")

        slip = _scoped_slip(command.slip_id, order.id)
        if slip is None:
            raise NotFoundError("SLIP_NOT_FOUND", "Slip not found for this order")
        if not slip.is_pending:
            raise ConflictError("SLIP_ALREADY_REVIEWED", f"Slip already {slip.status}")

        actionable = actionable_slip(order.id)
        if actionable is None or str(actionable.id) != str(slip.id):
            raise ConflictError("SLIP_NOT_ACTIONABLE", "Only the newest slip of the order can be reviewed")

        if command.action == ReviewAction.APPROVE.value:
            slip.approve(command.reviewer_id, command.note)
            order.approve_payment(slip.id)
        else:
            slip.reject(command.reviewer_id, command.note)
            order.reject_payment(slip.id)

        current_domain.repository_for(PaymentSlip).add(slip)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Payment slip reviewed",
            order_number=order.order_number,
            slip_id=str(slip.id),
            action=command.action,
            reviewer_id=str(command.reviewer_id),
        )
        return ReviewOutcome(
            order_number=order.order_number,
            slip_id=str(slip.id),
            slip_status=slip.status,
            status=order.status,
            payment_status=order.payment_status,
        )


def review_payment_slip(order_number, slip_id, action, reviewer_id, note=None) -> ReviewOutcome:
    action = (action or "").strip().lower()
    if action not in {a.value for a in ReviewAction}:
        raise InvalidRequestError("Action must be approve or reject")
    note = (note or "").strip() or None
    if note is not None and len(note) > 500:
        raise InvalidRequestError("Note must be at most 500 characters")
    if not (order_number or "").strip():
        raise InvalidRequestError("Order number is required", code="INVALID_ORDER_NO")

    return current_domain.process(
        ReviewPaymentSlip(
            order_number=order_number,
            slip_id=slip_id,
            action=action,
            reviewer_id=reviewer_id,
            note=note,
        ),
        asynchronous=False,
    )
