"""Order aggregate (CQRS): the durable record of a placed cart.

Two state machines run side by side:

    status:          pending_payment → pending_review → paid → processing
                     → shipped → completed
                     pending_review → pending_payment (slip rejected)
                     pending_payment → cancelled

    payment_status:  unpaid → pending_verify → paid
                     pending_verify → failed → pending_verify (re-upload)
                     unpaid | failed → expired (cancelled)

Totals are fixed at placement time: ``subtotal`` is the sum of the rounded
line totals and ``grand_total = max(0, subtotal - discount_total +
shipping_fee)``. The PromptPay reference is a snapshot taken at placement and
never recomputed.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.events import (
    OrderAwaitingReview,
    OrderCancelled,
    OrderCompleted,
    OrderPaid,
    OrderPaymentRejected,
    OrderPlaced,
    OrderProcessing,
    OrderShipped,
)
from shared.money import ZERO, as_float, to_decimal

PAYMENT_METHOD = "promptpay_transfer"


class OrderStatus(Enum):
    PENDING_PAYMENT = "pending_payment"
    PENDING_REVIEW = "pending_review"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PENDING_VERIFY = "pending_verify"
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PENDING_REVIEW, OrderStatus.CANCELLED},
    OrderStatus.PENDING_REVIEW: {
        OrderStatus.PENDING_REVIEW,  # Another slip while the first is in review
        OrderStatus.PAID,
        OrderStatus.PENDING_PAYMENT,  # Slip rejected
    },
    OrderStatus.PAID: {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

_PAYMENT_TRANSITIONS = {
    PaymentStatus.UNPAID: {PaymentStatus.PENDING_VERIFY, PaymentStatus.EXPIRED},
    PaymentStatus.PENDING_VERIFY: {
        PaymentStatus.PENDING_VERIFY,
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
    },
    PaymentStatus.FAILED: {PaymentStatus.PENDING_VERIFY, PaymentStatus.EXPIRED},
    PaymentStatus.PAID: set(),
    PaymentStatus.EXPIRED: set(),
}

# Slips are accepted while the order still waits for money
SLIP_ACCEPTING_STATES = {OrderStatus.PENDING_PAYMENT, OrderStatus.PENDING_REVIEW}


@ordering.entity(part_of="Order")
class OrderItem:
    """A cart line frozen at checkout: price and name as the customer saw them."""

    product_id = Identifier(required=True)
    sku = String(max_length=64)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1, max_value=999)
    line_total = Float(required=True, min_value=0.0)


@ordering.aggregate
class Order:
    order_number = String(required=True, max_length=40, unique=True)
    customer_id = Identifier(required=True)
    customer_name = String(required=True, max_length=120)
    customer_phone = String(required=True, max_length=32)
    customer_email = String(max_length=254)
    note = Text()
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0)
    discount_total = Float(default=0.0)
    shipping_fee = Float(default=0.0)
    grand_total = Float(default=0.0)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING_PAYMENT.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    payment_method = String(max_length=50, default=PAYMENT_METHOD)
    promptpay_id = String(max_length=64)
    payment_uri = String(max_length=500)
    coupon_code = String(max_length=64)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def grand_total_matches_components(self):
        expected = max(
            ZERO,
            to_decimal(self.subtotal or 0) - to_decimal(self.discount_total or 0) + to_decimal(self.shipping_fee or 0),
        )
        if to_decimal(self.grand_total or 0) != expected:
            raise ValidationError({"grand_total": ["Grand total must equal subtotal - discount + shipping"]})

    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        discount = to_decimal(self.discount_total or 0)
        if discount < ZERO or discount > to_decimal(self.subtotal or 0):
            raise ValidationError({"discount_total": ["Discount must be between 0 and the subtotal"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        customer_id,
        customer,
        lines,
        promptpay_id,
        payment_uri,
        discount_total=0.0,
        shipping_fee=0.0,
        coupon_code=None,
    ):
        """Build a new order awaiting payment.

        Args:
            customer: Dict with full_name, phone and optional email, note.
            lines: List of dicts with product_id, sku, name, unit_price, quantity.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        items = []
        subtotal = ZERO
        for line in lines:
            line_total = to_decimal(to_decimal(line["unit_price"]) * line["quantity"])
            subtotal += line_total
            items.append(
                OrderItem(
                    product_id=line["product_id"],
                    sku=line.get("sku"),
                    name=line["name"],
                    unit_price=as_float(to_decimal(line["unit_price"])),
                    quantity=line["quantity"],
                    line_total=as_float(line_total),
                )
            )

        discount = to_decimal(discount_total)
        shipping = to_decimal(shipping_fee)
        grand_total = max(ZERO, subtotal - discount + shipping)
        now = datetime.now(UTC)

        order = cls(
            order_number=order_number,
            customer_id=customer_id,
            customer_name=customer["full_name"],
            customer_phone=customer["phone"],
            customer_email=customer.get("email"),
            note=customer.get("note"),
            items=items,
            subtotal=as_float(subtotal),
            discount_total=as_float(discount),
            shipping_fee=as_float(shipping),
            grand_total=as_float(grand_total),
            promptpay_id=promptpay_id,
            payment_uri=payment_uri,
            coupon_code=coupon_code,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=str(customer_id),
                item_count=len(items),
                subtotal=order.subtotal,
                discount_total=order.discount_total,
                grand_total=order.grand_total,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status, target_payment=None):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})
        if target_payment is not None:
            current_payment = PaymentStatus(self.payment_status)
            if target_payment not in _PAYMENT_TRANSITIONS.get(current_payment, set()):
                raise ValidationError(
                    {
                        "status": [
                            f"Cannot move payment from {current_payment.value} to {target_payment.value}",
                        ]
                    }
                )

    def _move_to(self, target_status, target_payment=None):
        self._assert_can_transition(target_status, target_payment)
        self.status = target_status.value
        if target_payment is not None:
            self.payment_status = target_payment.value
        self.updated_at = datetime.now(UTC)

    @property
    def accepts_slips(self) -> bool:
        return OrderStatus(self.status) in SLIP_ACCEPTING_STATES

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED.value

    # -------------------------------------------------------------------
    # Payment lifecycle
    # -------------------------------------------------------------------
    def submit_slip(self, slip_id):
        """A proof-of-payment slip was stored for this order."""
        if not self.accepts_slips:
            raise ValidationError({"status": [f"Order is {self.status}, not awaiting payment"]})
        self._move_to(OrderStatus.PENDING_REVIEW, PaymentStatus.PENDING_VERIFY)
        self.raise_(
            OrderAwaitingReview(
                order_id=str(self.id),
                order_number=self.order_number,
                slip_id=str(slip_id),
                submitted_at=self.updated_at,
            )
        )

    def approve_payment(self, slip_id):
        self._move_to(OrderStatus.PAID, PaymentStatus.PAID)
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                order_number=self.order_number,
                slip_id=str(slip_id),
                amount=self.grand_total,
                paid_at=self.updated_at,
            )
        )

    def reject_payment(self, slip_id):
        self._move_to(OrderStatus.PENDING_PAYMENT, PaymentStatus.FAILED)
        self.raise_(
            OrderPaymentRejected(
                order_id=str(self.id),
                order_number=self.order_number,
                slip_id=str(slip_id),
                rejected_at=self.updated_at,
            )
        )

    def cancel(self):
        """Cancel an unpaid order. The caller returns the stock once this is saved."""
        self._move_to(OrderStatus.CANCELLED, PaymentStatus.EXPIRED)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                order_number=self.order_number,
                customer_id=str(self.customer_id),
                cancelled_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def mark_processing(self):
        self._move_to(OrderStatus.PROCESSING)
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                order_number=self.order_number,
                started_at=self.updated_at,
            )
        )

    def mark_shipped(self):
        self._move_to(OrderStatus.SHIPPED)
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                order_number=self.order_number,
                shipped_at=self.updated_at,
            )
        )

    def mark_completed(self):
        self._move_to(OrderStatus.COMPLETED)
        self.raise_(
            OrderCompleted(
                order_id=str(self.id),
                order_number=self.order_number,
                completed_at=self.updated_at,
            )
        )
