"""Domain events for the Order aggregate.

Events are versioned, immutable facts. They are published when the unit of
work that changed the order commits.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was turned into an order; stock is reserved and payment is awaited."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    discount_total = Float()
    grand_total = Float(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderAwaitingReview:
    """A payment slip was submitted and the order waits for an admin."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    slip_id = Identifier(required=True)
    submitted_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    slip_id = Identifier(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentRejected:
    """The submitted slip did not check out; the customer may upload again."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    slip_id = Identifier(required=True)
    rejected_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderProcessing:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    started_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    completed_at = DateTime(required=True)
