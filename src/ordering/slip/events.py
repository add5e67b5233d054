"""Domain events for the PaymentSlip aggregate."""

from protean.fields import DateTime, Identifier, String

from ordering.domain import ordering


@ordering.event(part_of="PaymentSlip")
class SlipUploaded:
    __version__ = 1

    slip_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    uploaded_at = DateTime(required=True)


@ordering.event(part_of="PaymentSlip")
class SlipApproved:
    __version__ = 1

    slip_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    reviewer_id = Identifier(required=True)
    reviewed_at = DateTime(required=True)


@ordering.event(part_of="PaymentSlip")
class SlipRejected:
    __version__ = 1

    slip_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String(required=True)
    reviewer_id = Identifier(required=True)
    note = String(max_length=500)
    reviewed_at = DateTime(required=True)
