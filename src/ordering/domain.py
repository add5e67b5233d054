"""Ordering bounded context: catalogue reads, coupons, stock, orders and payment slips.

Turns a cart into a durable order (reserving stock as a saga), generates the
PromptPay payment reference, accepts proof-of-payment slips and drives the
admin review state machine.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
