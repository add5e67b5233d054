"""Customer cancellation of an unpaid order.

The order is claimed first: ``CancelOrder`` moves it to ``cancelled`` in its
own unit of work, guarded by the aggregate version. Only the request that
made that move returns the stock, so overlapping or retried requests never
release twice. Releases are best-effort: a failed release is logged and the
cancellation stands.
"""

from dataclasses import dataclass

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.inventory import get_stock_gateway
from ordering.order.lookup import find_customer_order
from ordering.order.order import Order, OrderStatus
from shared.errors import ConflictError, InvalidRequestError, NotFoundError


@dataclass(frozen=True)
class CancellationResult:
    order_number: str
    status: str
    payment_status: str
    already_cancelled: bool = False


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def claim_cancellation(self, command):
        """Cancel the order if it is still unpaid. Returns False when it was already cancelled."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.is_cancelled:
            return False
        if order.status != OrderStatus.PENDING_PAYMENT.value:
            raise ConflictError("ORDER_NOT_CANCELLABLE", f"Order is {order.status} and can no longer be cancelled")
        order.cancel()
        repo.add(order)
        return True


class OrderCancellationService:
    def __init__(self, stock_gateway=None):
        self._stock_gateway = stock_gateway

    @property
    def stock_gateway(self):
        return self._stock_gateway or get_stock_gateway()

    def cancel_order(self, order_number, customer_id) -> CancellationResult:
        order_number = (order_number or "").strip()
        if not order_number:
            raise InvalidRequestError("Order number is required", code="INVALID_ORDER_NO")

        order = find_customer_order(order_number, customer_id)
        if order is None:
            raise NotFoundError("ORDER_NOT_FOUND", "Order not found")

        claimed = current_domain.process(CancelOrder(order_id=str(order.id)), asynchronous=False)
        order = current_domain.repository_for(Order).get(order.id)
        if not claimed:
            return CancellationResult(
                order_number=order.order_number,
                status=order.status,
                payment_status=order.payment_status,
                already_cancelled=True,
            )

        released = self._release_items(order)

        logger.info(
            "Order cancelled",
            order_number=order.order_number,
            customer_id=str(customer_id),
            lines_released=released,
            lines_total=len(order.items),
        )
        return CancellationResult(
            order_number=order.order_number,
            status=order.status,
            payment_status=order.payment_status,
        )

    def _release_items(self, order) -> int:
        gateway = self.stock_gateway
        released = 0
        for item in order.items:
            result = gateway.release(str(item.product_id), item.quantity)
            if result.ok:
                released += 1
            else:
                logger.error(
                    "Stock release failed",
                    order_number=order.order_number,
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    detail=result.detail,
                )
        return released
