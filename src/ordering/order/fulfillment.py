"""Fulfillment progress after payment: admin commands and handler.

Forward-only: paid → processing → shipped → completed.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import logger, ordering
from ordering.order.lookup import find_order_by_number
from ordering.order.order import Order
from shared.errors import NotFoundError


@ordering.command(part_of="Order")
class MarkOrderProcessing:
    order_number = String(required=True, max_length=40)
    admin_id = Identifier(required=True)


@ordering.command(part_of="Order")
class MarkOrderShipped:
    order_number = String(required=True, max_length=40)
    admin_id = Identifier(required=True)


@ordering.command(part_of="Order")
class MarkOrderCompleted:
    order_number = String(required=True, max_length=40)
    admin_id = Identifier(required=True)


def _load(order_number) -> Order:
    order = find_order_by_number(order_number.strip())
    if order is None:
        raise NotFoundError("ORDER_NOT_FOUND", "Order not found")
    return order


@ordering.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(MarkOrderProcessing)
    def mark_processing(self, command):
        order = _load(command.order_number)
        order.mark_processing()
        current_domain.repository_for(Order).add(order)
        logger.info("Order processing", order_number=order.order_number, admin_id=str(command.admin_id))
        return order.status

    @handle(MarkOrderShipped)
    def mark_shipped(self, command):
        order = _load(command.order_number)
        order.mark_shipped()
        current_domain.repository_for(Order).add(order)
        logger.info("Order shipped", order_number=order.order_number, admin_id=str(command.admin_id))
        return order.status

    @handle(MarkOrderCompleted)
    def mark_completed(self, command):
        order = _load(command.order_number)
        order.mark_completed()
        current_domain.repository_for(Order).add(order)
        logger.info("Order completed", order_number=order.order_number, admin_id=str(command.admin_id))
        return order.status
