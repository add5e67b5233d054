"""Order lookups shared by placement, slip intake, review and the API."""

from protean.utils.globals import current_domain

from ordering.order.order import Order


def _orders():
    return current_domain.repository_for(Order)._dao.query


def find_order_by_number(order_number: str) -> Order | None:
    matches = _orders().filter(order_number=order_number).all().items
    return matches[0] if matches else None


def find_customer_order(order_number: str, customer_id) -> Order | None:
    """Owner-scoped lookup: another customer's order is reported as missing."""
    matches = _orders().filter(order_number=order_number, customer_id=str(customer_id)).all().items
    return matches[0] if matches else None


def order_number_taken(order_number: str) -> bool:
    return find_order_by_number(order_number) is not None
