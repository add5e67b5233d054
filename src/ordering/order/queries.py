"""Read models for the customer account pages and the admin order desk."""

from protean.utils.globals import current_domain

from ordering.order.lookup import find_customer_order, find_order_by_number
from ordering.order.order import Order, OrderStatus
from ordering.slip.slip import actionable_slip, slips_for_order
from shared.errors import InvalidRequestError, NotFoundError
from shared.queries import fetch_all

MAX_ADMIN_LIMIT = 500


def _summary(order) -> dict:
    return {
        "order_number": order.order_number,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "subtotal": order.subtotal,
        "discount_total": order.discount_total,
        "shipping_fee": order.shipping_fee,
        "grand_total": order.grand_total,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }


def _items(order) -> list[dict]:
    return [
        {
            "product_id": str(item.product_id),
            "sku": item.sku,
            "name": item.name,
            "unit_price": item.unit_price,
            "quantity": item.quantity,
            "line_total": item.line_total,
        }
        for item in order.items
    ]


def _slip(slip) -> dict:
    return {
        "id": str(slip.id),
        "sequence": slip.sequence,
        "status": slip.status,
        "file_url": slip.file_url,
        "content_type": slip.content_type,
        "uploaded_at": slip.uploaded_at.isoformat() if slip.uploaded_at else None,
        "reviewed_at": slip.reviewed_at.isoformat() if slip.reviewed_at else None,
        "reviewer_id": str(slip.reviewer_id) if slip.reviewer_id else None,
        "note": slip.note,
    }


def _newest_first(orders) -> list:
    return sorted(orders, key=lambda o: o.created_at.timestamp() if o.created_at else 0.0, reverse=True)


def list_customer_orders(customer_id) -> list[dict]:
    query = current_domain.repository_for(Order)._dao.query.filter(customer_id=str(customer_id))
    return [_summary(order) for order in _newest_first(fetch_all(query))]


def get_customer_order(order_number, customer_id) -> dict:
    order = find_customer_order((order_number or "").strip(), customer_id)
    if order is None:
        raise NotFoundError("ORDER_NOT_FOUND", "Order not found")

    detail = _summary(order)
    detail.update(
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=order.customer_email,
        note=order.note,
        coupon_code=order.coupon_code,
        payment_uri=order.payment_uri,
        items=_items(order),
        slips=[_slip(slip) for slip in slips_for_order(order.id)],
    )
    return detail


def list_admin_orders(query=None, status=None, limit=100) -> list[dict]:
    if status is not None and status not in {s.value for s in OrderStatus}:
        raise InvalidRequestError(f"Unknown order status: {status}")
    limit = min(MAX_ADMIN_LIMIT, max(1, limit))

    queryset = current_domain.repository_for(Order)._dao.query
    if status is not None:
        queryset = queryset.filter(status=status)
    orders = fetch_all(queryset)

    needle = (query or "").strip().lower()
    if needle:
        orders = [
            o
            for o in orders
            if any(needle in (value or "").lower() for value in (o.order_number, o.customer_name, o.customer_phone))
        ]

    rows = []
    for order in _newest_first(orders)[:limit]:
        row = _summary(order)
        pending = actionable_slip(order.id)
        row.update(
            customer_id=str(order.customer_id),
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            latest_pending_slip_id=str(pending.id) if pending else None,
        )
        rows.append(row)
    return rows


def get_admin_order_detail(order_number) -> dict:
    order = find_order_by_number((order_number or "").strip())
    if order is None:
        raise NotFoundError("ORDER_NOT_FOUND", "Order not found")

    detail = _summary(order)
    pending = actionable_slip(order.id)
    detail.update(
        customer_id=str(order.customer_id),
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        customer_email=order.customer_email,
        note=order.note,
        coupon_code=order.coupon_code,
        promptpay_id=order.promptpay_id,
        payment_uri=order.payment_uri,
        items=_items(order),
        slips=[_slip(slip) for slip in slips_for_order(order.id)],
        latest_pending_slip_id=str(pending.id) if pending else None,
    )
    return detail
