"""Shared BDD fixtures and step definitions for checkout and slip review."""

import pytest
from ordering.catalogue.product import Product
from ordering.order.cancellation import OrderCancellationService
from ordering.order.lookup import find_order_by_number
from ordering.order.placement import OrderPlacementService
from ordering.slip.intake import upload_payment_slip
from ordering.slip.slip import slips_for_order
from protean import current_domain
from pytest_bdd import given, parsers, then, when
from shared.errors import StorefrontError

CUSTOMER_ID = "cust-bdd"


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def context():
    """Mutable scenario state: placed order, slip ids and captured errors."""
    return {"order_number": None, "payment_uri": None, "slip_ids": [], "error": None}


def _place(products, context, title, quantity, coupon_code=None):
    try:
        placed = OrderPlacementService().place_order(
            customer_id=CUSTOMER_ID,
            items=[{"product_id": str(products[title].id), "quantity": quantity}],
            customer={"full_name": "Malee Suksan", "phone": "0899999999"},
            coupon_code=coupon_code,
        )
    except StorefrontError as exc:
        context["error"] = exc
        return
    context["order_number"] = placed.order_number
    context["payment_uri"] = placed.payment_uri


def _upload(context):
    receipt = upload_payment_slip(context["order_number"], CUSTOMER_ID, "slip.jpg", "image/jpeg", b"jpeg")
    context["slip_ids"].append(receipt.slip_id)


def _order(context):
    return find_order_by_number(context["order_number"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{title}" priced {price:d} with {stock:d} in stock'))
def product_in_stock(make_product, products, title, price, stock):
    products[title] = make_product(price=float(price), stock=stock, title=title)


@given(parsers.cfparse('"{title}" has only {stock:d} in stock'))
def set_stock(products, title, stock):
    repo = current_domain.repository_for(Product)
    product = repo.get(str(products[title].id))
    product.stock = stock
    repo.add(product)


@given(parsers.cfparse('a coupon "{code}" worth {value:d} percent'))
def percent_coupon(make_coupon, code, value):
    make_coupon(code=code, discount_type="percent", discount_value=value)


@given(parsers.cfparse('the shopper has ordered {quantity:d} of "{title}"'))
def shopper_has_ordered(products, context, title, quantity):
    _place(products, context, title, quantity)


@given("the shopper has uploaded a slip")
def shopper_has_uploaded(context):
    _upload(context)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.re(r'the shopper orders (?P<quantity>\d+) of "(?P<title>[^"]+)"( with coupon "(?P<code>[^"]+)")?$'),
    converters={"quantity": int},
)
def shopper_orders(products, context, title, quantity, code):
    _place(products, context, title, quantity, coupon_code=code)


@when("the shopper cancels the order")
def shopper_cancels(context):
    OrderCancellationService().cancel_order(context["order_number"], CUSTOMER_ID)


@when("the shopper uploads a slip")
def shopper_uploads(context):
    _upload(context)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
_ORDER_STATUSES = {
    "pending payment": "pending_payment",
    "pending review": "pending_review",
    "paid": "paid",
    "cancelled": "cancelled",
}

_PAYMENT_STATUSES = {
    "pending verification": "pending_verify",
    "failed": "failed",
}


@then(parsers.re(r"the order is (?P<label>pending payment|pending review|paid|cancelled)$"))
def order_status_is(context, label):
    assert context["error"] is None
    assert _order(context).status == _ORDER_STATUSES[label]


@then(parsers.re(r"the payment (is|has) (?P<label>pending verification|failed)$"))
def payment_status_is(context, label):
    assert _order(context).payment_status == _PAYMENT_STATUSES[label]


@then(parsers.cfparse('the payment reference ends with "{suffix}"'))
def payment_reference_ends_with(context, suffix):
    assert context["payment_uri"].endswith(suffix)


@then(parsers.cfparse('"{title}" has {stock:d} in stock'))
def stock_is(products, stock_of, title, stock):
    assert stock_of(products[title]) == stock


@then(parsers.cfparse('the order is refused with "{code}"'))
def order_refused(context, code):
    assert context["error"] is not None
    assert context["error"].code == code
    assert context["order_number"] is None


@then(parsers.cfparse("the order has {count:d} slips"))
def order_has_slips(context, count):
    assert len(slips_for_order(_order(context).id)) == count
