from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain


@pytest.fixture(scope="session")
def _ordering_domain():
    from ordering.domain import ordering

    return ordering


@pytest.fixture(autouse=True)
def run_around_tests(_ordering_domain, monkeypatch):
    """Push domain context before each test, reset data and adapters after."""
    from ordering.inventory import reset_configuration_gaps, reset_stock_gateway
    from ordering.slip.storage import reset_slip_storage

    monkeypatch.setenv("PROMPTPAY_ID", "0812345678")
    monkeypatch.delenv("PROMPTPAY_BASE_URL", raising=False)
    monkeypatch.delenv("STOCK_GATEWAY", raising=False)
    monkeypatch.delenv("SLIP_STORAGE", raising=False)

    ctx = _ordering_domain.domain_context()
    ctx.push()

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()

    reset_stock_gateway()
    reset_slip_storage()
    reset_configuration_gaps()
    ctx.pop()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
_product_counter = {"n": 0}


@pytest.fixture()
def make_product():
    from ordering.catalogue.product import Product, ProductStatus

    def _make(price=100.0, stock=5, status=ProductStatus.ACTIVE.value, slug=None, title=None, featured=False):
        _product_counter["n"] += 1
        n = _product_counter["n"]
        product = Product.create(
            sku=f"SKU-{n:04d}",
            slug=slug or f"product-{n}",
            title=title or f"Product {n}",
            price=price,
            stock=stock,
            status=status,
            is_featured=featured,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def make_coupon():
    from ordering.coupon.coupon import Coupon

    def _make(code="SAVE10", discount_type="percent", discount_value=10, min_spend=0, is_active=True, expires_at=None):
        coupon = Coupon.create(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            min_spend=min_spend,
            is_active=is_active,
            expires_at=expires_at,
        )
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make


@pytest.fixture()
def customer():
    return {"full_name": "Somchai Jaidee", "phone": "0812345678", "email": "somchai@example.com"}


@pytest.fixture()
def place_order(customer):
    from ordering.order.placement import OrderPlacementService

    def _place(product, quantity=1, customer_id="cust-001", coupon_code=None):
        return OrderPlacementService().place_order(
            customer_id=customer_id,
            items=[{"product_id": str(product.id), "quantity": quantity}],
            customer=customer,
            coupon_code=coupon_code,
        )

    return _place


@pytest.fixture()
def stored_product(make_product):
    return make_product(price=100.0, stock=5)


@pytest.fixture()
def yesterday():
    return datetime.now(UTC) - timedelta(days=1)


@pytest.fixture()
def stock_of():
    from ordering.catalogue.product import Product

    def _stock(product) -> int:
        return current_domain.repository_for(Product).get(str(product.id)).stock

    return _stock
