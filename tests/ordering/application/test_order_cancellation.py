import pytest
from ordering.inventory import StockResult
from ordering.inventory.catalogue_gateway import CatalogueStockGateway
from ordering.order.cancellation import OrderCancellationService
from ordering.order.order import OrderStatus, PaymentStatus
from ordering.slip.intake import upload_payment_slip
from shared.errors import ConflictError, InvalidRequestError, NotFoundError


class CountingGateway(CatalogueStockGateway):
    def __init__(self):
        self.releases = []

    def release(self, product_id, quantity):
        self.releases.append((product_id, quantity))
        return super().release(product_id, quantity)


def test_cancel_returns_stock(stored_product, place_order, stock_of):
    placed = place_order(stored_product, quantity=3)

    result = OrderCancellationService().cancel_order(placed.order_number, "cust-001")

    assert result.status == OrderStatus.CANCELLED.value
    assert result.payment_status == PaymentStatus.EXPIRED.value
    assert not result.already_cancelled
    assert stock_of(stored_product) == 5


def test_second_cancel_is_a_no_op(stored_product, place_order, stock_of):
    placed = place_order(stored_product, quantity=3)
    gateway = CountingGateway()
    service = OrderCancellationService(stock_gateway=gateway)

    service.cancel_order(placed.order_number, "cust-001")
    again = service.cancel_order(placed.order_number, "cust-001")

    assert again.already_cancelled
    assert again.status == OrderStatus.CANCELLED.value
    assert len(gateway.releases) == 1
    assert stock_of(stored_product) == 5


def test_overlapping_cancel_does_not_release_twice(stored_product, place_order, stock_of):
    placed = place_order(stored_product, quantity=3)
    overlapping = []

    class OverlappingRelease(CountingGateway):
        def release(self, product_id, quantity):
            if not overlapping:
                nested = OrderCancellationService(stock_gateway=self)
                overlapping.append(nested.cancel_order(placed.order_number, "cust-001"))
            return super().release(product_id, quantity)

    gateway = OverlappingRelease()
    result = OrderCancellationService(stock_gateway=gateway).cancel_order(placed.order_number, "cust-001")

    assert not result.already_cancelled
    assert overlapping[0].already_cancelled
    assert len(gateway.releases) == 1
    assert stock_of(stored_product) == 5


def test_failed_release_does_not_block_cancellation(stored_product, place_order, stock_of):
    placed = place_order(stored_product, quantity=2)

    class BrokenRelease(CatalogueStockGateway):
        def release(self, product_id, quantity):
            return StockResult.error("timeout")

    result = OrderCancellationService(stock_gateway=BrokenRelease()).cancel_order(placed.order_number, "cust-001")

    assert result.status == OrderStatus.CANCELLED.value
    assert stock_of(stored_product) == 3


def test_other_customers_order_is_not_found(stored_product, place_order):
    placed = place_order(stored_product, customer_id="cust-001")
    with pytest.raises(NotFoundError) as exc:
        OrderCancellationService().cancel_order(placed.order_number, "cust-999")
    assert exc.value.code == "ORDER_NOT_FOUND"


def test_order_under_review_cannot_be_cancelled(stored_product, place_order):
    placed = place_order(stored_product)
    upload_payment_slip(placed.order_number, "cust-001", "slip.png", "image/png", b"\x89PNG")

    with pytest.raises(ConflictError) as exc:
        OrderCancellationService().cancel_order(placed.order_number, "cust-001")
    assert exc.value.code == "ORDER_NOT_CANCELLABLE"


def test_blank_order_number():
    with pytest.raises(InvalidRequestError) as exc:
        OrderCancellationService().cancel_order("  ", "cust-001")
    assert exc.value.code == "INVALID_ORDER_NO"
