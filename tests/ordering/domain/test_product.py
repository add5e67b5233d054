"""Tests for the Product aggregate's stock rules."""

import pytest
from ordering.catalogue.product import Product, ProductStatus
from protean.exceptions import ValidationError


def _product(stock=5):
    return Product.create(sku="SKU-1", slug="  Red-Helmet ", title="Red helmet", price=100.0, stock=stock)


class TestProductCreation:
    def test_slug_is_normalized(self):
        assert _product().slug == "red-helmet"

    def test_active_by_default(self):
        product = _product()
        assert product.status == ProductStatus.ACTIVE.value
        assert product.is_active


class TestStockMovements:
    def test_withdraw_decrements(self):
        product = _product(stock=5)
        assert product.withdraw_stock(3) is True
        assert product.stock == 2

    def test_withdraw_more_than_available_changes_nothing(self):
        product = _product(stock=2)
        assert product.withdraw_stock(3) is False
        assert product.stock == 2

    def test_withdraw_exact_stock(self):
        product = _product(stock=2)
        assert product.withdraw_stock(2) is True
        assert product.stock == 0

    def test_withdraw_requires_positive_quantity(self):
        with pytest.raises(ValidationError):
            _product().withdraw_stock(0)

    def test_restock(self):
        product = _product(stock=1)
        product.restock(4)
        assert product.stock == 5
