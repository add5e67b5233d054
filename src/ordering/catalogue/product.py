"""Product aggregate (CQRS): the storefront's snapshot view of the catalogue.

Catalogue authoring lives elsewhere; this context only reads products and,
through the stock gateway, adjusts their stock. Nothing else writes
``stock``.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from ordering.domain import ordering


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@ordering.aggregate
class Product:
    sku = String(required=True, max_length=64)
    slug = String(required=True, max_length=200)
    title = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    is_featured = Boolean(default=False)
    created_at = DateTime()

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    @classmethod
    def create(cls, sku, slug, title, price, stock=0, status=ProductStatus.ACTIVE.value, is_featured=False):
        return cls(
            sku=sku,
            slug=slug.strip().lower(),
            title=title,
            price=price,
            stock=stock,
            status=status,
            is_featured=is_featured,
            created_at=datetime.now(UTC),
        )

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    def withdraw_stock(self, quantity):
        """Decrement stock by ``quantity``. Returns False when stock is short."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if (self.stock or 0) < quantity:
            return False
        self.stock = (self.stock or 0) - quantity
        return True

    def restock(self, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        self.stock = (self.stock or 0) + quantity
