"""Catalog Reader: read-only product lookups for the storefront and checkout."""

import math
from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product, ProductStatus
from shared.queries import fetch_all

MAX_PAGE_SIZE = 200


@dataclass(frozen=True)
class ProductSnapshot:
    id: str
    sku: str
    slug: str
    title: str
    price: float
    stock: int
    status: str
    is_featured: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE.value

    @classmethod
    def from_product(cls, product: Product) -> "ProductSnapshot":
        return cls(
            id=str(product.id),
            sku=product.sku or "",
            slug=product.slug or "",
            title=product.title or "",
            price=float(product.price or 0.0),
            stock=int(product.stock or 0),
            status=product.status or ProductStatus.INACTIVE.value,
            is_featured=bool(product.is_featured),
        )


@dataclass(frozen=True)
class ProductPage:
    items: list[ProductSnapshot]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size))


def _products_query():
    return current_domain.repository_for(Product)._dao.query


def get_products(ids) -> dict[str, ProductSnapshot]:
    """Resolve products by id regardless of status. Missing ids are absent."""
    repo = current_domain.repository_for(Product)
    found = {}
    for product_id in {str(i) for i in ids}:
        try:
            found[product_id] = ProductSnapshot.from_product(repo.get(product_id))
        except ObjectNotFoundError:
            continue
    return found


def get_active_products(ids) -> dict[str, ProductSnapshot]:
    return {pid: snap for pid, snap in get_products(ids).items() if snap.is_active}


def get_product_by_slug(slug: str) -> ProductSnapshot | None:
    normalized = (slug or "").strip().lower()
    if not normalized:
        return None
    matches = _products_query().filter(slug=normalized, status=ProductStatus.ACTIVE.value).all().items
    return ProductSnapshot.from_product(matches[0]) if matches else None


def list_active_products(query=None, featured_only=False, page=1, page_size=20) -> ProductPage:
    page = max(1, page)
    page_size = min(MAX_PAGE_SIZE, max(1, page_size))

    products = fetch_all(_products_query().filter(status=ProductStatus.ACTIVE.value))
    if featured_only:
        products = [p for p in products if p.is_featured]

    needle = (query or "").strip().lower()
    if needle:
        products = [
            p for p in products if any(needle in (value or "").lower() for value in (p.slug, p.sku, p.title))
        ]

    products.sort(key=lambda p: p.created_at.timestamp() if p.created_at else 0.0, reverse=True)
    start = (page - 1) * page_size
    return ProductPage(
        items=[ProductSnapshot.from_product(p) for p in products[start : start + page_size]],
        total=len(products),
        page=page,
        page_size=page_size,
    )
