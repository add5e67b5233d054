"""Stock gateway backed by the Product aggregate.

The check-and-decrement runs under one process-wide lock, which makes it the
single atomic step for a single-process deployment. Multi-process deployments
use ``PostgresStockGateway`` so the database statement is the atomic step.
"""

import threading

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.catalogue.product import Product
from ordering.domain import logger
from ordering.inventory.port import StockGateway, StockResult

_stock_lock = threading.Lock()


class CatalogueStockGateway(StockGateway):
    def reserve(self, product_id: str, quantity: int) -> StockResult:
        if quantity < 1:
            return StockResult.error(f"Invalid quantity {quantity}")

        repo = current_domain.repository_for(Product)
        with _stock_lock:
            try:
                product = repo.get(product_id)
            except ObjectNotFoundError:
                return StockResult.error(f"Product {product_id} not found")

            if not product.withdraw_stock(quantity):
                return StockResult.insufficient(f"Only {product.stock} left of product {product_id}")
            repo.add(product)

        logger.debug("Stock reserved", product_id=product_id, quantity=quantity)
        return StockResult.success()

    def release(self, product_id: str, quantity: int) -> StockResult:
        if quantity < 1:
            return StockResult.error(f"Invalid quantity {quantity}")

        repo = current_domain.repository_for(Product)
        with _stock_lock:
            try:
                product = repo.get(product_id)
            except ObjectNotFoundError:
                return StockResult.error(f"Product {product_id} not found")
            product.restock(quantity)
            repo.add(product)

        logger.debug("Stock released", product_id=product_id, quantity=quantity)
        return StockResult.success()
