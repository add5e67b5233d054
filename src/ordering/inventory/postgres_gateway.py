"""Stock gateway calling the ``reserve_product_stock`` / ``release_product_stock``
database functions.

A deployment that has not installed the functions yet keeps taking orders:
the call degrades to a successful no-op, a warning is logged and the gap is
reported by ``configuration_gaps()`` so the health endpoint can surface it.
"""

import os
import threading

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from ordering.domain import logger
from ordering.inventory.port import StockGateway, StockResult

_MISSING_FUNCTION_MARKERS = ("does not exist", "no such function")

_gaps_lock = threading.Lock()
_configuration_gaps: set[str] = set()


def configuration_gaps() -> list[str]:
    """Names of stock functions found missing since the last reset."""
    with _gaps_lock:
        return sorted(_configuration_gaps)


def reset_configuration_gaps() -> None:
    with _gaps_lock:
        _configuration_gaps.clear()


def _record_gap(function_name: str) -> None:
    with _gaps_lock:
        _configuration_gaps.add(function_name)


def _is_missing_function(exc: Exception, function_name: str) -> bool:
    message = str(exc).lower()
    return function_name in message and any(marker in message for marker in _MISSING_FUNCTION_MARKERS)


class PostgresStockGateway(StockGateway):
    RESERVE_FUNCTION = "reserve_product_stock"
    RELEASE_FUNCTION = "release_product_stock"

    def __init__(self, engine=None, database_url: str | None = None):
        if engine is None:
            database_url = database_url or os.environ.get("DATABASE_URL")
            if not database_url:
                raise ValueError("DATABASE_URL is required for the postgres stock gateway")
            engine = create_engine(database_url, pool_pre_ping=True)
        self.engine = engine

    def _call(self, function_name: str, product_id: str, quantity: int):
        statement = text(f"SELECT {function_name}(:product_id, :quantity)")
        with self.engine.begin() as connection:
            return connection.execute(statement, {"product_id": product_id, "quantity": quantity}).scalar()

    def _degraded(self, function_name: str, product_id: str, quantity: int) -> StockResult:
        _record_gap(function_name)
        logger.warning(
            "stock_function_missing",
            function=function_name,
            product_id=product_id,
            quantity=quantity,
        )
        return StockResult.success(degraded=True, detail=f"{function_name} is not deployed")

    def reserve(self, product_id: str, quantity: int) -> StockResult:
        if quantity < 1:
            return StockResult.error(f"Invalid quantity {quantity}")
        try:
            reserved = self._call(self.RESERVE_FUNCTION, product_id, quantity)
        except SQLAlchemyError as exc:
            if _is_missing_function(exc, self.RESERVE_FUNCTION):
                return self._degraded(self.RESERVE_FUNCTION, product_id, quantity)
            logger.error("Stock reserve failed", product_id=product_id, error=str(exc))
            return StockResult.error(str(exc))

        if not reserved:
            return StockResult.insufficient(f"Not enough stock for product {product_id}")
        return StockResult.success()

    def release(self, product_id: str, quantity: int) -> StockResult:
        if quantity < 1:
            return StockResult.error(f"Invalid quantity {quantity}")
        try:
            self._call(self.RELEASE_FUNCTION, product_id, quantity)
        except SQLAlchemyError as exc:
            if _is_missing_function(exc, self.RELEASE_FUNCTION):
                return self._degraded(self.RELEASE_FUNCTION, product_id, quantity)
            logger.error("Stock release failed", product_id=product_id, error=str(exc))
            return StockResult.error(str(exc))
        return StockResult.success()
