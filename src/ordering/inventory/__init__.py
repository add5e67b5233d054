"""Stock gateway factory.

Provides get_stock_gateway() / set_stock_gateway() to swap implementations:
- CatalogueStockGateway (default) adjusts the Product aggregate in-process
- PostgresStockGateway calls the stock functions in the database

The default is chosen by the ``STOCK_GATEWAY`` environment variable.
"""

import os

from ordering.inventory.port import StockGateway, StockOutcome, StockResult
from ordering.inventory.postgres_gateway import configuration_gaps, reset_configuration_gaps

_current_gateway: StockGateway | None = None

__all__ = [
    "StockGateway",
    "StockOutcome",
    "StockResult",
    "configuration_gaps",
    "get_stock_gateway",
    "reset_configuration_gaps",
    "reset_stock_gateway",
    "set_stock_gateway",
]


def get_stock_gateway() -> StockGateway:
    """Return the current stock gateway."""
    global _current_gateway
    if _current_gateway is None:
        kind = os.environ.get("STOCK_GATEWAY", "catalogue").strip().lower()
        if kind == "postgres":
            from ordering.inventory.postgres_gateway import PostgresStockGateway

            _current_gateway = PostgresStockGateway()
        elif kind == "catalogue":
            from ordering.inventory.catalogue_gateway import CatalogueStockGateway

            _current_gateway = CatalogueStockGateway()
        else:
            raise ValueError(f"Unknown stock gateway: {kind}")
    return _current_gateway


def set_stock_gateway(gateway: StockGateway) -> None:
    """Override the active stock gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_stock_gateway() -> None:
    """Reset to the environment-selected gateway."""
    global _current_gateway
    _current_gateway = None
