"""Stock reservation port (abstract interface).

Reserve and release report their outcome as a value, never by raising, so
the order saga decides how each outcome maps onto its own errors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class StockOutcome(Enum):
    OK = "ok"
    INSUFFICIENT = "insufficient"
    ERROR = "error"


@dataclass(frozen=True)
class StockResult:
    outcome: StockOutcome
    detail: str | None = None
    degraded: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is StockOutcome.OK

    @classmethod
    def success(cls, degraded: bool = False, detail: str | None = None) -> "StockResult":
        return cls(outcome=StockOutcome.OK, degraded=degraded, detail=detail)

    @classmethod
    def insufficient(cls, detail: str | None = None) -> "StockResult":
        return cls(outcome=StockOutcome.INSUFFICIENT, detail=detail)

    @classmethod
    def error(cls, detail: str) -> "StockResult":
        return cls(outcome=StockOutcome.ERROR, detail=detail)


class StockGateway(ABC):
    """Atomic conditional stock decrement and its inverse."""

    @abstractmethod
    def reserve(self, product_id: str, quantity: int) -> StockResult:
        """Decrement stock by ``quantity`` only if enough is available."""
        ...

    @abstractmethod
    def release(self, product_id: str, quantity: int) -> StockResult:
        """Return ``quantity`` units to stock."""
        ...
