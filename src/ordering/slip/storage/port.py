"""Slip storage port (abstract interface).

Storage calls report failure as a value so slip intake can map each step
onto its own error code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StorageResult:
    success: bool
    path: str | None = None
    url: str | None = None
    error: str | None = None


class SlipStorage(ABC):
    """Private object storage for payment slip files."""

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> StorageResult:
        """Store ``data`` at ``path``. Existing objects are never overwritten."""
        ...

    @abstractmethod
    def create_timed_access_url(self, path: str, ttl_seconds: int) -> StorageResult:
        """Return a URL that grants read access to ``path`` for ``ttl_seconds``."""
        ...
