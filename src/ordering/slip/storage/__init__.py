"""Slip storage factory.

Provides get_slip_storage() / set_slip_storage() to swap implementations:
- FakeSlipStorage (default) for development and testing
- LocalSlipStorage for a directory on disk with signed URLs

The default is chosen by the ``SLIP_STORAGE`` environment variable.
"""

import os

from ordering.slip.storage.port import SlipStorage, StorageResult

_current_storage: SlipStorage | None = None

__all__ = ["SlipStorage", "StorageResult", "get_slip_storage", "reset_slip_storage", "set_slip_storage"]


def get_slip_storage() -> SlipStorage:
    """Return the current slip storage."""
    global _current_storage
    if _current_storage is None:
        kind = os.environ.get("SLIP_STORAGE", "memory").strip().lower()
        if kind == "local":
            from ordering.slip.storage.local_storage import LocalSlipStorage

            _current_storage = LocalSlipStorage()
        elif kind == "memory":
            from ordering.slip.storage.fake_storage import FakeSlipStorage

            _current_storage = FakeSlipStorage()
        else:
            raise ValueError(f"Unknown slip storage: {kind}")
    return _current_storage


def set_slip_storage(storage: SlipStorage) -> None:
    """Override the active slip storage (useful for tests)."""
    global _current_storage
    _current_storage = storage


def reset_slip_storage() -> None:
    """Reset to the environment-selected storage."""
    global _current_storage
    _current_storage = None
