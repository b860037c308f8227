"""Cart storage factory.

Provides get_storage() / set_storage() to swap implementations:
- MemoryCartStorage for development and testing
- FileCartStorage for a JSON file on disk
"""

import os

from storefront.cart.storage.port import CartStorage

_current_storage: CartStorage | None = None


def get_storage() -> CartStorage:
    """Return the configured cart storage (singleton).

    Uses MemoryCartStorage by default. Set CART_STORAGE_ADAPTER=file to
    persist to ``cart_storage_path``.
    """
    global _current_storage
    if _current_storage is None:
        adapter = os.environ.get("CART_STORAGE_ADAPTER", "memory")
        if adapter == "memory":
            from storefront.cart.storage.memory_adapter import MemoryCartStorage

            _current_storage = MemoryCartStorage()
        elif adapter == "file":
            from storefront.cart.storage.file_adapter import FileCartStorage
            from storefront.config import get_settings

            _current_storage = FileCartStorage(get_settings().cart_storage_path)
        else:
            raise ValueError(f"Unknown cart storage adapter: {adapter}")
    return _current_storage


def set_storage(storage: CartStorage) -> None:
    """Override the active cart storage (useful for tests)."""
    global _current_storage
    _current_storage = storage


def reset_storage() -> None:
    global _current_storage
    _current_storage = None
