"""Cart storage port — the shared key-value slot holding every tenant's cart.

The store is a single global entry (not one per tenant) containing a flat
list of line-item records, each tagged with its ``business_id``. Filtering
by tenant happens in application code.
"""

from abc import ABC, abstractmethod


class CartStorage(ABC):
    """Abstract interface for cart storage adapters."""

    @abstractmethod
    def read(self) -> list[dict]:
        """Return every stored line-item record, for all tenants."""
        ...

    @abstractmethod
    def write(self, entries: list[dict]) -> None:
        """Replace the stored records with ``entries``."""
        ...
