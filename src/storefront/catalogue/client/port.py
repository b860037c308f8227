"""Catalog port — abstract interface for the tenant catalog endpoint.

The engine only needs price and stock for sellable units; product pages,
images and categories are presentation concerns.
"""

from abc import ABC, abstractmethod

from storefront.catalogue.sellable import SellableUnit


class CatalogPort(ABC):
    """Abstract interface for catalog adapters."""

    @abstractmethod
    async def fetch_units(self, business_id: str) -> list[SellableUnit]:
        """Return every sellable unit (product or product + variant) of a tenant."""
        ...


class CatalogUnavailableError(Exception):
    """The catalog could not be fetched (transport error, bad status or timeout)."""

    def __init__(self, business_id: str, reason: str):
        self.business_id = business_id
        self.reason = reason
        super().__init__(f"Catalog unavailable for {business_id}: {reason}")
