"""In-memory catalog for development and testing."""

from storefront.catalogue.client.port import CatalogPort
from storefront.catalogue.sellable import SellableUnit


class FakeCatalog(CatalogPort):
    def __init__(self) -> None:
        self.units: dict[str, list[SellableUnit]] = {}
        self.calls: list[str] = []

    def publish(self, business_id: str, units: list[SellableUnit]) -> None:
        """Replace the catalog of a tenant."""
        self.units[business_id] = list(units)

    async def fetch_units(self, business_id: str) -> list[SellableUnit]:
        self.calls.append(business_id)
        return list(self.units.get(business_id, []))
