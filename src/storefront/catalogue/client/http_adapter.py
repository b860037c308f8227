"""HTTP catalog adapter backed by the storefront products endpoint."""

import httpx
import structlog

from storefront.catalogue.client.port import CatalogPort
from storefront.catalogue.sellable import SellableUnit

logger = structlog.get_logger(__name__)


def _units_from_product(product: dict) -> list[SellableUnit]:
    """Flatten one product payload into its sellable units.

    A product with variants yields one unit per variant; the variant price
    and stock override the product's.
    """
    track_inventory = bool(product.get("trackInventory", False))
    variants = product.get("variants") or []
    if not variants:
        return [
            SellableUnit(
                product_id=product["id"],
                name=product.get("name", ""),
                price=product.get("price", 0.0),
                original_price=product.get("originalPrice"),
                stock=max(0, product.get("stock") or 0),
                track_inventory=track_inventory,
            )
        ]

    return [
        SellableUnit(
            product_id=product["id"],
            variant_id=variant["id"],
            name=f"{product.get('name', '')} - {variant.get('name', '')}".strip(" -"),
            price=variant.get("price", product.get("price", 0.0)),
            original_price=variant.get("originalPrice"),
            stock=max(0, variant.get("stock") or 0),
            track_inventory=track_inventory,
        )
        for variant in variants
    ]


class HttpCatalog(CatalogPort):
    def __init__(self, base_url: str, timeout: float, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def fetch_units(self, business_id: str) -> list[SellableUnit]:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(f"/storefront/{business_id}/products")
            response.raise_for_status()
            payload = response.json()

        products = payload.get("products", []) if isinstance(payload, dict) else payload
        units = [unit for product in products for unit in _units_from_product(product)]
        logger.debug("catalog_fetched", business_id=business_id, unit_count=len(units))
        return units
