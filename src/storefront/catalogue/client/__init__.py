"""Catalog client factory.

Provides get_catalog() / set_catalog() to swap implementations:
- FakeCatalog for development and testing
- HttpCatalog against the storefront products endpoint
"""

import asyncio
import os

import structlog

from storefront.catalogue.client.port import CatalogPort, CatalogUnavailableError
from storefront.catalogue.sellable import SellableUnit

logger = structlog.get_logger(__name__)

_current_catalog: CatalogPort | None = None


def get_catalog() -> CatalogPort:
    """Return the configured catalog adapter (singleton).

    Uses FakeCatalog by default. Set CATALOG_ADAPTER=http for the real endpoint.
    """
    global _current_catalog
    if _current_catalog is None:
        adapter = os.environ.get("CATALOG_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.catalogue.client.fake_adapter import FakeCatalog

            _current_catalog = FakeCatalog()
        elif adapter == "http":
            from storefront.catalogue.client.http_adapter import HttpCatalog
            from storefront.config import get_settings

            settings = get_settings()
            _current_catalog = HttpCatalog(settings.catalog_service_url, settings.external_timeout_seconds)
        else:
            raise ValueError(f"Unknown catalog adapter: {adapter}")
    return _current_catalog


def set_catalog(catalog: CatalogPort) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    global _current_catalog
    _current_catalog = None


async def fetch_units(
    business_id: str, catalog: CatalogPort | None = None, timeout: float | None = None
) -> list[SellableUnit]:
    """Fetch a tenant's units, bounded by the external call timeout.

    Every failure surfaces as ``CatalogUnavailableError``.
    """
    from storefront.config import get_settings

    catalog = catalog or get_catalog()
    timeout = timeout if timeout is not None else get_settings().external_timeout_seconds
    try:
        return await asyncio.wait_for(catalog.fetch_units(business_id), timeout=timeout)
    except TimeoutError as exc:
        logger.warning("catalog_timeout", business_id=business_id, timeout=timeout)
        raise CatalogUnavailableError(business_id, "timed out") from exc
    except Exception as exc:
        logger.warning("catalog_unavailable", business_id=business_id, error=str(exc))
        raise CatalogUnavailableError(business_id, str(exc)) from exc
