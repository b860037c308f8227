from datetime import datetime, timezone

import pytest

from storefront.cart.storage import set_storage
from storefront.cart.storage.memory_adapter import MemoryCartStorage
from storefront.catalogue.client import set_catalog
from storefront.catalogue.client.fake_adapter import FakeCatalog
from storefront.catalogue.sellable import SellableUnit
from storefront.checkout.gateway import set_gateway
from storefront.checkout.gateway.fake_adapter import FakeOrderGateway
from storefront.delivery.pricing import set_pricing
from storefront.delivery.pricing.fake_adapter import FakeDeliveryPricing
from storefront.scheduling.hours import WEEKDAYS, BusinessHours
from storefront.stores import StoreSettings


@pytest.fixture()
def now():
    """Monday 2026-10-19, 12:00 UTC."""
    return datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock(now):
    return lambda: now


@pytest.fixture()
def business_hours():
    return BusinessHours.from_mapping({day: {"open": "09:00", "close": "17:00"} for day in WEEKDAYS})


@pytest.fixture()
def make_store(business_hours):
    def _make_store(business_id: str = "store-a", **overrides) -> StoreSettings:
        defaults = {
            "business_id": business_id,
            "name": "Corner Bistro",
            "delivery_fee": 3.0,
            "business_hours": business_hours,
        }
        defaults.update(overrides)
        return StoreSettings(**defaults)

    return _make_store


@pytest.fixture()
def make_unit():
    def _make_unit(product_id: str = "prod-1", **overrides) -> SellableUnit:
        defaults = {"product_id": product_id, "name": "Margherita", "price": 10.0}
        defaults.update(overrides)
        return SellableUnit(**defaults)

    return _make_unit


@pytest.fixture()
def storage():
    storage = MemoryCartStorage()
    set_storage(storage)
    return storage


@pytest.fixture()
def pricing():
    pricing = FakeDeliveryPricing()
    set_pricing(pricing)
    return pricing


@pytest.fixture()
def gateway():
    gateway = FakeOrderGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def catalog():
    catalog = FakeCatalog()
    set_catalog(catalog)
    return catalog
