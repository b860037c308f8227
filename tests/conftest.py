import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Pins the engine environment and keeps every adapter on its in-memory fake.
    """
    os.environ["STOREFRONT_ENV"] = session.config.option.env
    for variable in ("DELIVERY_PRICING_ADAPTER", "ORDER_GATEWAY_ADAPTER", "CART_STORAGE_ADAPTER", "CATALOG_ADAPTER"):
        os.environ.pop(variable, None)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to reset every process-wide singleton after each test"""
    from storefront.api.session import reset_sessions
    from storefront.cart.storage import reset_storage
    from storefront.catalogue.client import reset_catalog
    from storefront.checkout.gateway import reset_gateway
    from storefront.config import EngineSettings, reset_settings, set_settings
    from storefront.delivery.pricing import reset_pricing
    from storefront.stores import reset_directory

    set_settings(EngineSettings(_env_file=None))

    yield

    reset_sessions()
    reset_storage()
    reset_catalog()
    reset_gateway()
    reset_pricing()
    reset_directory()
    reset_settings()
