"""Delivery pricing factory.

Provides get_pricing() / set_pricing() to swap implementations:
- FakeDeliveryPricing for development and testing
- ZoneFeeCalculator for in-process zone pricing
- HttpDeliveryPricing against the storefront fee endpoint
"""

import os

from storefront.delivery.pricing.port import DeliveryPricingPort

_current_pricing: DeliveryPricingPort | None = None


def get_pricing() -> DeliveryPricingPort:
    """Return the configured delivery pricing adapter (singleton).

    Uses FakeDeliveryPricing by default; configure via DELIVERY_PRICING_ADAPTER.
    """
    global _current_pricing
    if _current_pricing is None:
        adapter = os.environ.get("DELIVERY_PRICING_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.delivery.pricing.fake_adapter import FakeDeliveryPricing

            _current_pricing = FakeDeliveryPricing()
        elif adapter == "zones":
            from storefront.delivery.pricing.zone_adapter import ZoneFeeCalculator

            _current_pricing = ZoneFeeCalculator()
        elif adapter == "http":
            from storefront.config import get_settings
            from storefront.delivery.pricing.http_adapter import HttpDeliveryPricing

            settings = get_settings()
            _current_pricing = HttpDeliveryPricing(settings.pricing_service_url, settings.external_timeout_seconds)
        else:
            raise ValueError(f"Unknown delivery pricing adapter: {adapter}")
    return _current_pricing


def set_pricing(pricing: DeliveryPricingPort) -> None:
    """Override the active pricing adapter (useful for tests)."""
    global _current_pricing
    _current_pricing = pricing


def reset_pricing() -> None:
    global _current_pricing
    _current_pricing = None
