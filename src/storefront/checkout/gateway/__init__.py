"""Order gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeOrderGateway for development and testing
- HttpOrderGateway against the storefront order endpoint
"""

import os

from storefront.checkout.gateway.port import OrderGateway

_current_gateway: OrderGateway | None = None


def get_gateway() -> OrderGateway:
    """Return the configured order gateway (singleton).

    Uses FakeOrderGateway by default. Set ORDER_GATEWAY_ADAPTER=http for the real endpoint.
    """
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("ORDER_GATEWAY_ADAPTER", "fake")
        if adapter == "fake":
            from storefront.checkout.gateway.fake_adapter import FakeOrderGateway

            _current_gateway = FakeOrderGateway()
        elif adapter == "http":
            from storefront.checkout.gateway.http_adapter import HttpOrderGateway
            from storefront.config import get_settings

            settings = get_settings()
            _current_gateway = HttpOrderGateway(settings.orders_service_url, settings.external_timeout_seconds)
        else:
            raise ValueError(f"Unknown order gateway adapter: {adapter}")
    return _current_gateway


def set_gateway(gateway: OrderGateway) -> None:
    """Override the active gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
