"""Configurable fake delivery pricing for development and testing.

Responses can be set globally or per coordinate pair, and an artificial
delay can be attached to a coordinate pair to reproduce out-of-order
completions.
"""

import asyncio

from storefront.delivery.pricing.port import DeliveryPricingPort, FeeCalculation
from storefront.delivery.quote import PostalOption


class FakeDeliveryPricing(DeliveryPricingPort):
    def __init__(self) -> None:
        self.fee: float = 3.0
        self.error: Exception | None = None
        self.responses: dict[tuple[float, float], FeeCalculation | Exception] = {}
        self.delays: dict[tuple[float, float], float] = {}
        self.postal: dict[tuple[str, str], list[PostalOption]] = {}
        self.calls: list[dict] = []

    def configure(self, fee: float = 3.0, error: Exception | None = None) -> None:
        """Configure the default response for coordinates without an override."""
        self.fee = fee
        self.error = error

    def respond(self, latitude: float, longitude: float, response: FeeCalculation | Exception, delay: float = 0.0):
        self.responses[(latitude, longitude)] = response
        self.delays[(latitude, longitude)] = delay

    def publish_postal(self, country: str, city: str, options: list[PostalOption]) -> None:
        self.postal[(country, city)] = list(options)

    async def calculate_fee(self, business_id: str, latitude: float, longitude: float) -> FeeCalculation:
        self.calls.append({"method": "calculate_fee", "business_id": business_id, "lat": latitude, "lng": longitude})

        delay = self.delays.get((latitude, longitude), 0.0)
        if delay:
            await asyncio.sleep(delay)

        response = self.responses.get((latitude, longitude))
        if response is None:
            if self.error is not None:
                raise self.error
            return FeeCalculation(fee=self.fee)
        if isinstance(response, Exception):
            raise response
        return response

    async def postal_options(self, business_id: str, country: str, city: str) -> list[PostalOption]:
        self.calls.append({"method": "postal_options", "business_id": business_id, "country": country, "city": city})
        if self.error is not None:
            raise self.error
        return list(self.postal.get((country, city), []))
