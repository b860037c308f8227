"""HTTP delivery pricing adapter for the storefront fee and postal endpoints."""

import httpx
import structlog

from storefront.delivery.pricing.port import DeliveryPricingPort, FeeCalculation, FeeCalculationError, FeeErrorCode
from storefront.delivery.quote import PostalOption

logger = structlog.get_logger(__name__)


def _error_payload(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


class HttpDeliveryPricing(DeliveryPricingPort):
    def __init__(self, base_url: str, timeout: float, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def calculate_fee(self, business_id: str, latitude: float, longitude: float) -> FeeCalculation:
        async with self._client() as client:
            response = await client.post(
                "/calculate-delivery-fee",
                json={"storeId": business_id, "customerLat": latitude, "customerLng": longitude},
            )

        if response.status_code == 200:
            payload = response.json()
            return FeeCalculation(
                fee=payload["deliveryFee"],
                zone=payload.get("zone"),
                distance=payload.get("distance"),
            )

        payload = _error_payload(response)
        code = FeeErrorCode.from_code(payload.get("code"))
        message = payload.get("error") or f"Fee calculation failed with status {response.status_code}"
        logger.info("fee_calculation_rejected", business_id=business_id, status=response.status_code, code=code.value)
        raise FeeCalculationError(code, message)

    async def postal_options(self, business_id: str, country: str, city: str) -> list[PostalOption]:
        async with self._client() as client:
            response = await client.get(
                f"/storefront/{business_id}/postal-pricing",
                params={"country": country, "cityName": city.strip()},
            )
            response.raise_for_status()

        options = []
        for record in response.json().get("pricing", []):
            postal = record.get("postal") or {}
            options.append(
                PostalOption(
                    id=record["id"],
                    carrier_name=postal.get("name") or record.get("carrierName", ""),
                    price=record["price"],
                    estimated_time=record.get("deliveryTime"),
                )
            )
        return options
