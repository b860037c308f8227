"""In-process delivery pricing using distance zones around the store.

Pricing rules:
    - the store must accept deliveries and not be temporarily closed;
    - without a configured store address the base fee covers the whole radius;
    - the great-circle distance must lie within the delivery radius;
    - with no zones configured the base fee applies, otherwise the first zone
      (ordered by ``max_distance``) covering the distance sets the fee.
"""

import math

import structlog
from pydantic import BaseModel, ConfigDict, Field

from storefront.delivery.pricing.port import DeliveryPricingPort, FeeCalculation, FeeCalculationError, FeeErrorCode
from storefront.delivery.quote import PostalOption

logger = structlog.get_logger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class DeliveryZone(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    max_distance: float = Field(gt=0)
    fee: float = Field(ge=0)
    is_active: bool = True


class StoreLocation(BaseModel):
    """Delivery configuration of one store."""

    model_config = ConfigDict(frozen=True)

    address: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    delivery_enabled: bool = True
    temporarily_closed: bool = False
    delivery_radius: float | None = None
    delivery_fee: float | None = Field(default=None, ge=0)
    zones: tuple[DeliveryZone, ...] = ()


def _base_fee(location: StoreLocation, distance: float) -> FeeCalculation:
    if location.delivery_fee is None:
        raise FeeCalculationError(
            FeeErrorCode.CALCULATION_FAILED,
            "Delivery fee not configured - please contact store to set up delivery pricing",
        )
    zone = "Free Delivery" if location.delivery_fee == 0 else "Standard Delivery"
    return FeeCalculation(fee=location.delivery_fee, zone=zone, distance=distance)


class ZoneFeeCalculator(DeliveryPricingPort):
    def __init__(self) -> None:
        self.locations: dict[str, StoreLocation] = {}
        self.postal: dict[tuple[str, str, str], list[PostalOption]] = {}

    def register_store(self, business_id: str, location: StoreLocation) -> None:
        self.locations[business_id] = location

    def register_postal(self, business_id: str, country: str, city: str, options: list[PostalOption]) -> None:
        self.postal[(business_id, country, city.strip())] = sorted(options, key=lambda o: o.price)

    async def calculate_fee(self, business_id: str, latitude: float, longitude: float) -> FeeCalculation:
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise FeeCalculationError(FeeErrorCode.CALCULATION_FAILED, "Invalid coordinates")

        location = self.locations.get(business_id)
        if location is None:
            raise FeeCalculationError(FeeErrorCode.CALCULATION_FAILED, "Store not found")
        if location.temporarily_closed:
            raise FeeCalculationError(FeeErrorCode.DELIVERY_NOT_AVAILABLE, "Store is temporarily closed")
        if not location.delivery_enabled:
            raise FeeCalculationError(FeeErrorCode.DELIVERY_NOT_AVAILABLE, "Delivery is not enabled for this store")
        if not location.delivery_radius or location.delivery_radius <= 0:
            raise FeeCalculationError(
                FeeErrorCode.CALCULATION_FAILED, "Delivery radius not configured - cannot calculate delivery"
            )

        if not location.address:
            return _base_fee(location, 0.0)

        if location.latitude is None or location.longitude is None:
            raise FeeCalculationError(
                FeeErrorCode.CALCULATION_FAILED,
                "Store coordinates not configured - cannot calculate delivery distance",
            )

        distance = haversine_km(location.latitude, location.longitude, latitude, longitude)
        rounded = round(distance, 2)
        if distance > location.delivery_radius:
            raise FeeCalculationError(
                FeeErrorCode.OUTSIDE_DELIVERY_AREA,
                f"Address is outside delivery area (maximum {location.delivery_radius:g}km)",
            )

        zones = sorted((z for z in location.zones if z.is_active), key=lambda z: z.max_distance)
        if not zones:
            return _base_fee(location, rounded)

        zone = next((z for z in zones if distance <= z.max_distance), None)
        if zone is None:
            raise FeeCalculationError(
                FeeErrorCode.OUTSIDE_DELIVERY_AREA,
                f"Address is outside all configured delivery zones (maximum {zones[-1].max_distance:g}km)",
            )

        logger.debug("zone_fee_calculated", business_id=business_id, zone=zone.name, distance=rounded)
        return FeeCalculation(fee=zone.fee, zone=zone.name, distance=rounded)

    async def postal_options(self, business_id: str, country: str, city: str) -> list[PostalOption]:
        return list(self.postal.get((business_id, country, city.strip()), []))
