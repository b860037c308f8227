"""Per-tenant storefront settings and the directory that serves them."""

import json
from enum import Enum
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog
from protean.exceptions import ObjectNotFoundError
from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.scheduling.hours import BusinessHours
from storefront.shared.fulfillment import FulfillmentMode

logger = structlog.get_logger(__name__)


class DeliveryPricing(Enum):
    """How a tenant prices delivery: street geolocation, or country/city postal carriers."""

    GEOLOCATION = "geolocation"
    POSTAL = "postal"


class StoreSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    business_id: str
    name: str = ""
    currency: str = "EUR"
    fulfillment_modes: tuple[FulfillmentMode, ...] = (FulfillmentMode.DELIVERY, FulfillmentMode.PICKUP)
    delivery_pricing: DeliveryPricing = DeliveryPricing.GEOLOCATION
    delivery_fee: float = Field(default=0.0, ge=0.0)
    minimum_order: float = Field(default=0.0, ge=0.0)
    temporarily_closed: bool = False
    business_hours: BusinessHours = Field(default_factory=BusinessHours)
    timezone: str = "UTC"
    time_format: str = "24"
    whatsapp_number: str | None = None

    @field_validator("business_hours", mode="before")
    @classmethod
    def accept_weekday_mapping(cls, value):
        if isinstance(value, dict) and "days" not in value:
            return BusinessHours.from_mapping(value)
        return value

    @field_validator("timezone")
    @classmethod
    def timezone_must_exist(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value}") from exc
        return value

    @field_validator("time_format")
    @classmethod
    def time_format_must_be_known(cls, value: str) -> str:
        if value not in ("12", "24"):
            raise ValueError("time_format must be '12' or '24'")
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def offers(self, mode: FulfillmentMode) -> bool:
        return mode in self.fulfillment_modes


class StoreDirectory:
    """Registry of tenant settings, keyed by business id."""

    def __init__(self) -> None:
        self._stores: dict[str, StoreSettings] = {}

    def register(self, settings: StoreSettings) -> None:
        self._stores[settings.business_id] = settings

    def get(self, business_id: str) -> StoreSettings:
        try:
            return self._stores[business_id]
        except KeyError:
            raise ObjectNotFoundError({"business_id": [f"Unknown storefront: {business_id}"]}) from None

    def __contains__(self, business_id: str) -> bool:
        return business_id in self._stores

    def load(self, path: str | Path) -> int:
        """Register every store listed in a JSON file; returns how many were loaded."""
        records = json.loads(Path(path).read_text(encoding="utf-8"))
        for record in records:
            self.register(StoreSettings.model_validate(record))
        logger.info("stores_loaded", path=str(path), count=len(records))
        return len(records)


_directory: StoreDirectory | None = None


def get_directory() -> StoreDirectory:
    global _directory
    if _directory is None:
        _directory = StoreDirectory()
    return _directory


def reset_directory() -> None:
    global _directory
    _directory = None
