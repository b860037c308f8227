"""Delivery pricing port — abstract interface for the fee and postal endpoints.

Fee calculation either returns a ``FeeCalculation`` or raises a
``FeeCalculationError`` classified by ``FeeErrorCode``. Transport failures
may surface as any exception; the resolver classifies those itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from storefront.delivery.quote import PostalOption


class FeeErrorCode(Enum):
    OUTSIDE_DELIVERY_AREA = "OUTSIDE_DELIVERY_AREA"
    DELIVERY_NOT_AVAILABLE = "DELIVERY_NOT_AVAILABLE"
    CALCULATION_FAILED = "CALCULATION_FAILED"

    @classmethod
    def from_code(cls, code: str | None) -> "FeeErrorCode":
        try:
            return cls(code)
        except ValueError:
            return cls.CALCULATION_FAILED


class FeeCalculationError(Exception):
    """Classified failure reported by the fee-calculation collaborator."""

    def __init__(self, code: FeeErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class FeeCalculation:
    """Successful fee calculation."""

    fee: float
    zone: str | None = None
    distance: float | None = None


class DeliveryPricingPort(ABC):
    """Abstract interface for delivery pricing adapters."""

    @abstractmethod
    async def calculate_fee(self, business_id: str, latitude: float, longitude: float) -> FeeCalculation:
        """Price delivery from the store to the given coordinates."""
        ...

    @abstractmethod
    async def postal_options(self, business_id: str, country: str, city: str) -> list[PostalOption]:
        """List the postal carriers (with price and ETA) serving a country/city."""
        ...
