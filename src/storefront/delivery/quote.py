"""Delivery quotes — the resolved outcome of a fee / eligibility check."""

import re
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class QuoteStatus(Enum):
    FEE = "Fee"
    OUTSIDE_AREA = "OutsideArea"
    UNAVAILABLE = "Unavailable"
    CALCULATION_FAILED = "CalculationFailed"


@dataclass(frozen=True)
class DeliveryQuote:
    """Fee or classified failure for one customer location / postal zone.

    Every non-``FEE`` quote carries an amount of 0 so a stale fee can never
    ride along with an error.
    """

    status: QuoteStatus
    amount: float = 0.0
    max_distance: float | None = None
    reason: str | None = None
    zone: str | None = None
    distance: float | None = None

    def __post_init__(self):
        if self.status != QuoteStatus.FEE and self.amount != 0:
            raise ValueError("Only a fee quote can carry an amount")
        if self.amount < 0:
            raise ValueError("Delivery fee cannot be negative")

    @classmethod
    def fee(cls, amount: float, zone: str | None = None, distance: float | None = None) -> "DeliveryQuote":
        return cls(QuoteStatus.FEE, amount=round(amount, 2), zone=zone, distance=distance)

    @classmethod
    def outside_area(cls, max_distance: float | None = None, reason: str | None = None) -> "DeliveryQuote":
        return cls(QuoteStatus.OUTSIDE_AREA, max_distance=max_distance, reason=reason)

    @classmethod
    def unavailable(cls, reason: str) -> "DeliveryQuote":
        return cls(QuoteStatus.UNAVAILABLE, reason=reason)

    @classmethod
    def calculation_failed(cls, reason: str) -> "DeliveryQuote":
        return cls(QuoteStatus.CALCULATION_FAILED, reason=reason)

    @property
    def is_fee(self) -> bool:
        return self.status == QuoteStatus.FEE

    @property
    def is_error(self) -> bool:
        return self.status != QuoteStatus.FEE

    @property
    def message(self) -> str | None:
        """Human-readable explanation for error quotes."""
        if self.status == QuoteStatus.OUTSIDE_AREA:
            if self.max_distance is not None:
                return f"Address is outside the delivery area (maximum {self.max_distance:g}km)"
            return "Address is outside the delivery area"
        if self.status == QuoteStatus.UNAVAILABLE:
            return self.reason or "Delivery is not available"
        if self.status == QuoteStatus.CALCULATION_FAILED:
            return self.reason or "Failed to calculate delivery fee"
        return None


_DISTANCE_KM = re.compile(r"(\d+(?:[.,]\d+)?)\s*km", re.IGNORECASE)
_NUMBER = re.compile(r"(\d+(?:[.,]\d+)?)")


def parse_max_distance(message: str | None) -> float | None:
    """Best-effort extraction of the radius from an outside-area message.

    ``"Address is outside delivery area (maximum 5km)"`` gives ``5.0``; a
    message without a number gives ``None``.
    """
    if not message:
        return None
    match = _DISTANCE_KM.search(message) or _NUMBER.search(message)
    if match is None:
        return None
    return float(match.group(1).replace(",", "."))


class PostalOption(BaseModel):
    """One postal carrier offer for a country/city."""

    model_config = ConfigDict(frozen=True)

    id: str
    carrier_name: str
    price: float = Field(ge=0.0)
    estimated_time: str | None = None
