"""Order gateway port (abstract interface).

Defines the contract for the order-submission collaborator. The collaborator
owns the order lifecycle once it accepts a payload; the engine only keeps the
order number and the messaging link it hands back.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SubmissionResult:
    """Result of an order submission attempt."""

    success: bool
    order_id: str | None = None
    order_number: str | None = None
    whatsapp_url: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "SubmissionResult":
        return cls(success=False, error=error)


class OrderGateway(ABC):
    """Abstract order-submission interface."""

    @abstractmethod
    async def submit(self, business_id: str, payload: dict) -> SubmissionResult:
        """Submit an assembled order payload for a tenant."""
        ...
