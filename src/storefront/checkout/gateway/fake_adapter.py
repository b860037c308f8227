"""Configurable fake order gateway for development and testing."""

from uuid import uuid4

from storefront.checkout.gateway.port import OrderGateway, SubmissionResult


class FakeOrderGateway(OrderGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Failed to create order"
        self.submissions: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Failed to create order") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    async def submit(self, business_id: str, payload: dict) -> SubmissionResult:
        self.submissions.append({"business_id": business_id, "payload": payload})

        if not self.should_succeed:
            return SubmissionResult.failed(self.failure_reason)
        order_number = f"ORD-{len(self.submissions):04d}"
        return SubmissionResult(
            success=True,
            order_id=f"fake_order_{uuid4().hex[:12]}",
            order_number=order_number,
            whatsapp_url=f"https://wa.me/?text=Order%20{order_number}",
        )
