"""HTTP order gateway posting to the storefront order endpoint."""

import httpx
import structlog

from storefront.checkout.gateway.port import OrderGateway, SubmissionResult

logger = structlog.get_logger(__name__)


class HttpOrderGateway(OrderGateway):
    def __init__(self, base_url: str, timeout: float, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def submit(self, business_id: str, payload: dict) -> SubmissionResult:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(f"/storefront/{business_id}/order", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("order_submission_transport_error", business_id=business_id, error=str(exc))
            return SubmissionResult.failed("Could not reach the store. Please try again.")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("success", True):
            return SubmissionResult(
                success=True,
                order_id=body.get("orderId"),
                order_number=body.get("orderNumber"),
                whatsapp_url=body.get("whatsappUrl"),
            )

        error = body.get("error") or f"Order submission failed with status {response.status_code}"
        logger.info("order_submission_rejected", business_id=business_id, status=response.status_code, error=error)
        return SubmissionResult.failed(error)
