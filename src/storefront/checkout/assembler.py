"""OrderAssembler — reconciles cart, customer, fulfillment and schedule into an order.

Scheduling is an explicit state:

    IMMEDIATE ──request_scheduled()──────────────> SCHEDULED
        │                                              │
        └─request_immediate() while closed─> FORCED_SCHEDULED
                                                       │
    IMMEDIATE <──request_immediate() once open again───┘

Readiness is reported as an ordered list of customer-facing reasons;
``submit()`` only talks to the order gateway once that list is empty.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum

import structlog
from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.cart.store import CartStore
from storefront.checkout.gateway import get_gateway
from storefront.checkout.gateway.port import OrderGateway, SubmissionResult
from storefront.config import get_settings
from storefront.delivery.quote import DeliveryQuote, PostalOption, QuoteStatus
from storefront.delivery.resolver import DeliveryFeeResolver
from storefront.scheduling.slots import TimeSlot, TimeSlotGenerator
from storefront.shared.fulfillment import FulfillmentMode
from storefront.shared.phone import PhoneNumber
from storefront.stores import DeliveryPricing, StoreSettings

logger = structlog.get_logger(__name__)

IMMEDIATE_SENTINELS = frozenset({"asap", "immediate", "now"})


class SchedulingMode(Enum):
    IMMEDIATE = "immediate"
    SCHEDULED = "scheduled"
    FORCED_SCHEDULED = "forcedScheduled"


class CustomerInfo(BaseModel):
    name: str = ""
    phone: str = ""
    email: str | None = None
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None
    country: str | None = None
    city: str | None = None
    notes: str | None = None
    payment_method: str = "cash"

    @property
    def phone_number(self) -> PhoneNumber | None:
        return PhoneNumber.parse(self.phone)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: float
    delivery_fee: float
    total: float


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderLinePayload(_Payload):
    product_id: str
    variant_id: str | None = None
    name: str
    quantity: int
    price: float
    modifiers: list[dict] = Field(default_factory=list)
    total: float


class OrderPayload(_Payload):
    customer_name: str
    customer_phone: str
    customer_email: str | None = None
    delivery_type: str
    delivery_address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    postal_pricing_id: str | None = None
    delivery_time: str | None = None
    payment_method: str
    special_instructions: str | None = None
    items: list[OrderLinePayload]
    subtotal: float
    delivery_fee: float
    tax: float = 0.0
    discount: float = 0.0
    total: float

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderAssembler:
    def __init__(
        self,
        store: StoreSettings,
        cart: CartStore,
        resolver: DeliveryFeeResolver | None = None,
        gateway: OrderGateway | None = None,
        slots: TimeSlotGenerator | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not store.fulfillment_modes:
            raise ValidationError({"fulfillment": ["Store offers no fulfillment mode"]})
        self.store = store
        self.cart = cart
        self.resolver = resolver or DeliveryFeeResolver(store)
        self.gateway = gateway or get_gateway()
        self.slots = slots or TimeSlotGenerator(tz=store.tz)
        self.clock = clock

        self.fulfillment: FulfillmentMode = store.fulfillment_modes[0]
        self.scheduling = SchedulingMode.IMMEDIATE
        self.slot: TimeSlot | None = None
        self.customer = CustomerInfo()

    def local_now(self) -> datetime:
        return self.clock().astimezone(self.store.tz).replace(tzinfo=None)

    @property
    def is_delivery(self) -> bool:
        return self.fulfillment == FulfillmentMode.DELIVERY

    @property
    def uses_postal_pricing(self) -> bool:
        return self.is_delivery and self.store.delivery_pricing == DeliveryPricing.POSTAL

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def set_fulfillment(self, mode: FulfillmentMode) -> None:
        if not self.store.offers(mode):
            raise ValidationError({"fulfillment": [f"{mode.value} is not available for this store"]})
        if mode == self.fulfillment:
            return
        if self.fulfillment == FulfillmentMode.DELIVERY:
            self._forget_delivery_inputs()
        self.fulfillment = mode
        # Buffers differ per mode, so a chosen slot may no longer be offered
        if self.slot is not None and not self._slot_still_offered(self.slot):
            self.slot = None
        logger.info("fulfillment_changed", business_id=self.store.business_id, mode=mode.value)

    def _forget_delivery_inputs(self) -> None:
        """Drop the quote together with the address or zone it was computed for.

        A later return to delivery starts from an empty address.
        """
        self.resolver.reset()
        self.customer = self.customer.model_copy(
            update={"address": "", "latitude": None, "longitude": None, "country": None, "city": None}
        )

    def update_customer(self, **fields) -> CustomerInfo:
        self.customer = self.customer.model_copy(update=fields)
        return self.customer

    async def update_address(
        self, address: str, latitude: float | None, longitude: float | None
    ) -> DeliveryQuote | None:
        """Record a delivery address and re-quote when coordinates are known."""
        self.customer = self.customer.model_copy(update={"address": address, "latitude": latitude, "longitude": longitude})
        if latitude is None or longitude is None:
            self.resolver.reset()
            return None
        return await self.resolver.resolve(latitude, longitude)

    async def update_postal_zone(self, country: str, city: str) -> list[PostalOption]:
        self.customer = self.customer.model_copy(update={"country": country, "city": city})
        return await self.resolver.postal_options(country, city)

    # -------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------
    def request_immediate(self) -> SchedulingMode:
        """Order now, or fall back to forced scheduling while the store is closed."""
        if self.store.business_hours.is_open_at(self.local_now()):
            self.scheduling = SchedulingMode.IMMEDIATE
            self.slot = None
        else:
            self.scheduling = SchedulingMode.FORCED_SCHEDULED
            logger.info("scheduling_forced", business_id=self.store.business_id)
        return self.scheduling

    def request_scheduled(self) -> SchedulingMode:
        self.scheduling = SchedulingMode.SCHEDULED
        return self.scheduling

    def available_slots(self, day: date) -> list[TimeSlot]:
        return self.slots.generate(self.store.business_hours, day, self.clock(), self.fulfillment)

    def select_slot(self, day: date, value: str) -> TimeSlot | None:
        """Pick a slot by its ``HH:MM`` value; the immediate sentinels clear the choice."""
        if value.strip().lower() in IMMEDIATE_SENTINELS:
            self.slot = None
            return None
        slot = next((s for s in self.available_slots(day) if s.value == value), None)
        if slot is None:
            raise ValidationError({"slot": [f"{value} is not an available time on {day.isoformat()}"]})
        self.slot = slot
        if self.scheduling == SchedulingMode.IMMEDIATE:
            self.scheduling = SchedulingMode.SCHEDULED
        return slot

    def _slot_still_offered(self, slot: TimeSlot) -> bool:
        return self.slots.is_slot_valid(self.store.business_hours, slot, self.clock(), self.fulfillment)

    # -------------------------------------------------------------------
    # Totals & readiness
    # -------------------------------------------------------------------
    def totals(self) -> OrderTotals:
        subtotal = self.cart.totals().subtotal
        fee = self.resolver.fee if self.is_delivery else 0.0
        return OrderTotals(subtotal=subtotal, delivery_fee=fee, total=round(subtotal + fee, 2))

    def readiness(self) -> list[str]:
        """Ordered reasons the order cannot be submitted yet; empty when ready."""
        reasons = []
        if self.store.temporarily_closed:
            reasons.append("Store is temporarily closed")
        if self.cart.cart.is_empty:
            reasons.append("Your cart is empty")

        if not self.customer.name.strip():
            reasons.append("Please enter your name")
        phone = self.customer.phone_number
        if not self.customer.phone.strip():
            reasons.append("Please enter your phone number")
        elif phone is None:
            reasons.append("Please enter a valid phone number")
        elif not phone.is_complete:
            reasons.append("Please enter a complete phone number")

        if self.is_delivery:
            reasons.extend(self._delivery_reasons())

        if self.scheduling == SchedulingMode.IMMEDIATE:
            if not self.store.business_hours.is_open_at(self.local_now()):
                reasons.append("The store is closed right now. Please schedule your order")
        elif self.slot is None:
            reasons.append("Please select a time")
        elif not self._slot_still_offered(self.slot):
            reasons.append("The selected time is no longer available")
        return reasons

    def _delivery_reasons(self) -> list[str]:
        reasons = []
        if self.uses_postal_pricing:
            if not (self.customer.country and self.customer.city):
                reasons.append("Please select your country and city")
            elif not self.resolver.has_postal_selection:
                reasons.append("Please select a delivery option")
        elif not self.customer.address.strip():
            reasons.append("Please enter a delivery address")

        quote = self.resolver.quote
        if quote is not None and quote.is_error:
            if quote.status == QuoteStatus.OUTSIDE_AREA or get_settings().strict_delivery_quotes:
                reasons.append(quote.message)
            return reasons

        subtotal = self.cart.totals().subtotal
        if subtotal < self.store.minimum_order:
            reasons.append(f"Minimum order for delivery is {self.store.minimum_order:.2f} {self.store.currency}")
        return reasons

    def can_submit(self) -> bool:
        return not self.readiness()

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def build_payload(self) -> OrderPayload:
        totals = self.totals()
        phone = self.customer.phone_number
        delivery_time = None
        if self.scheduling != SchedulingMode.IMMEDIATE and self.slot is not None:
            delivery_time = self.slot.starts_at.isoformat(timespec="minutes")

        postal = self.resolver.postal_selection if self.uses_postal_pricing else None
        return OrderPayload(
            customer_name=self.customer.name.strip(),
            customer_phone=phone.number if phone else self.customer.phone.strip(),
            customer_email=self.customer.email,
            delivery_type=self.fulfillment.value,
            delivery_address=self.customer.address if self.is_delivery else None,
            latitude=self.customer.latitude if self.is_delivery else None,
            longitude=self.customer.longitude if self.is_delivery else None,
            postal_pricing_id=postal.id if postal else None,
            delivery_time=delivery_time,
            payment_method=self.customer.payment_method,
            special_instructions=self.customer.notes,
            items=[
                OrderLinePayload(
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    name=line.name,
                    quantity=line.quantity,
                    price=line.unit_price,
                    modifiers=[m.model_dump() for m in line.modifiers],
                    total=line.total_price,
                )
                for line in self.cart.items
            ],
            subtotal=totals.subtotal,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
        )

    async def submit(self) -> SubmissionResult:
        reasons = self.readiness()
        if reasons:
            return SubmissionResult.failed(reasons[0])

        payload = self.build_payload()
        submitted = {line.id: line.quantity for line in self.cart.items}
        try:
            result = await asyncio.wait_for(
                self.gateway.submit(self.store.business_id, payload.to_wire()),
                timeout=get_settings().external_timeout_seconds,
            )
        except TimeoutError:
            logger.warning("order_submission_timeout", business_id=self.store.business_id)
            return SubmissionResult.failed("The store did not respond. Please try again.")

        if not result.success:
            logger.warning("order_submission_failed", business_id=self.store.business_id, error=result.error)
            return result

        self.cart.discard(submitted)
        self.scheduling = SchedulingMode.IMMEDIATE
        self.slot = None
        self.resolver.reset()
        self.customer = self.customer.model_copy(update={"notes": None})
        logger.info(
            "order_submitted",
            business_id=self.store.business_id,
            order_number=result.order_number,
            total=payload.total,
        )
        return result
