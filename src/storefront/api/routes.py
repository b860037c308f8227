"""FastAPI routes for the storefront engine — cart, scheduling, delivery and checkout.

Every tenant route works on the calling shopper's session (see
``storefront.api.session``).
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.api.schemas import (
    AddItemRequest,
    AddressRequest,
    AvailabilitySchema,
    CartOutcomeResponse,
    CartResponse,
    CheckoutStatusResponse,
    ConfigureGatewayRequest,
    CustomerRequest,
    DeliveryStateResponse,
    FulfillmentRequest,
    GatewayConfigResponse,
    LineItemSchema,
    ModifierSchema,
    PostalOptionSchema,
    QuoteSchema,
    ScheduleRequest,
    ScheduleResponse,
    SlotSchema,
    SlotsResponse,
    SubmissionResponse,
    UpdateQuantityRequest,
)
from storefront.api.session import current_shopper, get_session
from storefront.cart.cart import CartOutcome
from storefront.catalogue.client import fetch_units
from storefront.catalogue.client.port import CatalogUnavailableError
from storefront.catalogue.sellable import Modifier, SellableUnit
from storefront.checkout.assembler import OrderAssembler
from storefront.checkout.gateway import get_gateway
from storefront.checkout.gateway.fake_adapter import FakeOrderGateway
from storefront.config import get_settings
from storefront.delivery.quote import DeliveryQuote

router = APIRouter(prefix="/storefront", tags=["storefront"])

Shopper = Annotated[str, Depends(current_shopper)]


@contextmanager
def _domain_errors() -> Iterator[None]:
    try:
        yield
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=exc.messages) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.messages) from exc
    except CatalogUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Catalog is temporarily unavailable") from exc


def _session(business_id: str, shopper_id: str) -> OrderAssembler:
    with _domain_errors():
        return get_session(business_id, shopper_id)


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------
def _cart_response(session: OrderAssembler) -> CartResponse:
    totals = session.cart.totals()
    return CartResponse(
        business_id=session.store.business_id,
        items=[
            LineItemSchema(
                id=line.id,
                product_id=line.product_id,
                variant_id=line.variant_id,
                name=line.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                modifiers=[ModifierSchema(**m.model_dump()) for m in line.modifiers],
                total_price=line.total_price,
            )
            for line in session.cart.items
        ],
        subtotal=totals.subtotal,
        item_count=totals.item_count,
        savings=totals.savings,
    )


def _outcome_response(session: OrderAssembler, outcome: CartOutcome) -> CartOutcomeResponse:
    return CartOutcomeResponse(
        status=outcome.status.value,
        line_id=outcome.line_id,
        quantity=outcome.quantity,
        message=outcome.message,
        cart=_cart_response(session),
    )


def _quote_schema(quote: DeliveryQuote | None) -> QuoteSchema | None:
    if quote is None:
        return None
    return QuoteSchema(
        status=quote.status.value,
        fee=quote.amount,
        zone=quote.zone,
        distance=quote.distance,
        max_distance=quote.max_distance,
        message=quote.message,
    )


def _delivery_state(session: OrderAssembler) -> DeliveryStateResponse:
    return DeliveryStateResponse(
        fulfillment=session.fulfillment.value,
        quote=_quote_schema(session.resolver.quote),
        fee=session.totals().delivery_fee,
    )


async def _catalog_units(business_id: str) -> list[SellableUnit]:
    with _domain_errors():
        return await fetch_units(business_id)


async def _find_unit(business_id: str, product_id: str, variant_id: str | None) -> SellableUnit:
    units = await _catalog_units(business_id)
    unit = next((u for u in units if u.key == (product_id, variant_id)), None)
    if unit is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return unit


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
@router.get("/{business_id}/cart", response_model=CartResponse)
async def get_cart(business_id: str, shopper_id: Shopper) -> CartResponse:
    """Cart contents and totals for the calling shopper."""
    return _cart_response(_session(business_id, shopper_id))


@router.post("/{business_id}/cart/items", response_model=CartOutcomeResponse)
async def add_item(business_id: str, body: AddItemRequest, shopper_id: Shopper) -> CartOutcomeResponse:
    """Add a unit (with modifiers) to the cart, subject to stock."""
    session = _session(business_id, shopper_id)
    unit = await _find_unit(business_id, body.product_id, body.variant_id)
    modifiers = [Modifier(**m.model_dump()) for m in body.modifiers]
    with _domain_errors():
        outcome = session.cart.add(unit, body.quantity, modifiers, clamp=body.clamp)
    return _outcome_response(session, outcome)


@router.post("/{business_id}/cart/items/{line_id}/increment", response_model=CartOutcomeResponse)
async def increment_item(business_id: str, line_id: str, shopper_id: Shopper) -> CartOutcomeResponse:
    session = _session(business_id, shopper_id)
    with _domain_errors():
        outcome = session.cart.increment(line_id)
    return _outcome_response(session, outcome)


@router.put("/{business_id}/cart/items/{line_id}", response_model=CartOutcomeResponse)
async def update_item(
    business_id: str, line_id: str, body: UpdateQuantityRequest, shopper_id: Shopper
) -> CartOutcomeResponse:
    """Set a line's quantity; zero or less removes it."""
    session = _session(business_id, shopper_id)
    with _domain_errors():
        outcome = session.cart.set_quantity(line_id, body.quantity)
    return _outcome_response(session, outcome)


@router.delete("/{business_id}/cart/items/{line_id}", response_model=CartOutcomeResponse)
async def remove_item(business_id: str, line_id: str, shopper_id: Shopper) -> CartOutcomeResponse:
    session = _session(business_id, shopper_id)
    with _domain_errors():
        outcome = session.cart.remove(line_id)
    return _outcome_response(session, outcome)


@router.post("/{business_id}/cart/sync", response_model=list[CartOutcomeResponse])
async def sync_cart_stock(business_id: str, shopper_id: Shopper) -> list[CartOutcomeResponse]:
    """Refresh line stock from the catalog; returns the lines that had to change."""
    session = _session(business_id, shopper_id)
    with _domain_errors():
        outcomes = await session.cart.sync_stock()
    return [_outcome_response(session, outcome) for outcome in outcomes]


@router.get("/{business_id}/availability", response_model=list[AvailabilitySchema])
async def get_availability(business_id: str, shopper_id: Shopper) -> list[AvailabilitySchema]:
    """Whether one more of each catalog unit can still be added."""
    session = _session(business_id, shopper_id)
    units = await _catalog_units(business_id)
    flags = session.cart.availability(units)
    return [
        AvailabilitySchema(product_id=product_id, variant_id=variant_id, available=available)
        for (product_id, variant_id), available in flags.items()
    ]


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------
@router.get("/{business_id}/slots", response_model=SlotsResponse)
async def get_slots(
    business_id: str,
    shopper_id: Shopper,
    day: date = Query(),
    context: str | None = Query(default=None),
) -> SlotsResponse:
    """Bookable slots for a day; ``context`` defaults to the current fulfillment mode."""
    session = _session(business_id, shopper_id)
    context = context or session.fulfillment.value
    hours = session.store.business_hours
    now = session.clock()
    try:
        slots = session.slots.generate(hours, day, now, context)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    next_day = day if slots else session.slots.next_available_day(
        hours, now, context, horizon_days=get_settings().booking_horizon_days
    )
    return SlotsResponse(
        day=day,
        context=context,
        slots=[SlotSchema(value=s.value, label=s.label(session.store.time_format)) for s in slots],
        next_available_day=next_day,
    )


@router.put("/{business_id}/schedule", response_model=ScheduleResponse)
async def set_schedule(business_id: str, body: ScheduleRequest, shopper_id: Shopper) -> ScheduleResponse:
    """Order now or pick a slot; ordering now while closed falls back to scheduling."""
    session = _session(business_id, shopper_id)
    with _domain_errors():
        if body.mode == "immediate":
            session.request_immediate()
        else:
            session.request_scheduled()
            if body.day is not None and body.time is not None:
                session.select_slot(body.day, body.time)
    slot = session.slot.starts_at.isoformat(timespec="minutes") if session.slot else None
    return ScheduleResponse(mode=session.scheduling.value, slot=slot)


# ---------------------------------------------------------------------------
# Fulfillment, customer & delivery
# ---------------------------------------------------------------------------
@router.put("/{business_id}/fulfillment", response_model=DeliveryStateResponse)
async def set_fulfillment(business_id: str, body: FulfillmentRequest, shopper_id: Shopper) -> DeliveryStateResponse:
    session = _session(business_id, shopper_id)
    with _domain_errors():
        session.set_fulfillment(body.mode)
    return _delivery_state(session)


@router.put("/{business_id}/customer", response_model=CheckoutStatusResponse)
async def set_customer(business_id: str, body: CustomerRequest, shopper_id: Shopper) -> CheckoutStatusResponse:
    session = _session(business_id, shopper_id)
    session.update_customer(**body.model_dump())
    return _checkout_status(session)


@router.post("/{business_id}/delivery/quote", response_model=DeliveryStateResponse)
async def quote_delivery(business_id: str, body: AddressRequest, shopper_id: Shopper) -> DeliveryStateResponse:
    """Record the delivery address and price delivery to its coordinates."""
    session = _session(business_id, shopper_id)
    with _domain_errors():
        await session.update_address(body.address, body.latitude, body.longitude)
    return _delivery_state(session)


@router.get("/{business_id}/delivery/postal-options", response_model=list[PostalOptionSchema])
async def list_postal_options(
    business_id: str,
    shopper_id: Shopper,
    country: str = Query(min_length=2),
    city: str = Query(min_length=1),
) -> list[PostalOptionSchema]:
    session = _session(business_id, shopper_id)
    options = await session.update_postal_zone(country, city)
    return [PostalOptionSchema(**o.model_dump()) for o in options]


@router.post("/{business_id}/delivery/postal-options/{option_id}/select", response_model=DeliveryStateResponse)
async def select_postal_option(business_id: str, option_id: str, shopper_id: Shopper) -> DeliveryStateResponse:
    session = _session(business_id, shopper_id)
    with _domain_errors():
        session.resolver.select_postal(option_id)
    return _delivery_state(session)


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
def _checkout_status(session: OrderAssembler) -> CheckoutStatusResponse:
    reasons = session.readiness()
    totals = session.totals()
    return CheckoutStatusResponse(
        can_submit=not reasons,
        reasons=reasons,
        fulfillment=session.fulfillment.value,
        scheduling=session.scheduling.value,
        subtotal=totals.subtotal,
        delivery_fee=totals.delivery_fee,
        total=totals.total,
    )


@router.get("/{business_id}/checkout", response_model=CheckoutStatusResponse)
async def get_checkout_status(business_id: str, shopper_id: Shopper) -> CheckoutStatusResponse:
    """Readiness reasons and totals."""
    return _checkout_status(_session(business_id, shopper_id))


@router.post("/{business_id}/checkout", status_code=201, response_model=SubmissionResponse)
async def submit_order(business_id: str, shopper_id: Shopper) -> SubmissionResponse:
    """Submit the assembled order; the ordered lines leave the cart only on success."""
    session = _session(business_id, shopper_id)
    result = await session.submit()
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return SubmissionResponse(
        order_id=result.order_id,
        order_number=result.order_number,
        whatsapp_url=result.whatsapp_url,
    )


@router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeOrderGateway behavior (non-production only)."""
    if get_settings().env == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeOrderGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeOrderGateway")

    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
    )
