"""Pydantic request/response schemas for the Storefront API.

These are external contracts, kept separate from the engine's own models.
"""

from datetime import date

from pydantic import BaseModel, Field

from storefront.shared.fulfillment import FulfillmentMode


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ModifierSchema(BaseModel):
    id: str
    name: str = ""
    price: float = Field(default=0.0, ge=0)


class LineItemSchema(BaseModel):
    id: str
    product_id: str
    variant_id: str | None = None
    name: str
    quantity: int
    unit_price: float
    modifiers: list[ModifierSchema] = Field(default_factory=list)
    total_price: float


class QuoteSchema(BaseModel):
    status: str
    fee: float
    zone: str | None = None
    distance: float | None = None
    max_distance: float | None = None
    message: str | None = None


class PostalOptionSchema(BaseModel):
    id: str
    carrier_name: str
    price: float
    estimated_time: str | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddItemRequest(BaseModel):
    product_id: str
    variant_id: str | None = None
    quantity: int = Field(default=1, gt=0)
    modifiers: list[ModifierSchema] = Field(default_factory=list)
    clamp: bool = False

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "variant_id": "var-large",
                    "quantity": 2,
                    "modifiers": [{"id": "mod-cheese", "name": "Extra cheese", "price": 1.5}],
                }
            ]
        }
    }


class UpdateQuantityRequest(BaseModel):
    quantity: int


class CartResponse(BaseModel):
    business_id: str
    items: list[LineItemSchema]
    subtotal: float
    item_count: int
    savings: float


class CartOutcomeResponse(BaseModel):
    status: str
    line_id: str | None = None
    quantity: int
    message: str | None = None
    cart: CartResponse


class AvailabilitySchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    available: bool


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------
class SlotSchema(BaseModel):
    value: str
    label: str


class SlotsResponse(BaseModel):
    day: date
    context: str
    slots: list[SlotSchema]
    next_available_day: date | None = None


class ScheduleRequest(BaseModel):
    mode: str = Field(pattern="^(immediate|scheduled)$")
    day: date | None = None
    time: str | None = None


class ScheduleResponse(BaseModel):
    mode: str
    slot: str | None = None


# ---------------------------------------------------------------------------
# Delivery & customer
# ---------------------------------------------------------------------------
class FulfillmentRequest(BaseModel):
    mode: FulfillmentMode


class AddressRequest(BaseModel):
    address: str
    latitude: float | None = None
    longitude: float | None = None


class CustomerRequest(BaseModel):
    name: str = ""
    phone: str = ""
    email: str | None = None
    notes: str | None = None
    payment_method: str = "cash"


class DeliveryStateResponse(BaseModel):
    fulfillment: str
    quote: QuoteSchema | None = None
    fee: float


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutStatusResponse(BaseModel):
    can_submit: bool
    reasons: list[str]
    fulfillment: str
    scheduling: str
    subtotal: float
    delivery_fee: float
    total: float


class SubmissionResponse(BaseModel):
    order_id: str | None = None
    order_number: str | None = None
    whatsapp_url: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Failed to create order"


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
