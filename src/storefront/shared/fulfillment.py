"""Fulfillment modes shared by scheduling, delivery and checkout."""

from enum import Enum


class FulfillmentMode(Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
    DINE_IN = "dineIn"


# Slot context for salon-style bookings; not an order fulfillment mode
APPOINTMENT = "appointment"
