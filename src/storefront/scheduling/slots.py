"""Bookable time slots derived from business hours.

Slots start at the opening time and step by a fixed granularity; the closing
time itself is never offered. For today, slots earlier than ``now + buffer``
are skipped, and the first remaining slot is rounded *up* onto the opening
time's grid so a slot in the past is never offered.

Buffers depend on the fulfillment context (deliveries need more preparation
time than pickups or appointments) and come from ``SlotPolicy``.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo

from storefront.config import EngineSettings, get_settings
from storefront.scheduling.hours import BusinessHours
from storefront.shared.fulfillment import APPOINTMENT, FulfillmentMode

DEFAULT_GRANULARITY_MINUTES = 30


@dataclass(frozen=True, order=True)
class TimeSlot:
    """A bookable point in time, in the business's local wall-clock time."""

    starts_at: datetime

    @property
    def day(self) -> date:
        return self.starts_at.date()

    @property
    def value(self) -> str:
        """Canonical ``HH:MM`` value submitted with an order."""
        return self.starts_at.strftime("%H:%M")

    def label(self, time_format: str = "24") -> str:
        return format_slot_label(self, time_format)


def format_slot_label(slot: TimeSlot, time_format: str = "24") -> str:
    """Presentation label: ``14:30`` (24h) or ``2:30 PM`` (12h)."""
    if str(time_format) == "24":
        return slot.value
    hour = slot.starts_at.hour % 12 or 12
    suffix = "AM" if slot.starts_at.hour < 12 else "PM"
    return f"{hour}:{slot.starts_at.minute:02d} {suffix}"


def _local_now(now: datetime, tz: tzinfo | None) -> datetime:
    """Naive wall-clock ``now`` in the business's time zone."""
    if tz is not None and now.tzinfo is not None:
        now = now.astimezone(tz)
    return now.replace(tzinfo=None)


def generate_time_slots(
    hours: BusinessHours,
    day: date,
    now: datetime,
    buffer_minutes: int = 0,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
    tz: tzinfo | None = None,
) -> list[TimeSlot]:
    """Ordered slots for ``day``; empty when closed, in the past, or fully buffered out."""
    if granularity_minutes <= 0:
        raise ValueError("granularity_minutes must be positive")

    day_hours = hours.for_date(day)
    if day_hours is None or day_hours.closed:
        return []

    local_now = _local_now(now, tz)
    if day < local_now.date():
        return []

    step = timedelta(minutes=granularity_minutes)
    opening = datetime.combine(day, day_hours.open)
    end = datetime.combine(day, day_hours.close)
    cursor = opening

    if day == local_now.date():
        min_start = local_now + timedelta(minutes=buffer_minutes)
        if cursor < min_start:
            steps = math.ceil((min_start - opening) / step)
            cursor = opening + steps * step

    slots = []
    while cursor < end:
        slots.append(TimeSlot(cursor))
        cursor += step
    return slots


@dataclass(frozen=True)
class SlotPolicy:
    """Granularity and per-context same-day buffers."""

    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES
    buffers: dict[str, int] = field(
        default_factory=lambda: {
            FulfillmentMode.DELIVERY.value: 45,
            FulfillmentMode.PICKUP.value: 20,
            FulfillmentMode.DINE_IN.value: 20,
            APPOINTMENT: 20,
        }
    )

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None) -> "SlotPolicy":
        settings = settings or get_settings()
        return cls(
            granularity_minutes=settings.slot_granularity_minutes,
            buffers={
                FulfillmentMode.DELIVERY.value: settings.delivery_buffer_minutes,
                FulfillmentMode.PICKUP.value: settings.pickup_buffer_minutes,
                FulfillmentMode.DINE_IN.value: settings.dine_in_buffer_minutes,
                APPOINTMENT: settings.appointment_buffer_minutes,
            },
        )

    def buffer_for(self, context: FulfillmentMode | str) -> int:
        key = context.value if isinstance(context, FulfillmentMode) else context
        if key not in self.buffers:
            raise ValueError(f"Unknown slot context: {key}")
        return self.buffers[key]


class TimeSlotGenerator:
    """Generates slots for a fulfillment context using a ``SlotPolicy``."""

    def __init__(self, policy: SlotPolicy | None = None, tz: tzinfo | None = None) -> None:
        self.policy = policy or SlotPolicy.from_settings()
        self.tz = tz

    def generate(self, hours: BusinessHours, day: date, now: datetime, context: FulfillmentMode | str) -> list[TimeSlot]:
        return generate_time_slots(
            hours,
            day,
            now,
            buffer_minutes=self.policy.buffer_for(context),
            granularity_minutes=self.policy.granularity_minutes,
            tz=self.tz,
        )

    def next_available_day(
        self,
        hours: BusinessHours,
        now: datetime,
        context: FulfillmentMode | str,
        horizon_days: int = 30,
    ) -> date | None:
        """First day, starting today, that still offers a slot."""
        today = _local_now(now, self.tz).date()
        for offset in range(horizon_days):
            day = today + timedelta(days=offset)
            if self.generate(hours, day, now, context):
                return day
        return None

    def is_slot_valid(self, hours: BusinessHours, slot: TimeSlot, now: datetime, context: FulfillmentMode | str) -> bool:
        """Whether ``slot`` is still among the slots offered for its day."""
        return slot in self.generate(hours, slot.day, now, context)
