from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from storefront.config import EngineSettings
from storefront.scheduling.hours import BusinessHours
from storefront.scheduling.slots import SlotPolicy, TimeSlot, TimeSlotGenerator, format_slot_label, generate_time_slots
from storefront.shared.fulfillment import APPOINTMENT, FulfillmentMode

MONDAY = date(2026, 10, 19)


def _at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def _values(slots: list[TimeSlot]) -> list[str]:
    return [s.value for s in slots]


class TestGenerateTimeSlots:
    def test_future_day_covers_opening_hours(self, business_hours):
        slots = generate_time_slots(business_hours, date(2026, 10, 20), _at(12))

        assert slots[0].value == "09:00"
        assert slots[-1].value == "16:30"
        assert len(slots) == 16

    def test_close_time_is_exclusive(self, business_hours):
        slots = generate_time_slots(business_hours, date(2026, 10, 20), _at(12))
        assert "17:00" not in _values(slots)

    def test_today_rounds_up_to_next_step(self, business_hours):
        slots = generate_time_slots(business_hours, MONDAY, _at(10, 7), buffer_minutes=20)
        assert slots[0].value == "10:30"

    def test_exact_step_is_kept(self, business_hours):
        slots = generate_time_slots(business_hours, MONDAY, _at(10, 30))
        assert slots[0].value == "10:30"

    def test_before_opening_starts_at_opening(self, business_hours):
        slots = generate_time_slots(business_hours, MONDAY, _at(8), buffer_minutes=20)
        assert slots[0].value == "09:00"

    def test_buffer_is_added_before_rounding(self, business_hours):
        slots = generate_time_slots(business_hours, MONDAY, _at(12), buffer_minutes=45)
        assert slots[0].value == "13:00"

    def test_grid_is_anchored_at_opening_time(self):
        hours = BusinessHours.from_mapping({"monday": {"open": "09:15", "close": "12:00"}})
        slots = generate_time_slots(hours, MONDAY, _at(10))
        assert _values(slots) == ["10:15", "10:45", "11:15", "11:45"]

    def test_buffer_past_close_yields_nothing(self, business_hours):
        assert generate_time_slots(business_hours, MONDAY, _at(16, 50), buffer_minutes=20) == []

    def test_closed_day_yields_nothing(self):
        hours = BusinessHours.from_mapping({"monday": {"closed": True}})
        assert generate_time_slots(hours, MONDAY, _at(6)) == []

    def test_missing_day_yields_nothing(self):
        hours = BusinessHours.from_mapping({"tuesday": {"open": "09:00", "close": "17:00"}})
        assert generate_time_slots(hours, MONDAY, _at(6)) == []

    def test_past_day_yields_nothing(self, business_hours):
        assert generate_time_slots(business_hours, date(2026, 10, 18), _at(6)) == []

    def test_custom_granularity(self, business_hours):
        slots = generate_time_slots(business_hours, MONDAY, _at(16, 1), granularity_minutes=15)
        assert _values(slots) == ["16:15", "16:30", "16:45"]

    def test_invalid_granularity(self, business_hours):
        with pytest.raises(ValueError):
            generate_time_slots(business_hours, MONDAY, _at(12), granularity_minutes=0)

    def test_idempotent(self, business_hours):
        first = generate_time_slots(business_hours, MONDAY, _at(10, 7), buffer_minutes=20)
        second = generate_time_slots(business_hours, MONDAY, _at(10, 7), buffer_minutes=20)
        assert first == second

    def test_now_is_read_in_business_time_zone(self, business_hours):
        # 12:00 UTC is 14:00 in Tirana (summer time)
        slots = generate_time_slots(business_hours, MONDAY, _at(12), tz=ZoneInfo("Europe/Tirane"))
        assert slots[0].value == "14:00"

    def test_late_utc_evening_is_already_tomorrow_locally(self, business_hours):
        # 23:30 UTC Monday is Tuesday 01:30 in Tirana, so Monday is in the past
        late = _at(23, 30)
        assert generate_time_slots(business_hours, MONDAY, late, tz=ZoneInfo("Europe/Tirane")) == []


class TestSlotLabels:
    @pytest.mark.parametrize(
        "moment, expected",
        [(time(9, 0), "9:00 AM"), (time(12, 0), "12:00 PM"), (time(14, 30), "2:30 PM"), (time(0, 30), "12:30 AM")],
    )
    def test_twelve_hour_labels(self, moment, expected):
        slot = TimeSlot(datetime.combine(MONDAY, moment))
        assert format_slot_label(slot, "12") == expected

    def test_twenty_four_hour_label_is_the_value(self):
        slot = TimeSlot(datetime.combine(MONDAY, time(14, 30)))
        assert slot.label("24") == "14:30"


class TestSlotPolicy:
    def test_default_buffers(self):
        policy = SlotPolicy()
        assert policy.buffer_for(FulfillmentMode.DELIVERY) == 45
        assert policy.buffer_for(FulfillmentMode.PICKUP) == 20
        assert policy.buffer_for(FulfillmentMode.DINE_IN) == 20
        assert policy.buffer_for(APPOINTMENT) == 20

    def test_from_settings(self):
        policy = SlotPolicy.from_settings(
            EngineSettings(_env_file=None, slot_granularity_minutes=15, delivery_buffer_minutes=60)
        )
        assert policy.granularity_minutes == 15
        assert policy.buffer_for("delivery") == 60

    def test_unknown_context(self):
        with pytest.raises(ValueError):
            SlotPolicy().buffer_for("takeaway")


class TestTimeSlotGenerator:
    def test_delivery_uses_longer_buffer_than_pickup(self, business_hours):
        generator = TimeSlotGenerator(SlotPolicy())
        delivery = generator.generate(business_hours, MONDAY, _at(12), FulfillmentMode.DELIVERY)
        pickup = generator.generate(business_hours, MONDAY, _at(12), FulfillmentMode.PICKUP)

        assert delivery[0].value == "13:00"
        assert pickup[0].value == "12:30"

    def test_next_available_day_skips_closed_days(self):
        hours = BusinessHours.from_mapping({"wednesday": {"open": "10:00", "close": "14:00"}})
        generator = TimeSlotGenerator(SlotPolicy())

        assert generator.next_available_day(hours, _at(12), APPOINTMENT) == date(2026, 10, 21)

    def test_next_available_day_moves_on_after_closing(self, business_hours):
        generator = TimeSlotGenerator(SlotPolicy())
        assert generator.next_available_day(business_hours, _at(18), "pickup") == date(2026, 10, 20)

    def test_next_available_day_within_horizon_only(self):
        hours = BusinessHours.from_mapping({"sunday": {"closed": True}})
        generator = TimeSlotGenerator(SlotPolicy())
        assert generator.next_available_day(hours, _at(12), "pickup", horizon_days=7) is None

    def test_slot_validity_expires(self, business_hours):
        generator = TimeSlotGenerator(SlotPolicy())
        slot = TimeSlot(datetime(2026, 10, 19, 12, 30))

        assert generator.is_slot_valid(business_hours, slot, _at(12), "pickup") is True
        assert generator.is_slot_valid(business_hours, slot, _at(12, 20), "pickup") is False
