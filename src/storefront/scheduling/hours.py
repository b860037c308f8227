"""Weekly business hours.

Hours are same-day intervals: a business open past midnight is not
supported, so ``close`` must be strictly after ``open`` on open days.
"""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class DayHours(BaseModel):
    model_config = ConfigDict(frozen=True)

    open: time = time(9, 0)
    close: time = time(17, 0)
    closed: bool = False

    @model_validator(mode="after")
    def close_must_follow_open(self):
        if not self.closed and self.close <= self.open:
            raise ValueError("Closing time must be after opening time")
        return self

    def contains(self, moment: time) -> bool:
        return not self.closed and self.open <= moment < self.close


class BusinessHours(BaseModel):
    """Mapping of lowercase weekday name to that day's hours.

    Days missing from the mapping are treated as closed. A business with no
    hours configured at all is always open for immediate orders; it offers
    no bookable slots.
    """

    model_config = ConfigDict(frozen=True)

    days: dict[str, DayHours] = Field(default_factory=dict)

    @field_validator("days", mode="before")
    @classmethod
    def normalise_weekdays(cls, value):
        if not isinstance(value, dict):
            return value
        normalised = {}
        for name, hours in value.items():
            key = str(name).strip().lower()
            if key not in WEEKDAYS:
                raise ValueError(f"Unknown weekday: {name!r}")
            normalised[key] = hours
        return normalised

    @classmethod
    def from_mapping(cls, mapping: dict) -> "BusinessHours":
        """Build from the storefront settings shape ``{"monday": {"open": "09:00", ...}}``."""
        return cls(days=mapping or {})

    def for_date(self, day: date) -> DayHours | None:
        return self.days.get(WEEKDAYS[day.weekday()])

    def is_open_at(self, moment: datetime) -> bool:
        """Whether ``moment`` (in the business's local time) falls in opening hours."""
        if not self.days:
            return True
        hours = self.for_date(moment.date())
        return hours is not None and hours.contains(moment.time())
