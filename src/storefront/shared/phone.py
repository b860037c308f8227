"""PhoneNumber value object and per-country completeness rules."""

import re

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Calling code -> (country, minimum national significant digits)
CALLING_CODES: dict[str, tuple[str, int]] = {
    "355": ("AL", 9),
    "30": ("GR", 10),
    "39": ("IT", 9),
    "1": ("US", 10),
}

GENERIC_MIN_DIGITS = 10


def _digits(number: str) -> str:
    return re.sub(r"\D", "", number)


def detect_calling_code(number: str) -> str | None:
    """Return the known calling code an international number starts with, if any.

    Only numbers written in international form (``+`` or ``00`` prefix) are
    matched; bare local numbers fall back to the generic rule.
    """
    stripped = number.strip()
    if stripped.startswith("+"):
        digits = _digits(stripped)
    elif stripped.startswith("00"):
        digits = _digits(stripped)[2:]
    else:
        return None

    for code in sorted(CALLING_CODES, key=len, reverse=True):
        if digits.startswith(code):
            return code
    return None


def phone_is_complete(number: str | None) -> bool:
    """True when the number carries enough digits for its detected country."""
    if not number or not number.strip():
        return False

    code = detect_calling_code(number)
    digits = _digits(number)
    if code is None:
        return len(digits) >= GENERIC_MIN_DIGITS

    if number.strip().startswith("00"):
        digits = digits[2:]
    national = digits[len(code) :]
    _, min_digits = CALLING_CODES[code]
    return len(national) >= min_digits


_TYPED_NUMBER = re.compile(r"^(\+|00)?[\d\s\-()]+$")


class PhoneNumber(BaseModel):
    """A customer phone number as typed at checkout.

    Spacing, hyphens and parentheses are kept as entered; only the digits
    count towards completeness.
    """

    model_config = ConfigDict(frozen=True)

    number: str = Field(min_length=1, max_length=20)

    @field_validator("number", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("number")
    @classmethod
    def only_dialable_characters(cls, value: str) -> str:
        if not _TYPED_NUMBER.match(value) or not _digits(value):
            raise ValueError(f"Invalid phone number: {value!r}")
        return value

    @classmethod
    def parse(cls, raw: str | None) -> "PhoneNumber | None":
        """Build from form input; ``None`` when the input is blank or malformed."""
        if not raw or not raw.strip():
            return None
        try:
            return cls(number=raw)
        except pydantic.ValidationError:
            return None

    @property
    def calling_code(self) -> str | None:
        return detect_calling_code(self.number)

    @property
    def country(self) -> str | None:
        code = self.calling_code
        return CALLING_CODES[code][0] if code else None

    @property
    def is_complete(self) -> bool:
        return phone_is_complete(self.number)
