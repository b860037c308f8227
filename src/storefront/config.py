"""Engine configuration.

Values are read from ``STOREFRONT_*`` environment variables (or a ``.env``
file) and fall back to the defaults below.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREFRONT_", env_file=".env", extra="ignore")

    env: str = "development"

    # Scheduling
    slot_granularity_minutes: int = Field(default=30, ge=5)
    delivery_buffer_minutes: int = Field(default=45, ge=0)
    pickup_buffer_minutes: int = Field(default=20, ge=0)
    dine_in_buffer_minutes: int = Field(default=20, ge=0)
    appointment_buffer_minutes: int = Field(default=20, ge=0)
    booking_horizon_days: int = Field(default=30, ge=1)

    # External collaborators
    external_timeout_seconds: float = Field(default=8.0, gt=0)
    pricing_service_url: str = "http://localhost:3000/api"
    orders_service_url: str = "http://localhost:3000/api"
    catalog_service_url: str = "http://localhost:3000/api"

    # Checkout
    strict_delivery_quotes: bool = False

    # Persistence
    cart_storage_path: str = "data/carts.json"
    stores_path: str | None = None


_settings: EngineSettings | None = None


def get_settings() -> EngineSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = EngineSettings()
    return _settings


def set_settings(settings: EngineSettings) -> None:
    """Override the active settings (useful for tests)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    global _settings
    _settings = None
