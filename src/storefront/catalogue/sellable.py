"""Sellable units and modifiers as exposed by a tenant's catalog."""

from pydantic import BaseModel, ConfigDict, Field


class Modifier(BaseModel):
    """An add-on chosen with a product (extra cheese, gift wrap, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    price: float = Field(default=0.0, ge=0.0)


class SellableUnit(BaseModel):
    """A purchasable product, optionally qualified by a variant.

    When ``track_inventory`` is false the unit is always purchasable and
    ``stock`` is informational only.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    variant_id: str | None = None
    name: str = ""
    price: float = Field(ge=0.0)
    original_price: float | None = Field(default=None, ge=0.0)
    stock: int = Field(default=0, ge=0)
    track_inventory: bool = False

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.product_id, self.variant_id)

    @property
    def is_available(self) -> bool:
        return not self.track_inventory or self.stock > 0
