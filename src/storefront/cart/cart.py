"""Cart aggregate — the line items one tenant's customer is about to order.

Line items are keyed by a deterministic identity derived from the product,
the variant and the sorted modifier ids, so the same selection always lands
on the same line. Each line keeps a snapshot of its unit's price and stock;
every add or increase is adjudicated by the StockLedger against that line's
own quantity.

Stock violations never raise: they come back as a warning ``CartOutcome`` and
leave the cart untouched (or clamped, for stepper-style increments).
"""

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict, Field

from storefront.catalogue.sellable import Modifier, SellableUnit
from storefront.catalogue.stock import StockLedger


class OutcomeStatus(Enum):
    OK = "Ok"
    WARNING = "Warning"


@dataclass(frozen=True)
class CartOutcome:
    """What a cart mutation did, and what to tell the customer about it."""

    status: OutcomeStatus
    line_id: str | None = None
    quantity: int = 0
    changed: bool = False
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.OK


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    item_count: int
    original_subtotal: float

    @property
    def savings(self) -> float:
        return round(max(0.0, self.original_subtotal - self.subtotal), 2)


def line_item_id(product_id: str, variant_id: str | None, modifier_ids: Iterable[str] = ()) -> str:
    """Deterministic line identity for a product/variant/modifier selection."""
    raw = "|".join([product_id, variant_id or "", ",".join(sorted(modifier_ids))])
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


class LineItem(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str
    business_id: str
    product_id: str
    variant_id: str | None = None
    name: str = ""
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0.0)
    unit_original_price: float | None = None
    modifiers: list[Modifier] = Field(default_factory=list)
    stock: int = Field(default=0, ge=0)
    track_inventory: bool = False

    @classmethod
    def for_unit(cls, business_id: str, unit: SellableUnit, quantity: int, modifiers: Iterable[Modifier] = ()):
        modifiers = sorted(modifiers, key=lambda m: m.id)
        return cls(
            id=line_item_id(unit.product_id, unit.variant_id, [m.id for m in modifiers]),
            business_id=business_id,
            product_id=unit.product_id,
            variant_id=unit.variant_id,
            name=unit.name,
            quantity=quantity,
            unit_price=unit.price,
            unit_original_price=unit.original_price,
            modifiers=modifiers,
            stock=unit.stock,
            track_inventory=unit.track_inventory,
        )

    @property
    def unit(self) -> SellableUnit:
        """The sellable unit as last seen by this line."""
        return SellableUnit(
            product_id=self.product_id,
            variant_id=self.variant_id,
            name=self.name,
            price=self.unit_price,
            original_price=self.unit_original_price,
            stock=self.stock,
            track_inventory=self.track_inventory,
        )

    @property
    def modifiers_total(self) -> float:
        return sum(m.price for m in self.modifiers)

    @property
    def total_price(self) -> float:
        return round((self.unit_price + self.modifiers_total) * self.quantity, 2)

    @property
    def original_total_price(self) -> float:
        base = self.unit_original_price if self.unit_original_price is not None else self.unit_price
        return round((max(base, self.unit_price) + self.modifiers_total) * self.quantity, 2)


class Cart(BaseModel):
    """The cart of one tenant (``business_id``)."""

    business_id: str
    items: list[LineItem] = Field(default_factory=list)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get(self, line_id: str) -> LineItem | None:
        return next((i for i in self.items if i.id == line_id), None)

    def quantity_of(self, line_id: str) -> int:
        line = self.get(line_id)
        return line.quantity if line else 0

    def quantity_for(self, unit: SellableUnit, modifiers: Iterable[Modifier] = ()) -> int:
        """Quantity already committed for a unit + modifier selection."""
        return self.quantity_of(line_item_id(unit.product_id, unit.variant_id, [m.id for m in modifiers]))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def totals(self) -> CartTotals:
        return CartTotals(
            subtotal=round(sum(i.total_price for i in self.items), 2),
            item_count=sum(i.quantity for i in self.items),
            original_subtotal=round(sum(i.original_total_price for i in self.items), 2),
        )

    def _require(self, line_id: str) -> LineItem:
        line = self.get(line_id)
        if line is None:
            raise ValidationError({"line_id": ["Item not found in cart"]})
        return line

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add(
        self,
        unit: SellableUnit,
        quantity: int = 1,
        modifiers: Iterable[Modifier] = (),
        clamp: bool = False,
        ledger: StockLedger | None = None,
    ) -> CartOutcome:
        """Add ``quantity`` of a unit (or increase the matching line).

        With ``clamp`` the request is cut down to what stock still allows
        instead of being rejected.
        """
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        ledger = ledger or StockLedger()
        modifiers = list(modifiers)
        line_id = line_item_id(unit.product_id, unit.variant_id, [m.id for m in modifiers])
        existing = self.get(line_id)
        in_cart = existing.quantity if existing else 0

        check = ledger.can_add(unit, quantity, in_cart)
        to_add = quantity
        message = None
        if not check.allowed:
            if not clamp or check.max_addable == 0:
                return CartOutcome(OutcomeStatus.WARNING, line_id, in_cart, False, check.message)
            to_add = check.max_addable
            message = check.message

        if existing:
            # Refresh the snapshot with what the caller just saw in the catalog
            existing.stock = unit.stock
            existing.track_inventory = unit.track_inventory
            existing.quantity += to_add
        else:
            self.items.append(LineItem.for_unit(self.business_id, unit, to_add, modifiers))

        status = OutcomeStatus.WARNING if message else OutcomeStatus.OK
        return CartOutcome(status, line_id, in_cart + to_add, True, message)

    def increment(self, line_id: str, ledger: StockLedger | None = None) -> CartOutcome:
        """Increment-by-one control; clamps instead of rejecting."""
        line = self._require(line_id)
        return self.add(line.unit, 1, line.modifiers, clamp=True, ledger=ledger)

    def set_quantity(self, line_id: str, quantity: int, ledger: StockLedger | None = None) -> CartOutcome:
        """Set an absolute quantity; zero or less removes the line.

        The line's current quantity is the baseline: only the increase has to
        fit the stock that is still free.
        """
        line = self._require(line_id)
        if quantity <= 0:
            return self.remove(line_id)

        current = line.quantity
        delta = quantity - current
        if delta > 0:
            check = (ledger or StockLedger()).can_add(line.unit, delta, current)
            if not check.allowed:
                return CartOutcome(OutcomeStatus.WARNING, line_id, current, False, check.message)

        line.quantity = quantity
        return CartOutcome(OutcomeStatus.OK, line_id, quantity, delta != 0)

    def remove(self, line_id: str) -> CartOutcome:
        line = self._require(line_id)
        self.items.remove(line)
        return CartOutcome(OutcomeStatus.OK, line_id, 0, True)

    def clear(self) -> None:
        self.items.clear()

    def discard(self, quantities: dict[str, int]) -> None:
        """Take ordered quantities (keyed by line id) out of the cart.

        A line that grew after the quantities were taken keeps the surplus;
        lines that are not listed stay as they are.
        """
        for line_id, quantity in quantities.items():
            line = self.get(line_id)
            if line is None:
                continue
            if line.quantity > quantity:
                line.quantity -= quantity
            else:
                self.items.remove(line)

    # -------------------------------------------------------------------
    # Catalog refresh
    # -------------------------------------------------------------------
    def refresh_stock(self, units: Iterable[SellableUnit]) -> list[CartOutcome]:
        """Apply fresh catalog data to the line snapshots.

        Lines whose quantity no longer fits are clamped to the new stock, or
        removed when the unit sold out. Units missing from ``units`` are left
        as they are.
        """
        by_key = {u.key: u for u in units}
        outcomes = []
        for line in list(self.items):
            unit = by_key.get((line.product_id, line.variant_id))
            if unit is None:
                continue

            line.unit_price = unit.price
            line.unit_original_price = unit.original_price
            line.stock = unit.stock
            line.track_inventory = unit.track_inventory

            if not unit.track_inventory or line.quantity <= unit.stock:
                continue

            if unit.stock == 0:
                self.items.remove(line)
                outcomes.append(
                    CartOutcome(OutcomeStatus.WARNING, line.id, 0, True, f"{line.name or 'Item'} is out of stock")
                )
            else:
                line.quantity = unit.stock
                outcomes.append(
                    CartOutcome(
                        OutcomeStatus.WARNING,
                        line.id,
                        unit.stock,
                        True,
                        f"Only {unit.stock} of {line.name or 'this item'} available",
                    )
                )
        return outcomes
