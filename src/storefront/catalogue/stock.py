"""Stock adjudication for add / increment requests.

The ledger is a pure query: it never touches the cart. Callers apply the
outcome, either rejecting the request or clamping it to ``max_addable``.
"""

from dataclasses import dataclass

from storefront.catalogue.sellable import SellableUnit


@dataclass(frozen=True)
class StockCheck:
    """Result of asking whether ``requested`` more units fit in the cart."""

    allowed: bool
    max_addable: int
    requested: int

    @property
    def out_of_stock(self) -> bool:
        return not self.allowed and self.max_addable == 0

    @property
    def partially_available(self) -> bool:
        return not self.allowed and 0 < self.max_addable < self.requested

    @property
    def message(self) -> str | None:
        """User-facing warning for a rejected request, ``None`` when allowed."""
        if self.allowed:
            return None
        if self.max_addable == 0:
            return "Out of stock"
        return f"Only {self.max_addable} more can be added"


class StockLedger:
    """Compares requested quantities against a unit's remaining stock."""

    def can_add(self, unit: SellableUnit, requested_qty: int, already_in_cart: int) -> StockCheck:
        if not unit.track_inventory:
            return StockCheck(allowed=True, max_addable=requested_qty, requested=requested_qty)

        max_addable = max(0, unit.stock - already_in_cart)
        return StockCheck(
            allowed=requested_qty <= max_addable,
            max_addable=max_addable,
            requested=requested_qty,
        )

    def availability(self, units: list[SellableUnit], in_cart: dict[tuple[str, str | None], int]) -> dict:
        """Per-unit purchasable flags for the UI, keyed by ``(product_id, variant_id)``.

        ``in_cart`` maps the same key to the quantity already committed.
        """
        flags = {}
        for unit in units:
            check = self.can_add(unit, 1, in_cart.get(unit.key, 0))
            flags[unit.key] = check.allowed
        return flags
