"""CartStore — the tenant-scoped cart persisted in the shared multi-tenant store.

Every mutation is a read-modify-write of the tenant's own records: the whole
shared store is read, this tenant's records are replaced by the in-memory
cart, and every other tenant's records are written back verbatim. No
cross-tenant locking is needed because tenants are partitioned by key.
"""

from collections.abc import Iterable

import pydantic
import structlog

from storefront.cart.cart import Cart, CartOutcome, CartTotals, LineItem
from storefront.cart.storage import get_storage
from storefront.cart.storage.port import CartStorage
from storefront.catalogue.client import fetch_units
from storefront.catalogue.client.port import CatalogPort
from storefront.catalogue.sellable import Modifier, SellableUnit
from storefront.catalogue.stock import StockLedger

logger = structlog.get_logger(__name__)


class CartStore:
    def __init__(
        self,
        business_id: str,
        storage: CartStorage | None = None,
        ledger: StockLedger | None = None,
    ) -> None:
        self.business_id = business_id
        self.storage = storage or get_storage()
        self.ledger = ledger or StockLedger()
        self._cart: Cart | None = None

    # -------------------------------------------------------------------
    # Hydration & persistence
    # -------------------------------------------------------------------
    @property
    def cart(self) -> Cart:
        if self._cart is None:
            self._cart = self.load()
        return self._cart

    def load(self) -> Cart:
        """Hydrate this tenant's cart, purging orphaned records on the way."""
        entries = self.storage.read()
        kept = [e for e in entries if e.get("business_id")]
        if len(kept) != len(entries):
            logger.info("cart_orphans_purged", business_id=self.business_id, purged=len(entries) - len(kept))
            self.storage.write(kept)

        items = []
        for entry in kept:
            if entry["business_id"] != self.business_id:
                continue
            try:
                items.append(LineItem.model_validate(entry))
            except pydantic.ValidationError as exc:
                logger.warning("cart_entry_discarded", business_id=self.business_id, error=str(exc))

        self._cart = Cart(business_id=self.business_id, items=items)
        return self._cart

    def _persist(self) -> None:
        others = [e for e in self.storage.read() if e.get("business_id") and e["business_id"] != self.business_id]
        own = [item.model_dump(mode="json") for item in self.cart.items]
        self.storage.write(others + own)

    def _record(self, action: str, outcome: CartOutcome) -> CartOutcome:
        if outcome.changed:
            self._persist()
        if outcome.ok:
            logger.debug(f"cart_{action}", business_id=self.business_id, line_id=outcome.line_id, quantity=outcome.quantity)
        else:
            logger.info(
                "cart_stock_limit",
                business_id=self.business_id,
                action=action,
                line_id=outcome.line_id,
                reason=outcome.message,
            )
        return outcome

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------
    def add(
        self,
        unit: SellableUnit,
        quantity: int = 1,
        modifiers: Iterable[Modifier] = (),
        clamp: bool = False,
    ) -> CartOutcome:
        return self._record("add", self.cart.add(unit, quantity, modifiers, clamp=clamp, ledger=self.ledger))

    def increment(self, line_id: str) -> CartOutcome:
        return self._record("increment", self.cart.increment(line_id, ledger=self.ledger))

    def set_quantity(self, line_id: str, quantity: int) -> CartOutcome:
        return self._record("set_quantity", self.cart.set_quantity(line_id, quantity, ledger=self.ledger))

    def remove(self, line_id: str) -> CartOutcome:
        return self._record("remove", self.cart.remove(line_id))

    def clear(self) -> None:
        """Drop this tenant's lines; other tenants' carts are untouched."""
        self.cart.clear()
        self._persist()
        logger.info("cart_cleared", business_id=self.business_id)

    def discard(self, quantities: dict[str, int]) -> None:
        """Remove quantities that were just ordered, keeping anything added since."""
        self.cart.discard(quantities)
        self._persist()
        logger.info("cart_lines_ordered", business_id=self.business_id, lines=len(quantities))

    def refresh_stock(self, units: Iterable[SellableUnit]) -> list[CartOutcome]:
        outcomes = self.cart.refresh_stock(units)
        self._persist()
        for outcome in outcomes:
            logger.info("cart_line_adjusted", business_id=self.business_id, line_id=outcome.line_id, reason=outcome.message)
        return outcomes

    async def sync_stock(self, catalog: CatalogPort | None = None) -> list[CartOutcome]:
        """Fetch the tenant catalog and apply it with ``refresh_stock``.

        Raises ``CatalogUnavailableError`` when the catalog cannot be reached;
        the cart is left untouched in that case.
        """
        units = await fetch_units(self.business_id, catalog)
        return self.refresh_stock(units)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def items(self) -> list[LineItem]:
        return list(self.cart.items)

    def totals(self) -> CartTotals:
        return self.cart.totals()

    def availability(self, units: Iterable[SellableUnit]) -> dict[tuple[str, str | None], bool]:
        """Whether one more of each (unmodified) unit can still be added."""
        units = list(units)
        in_cart = {u.key: self.cart.quantity_for(u) for u in units}
        return self.ledger.availability(units, in_cart)
