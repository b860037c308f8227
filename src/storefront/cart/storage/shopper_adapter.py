"""One shopper's view of a cart storage shared by every shopper.

Records are tagged with ``shopper_id`` in the backing storage. The view reads
only its own records (without the tag) and writes them back next to every
other shopper's, so a CartStore built on it behaves exactly as it does on a
private store.
"""

from storefront.cart.storage.port import CartStorage

SHOPPER_KEY = "shopper_id"


class ShopperCartStorage(CartStorage):
    def __init__(self, backing: CartStorage, shopper_id: str) -> None:
        self.backing = backing
        self.shopper_id = shopper_id

    def read(self) -> list[dict]:
        return [
            {k: v for k, v in entry.items() if k != SHOPPER_KEY}
            for entry in self.backing.read()
            if entry.get(SHOPPER_KEY) == self.shopper_id
        ]

    def write(self, entries: list[dict]) -> None:
        others = [e for e in self.backing.read() if e.get(SHOPPER_KEY) != self.shopper_id]
        own = [{**entry, SHOPPER_KEY: self.shopper_id} for entry in entries]
        self.backing.write(others + own)
