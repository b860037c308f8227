"""In-memory cart storage for development and testing."""

import copy

from storefront.cart.storage.port import CartStorage


class MemoryCartStorage(CartStorage):
    def __init__(self, entries: list[dict] | None = None) -> None:
        self.entries: list[dict] = copy.deepcopy(entries) if entries else []
        self.writes = 0

    def read(self) -> list[dict]:
        return copy.deepcopy(self.entries)

    def write(self, entries: list[dict]) -> None:
        self.entries = copy.deepcopy(entries)
        self.writes += 1
