"""JSON file cart storage.

A missing or unreadable file reads as an empty store, the same way a fresh
browser profile has no saved cart.
"""

import json
from pathlib import Path

import structlog

from storefront.cart.storage.port import CartStorage

logger = structlog.get_logger(__name__)


class FileCartStorage(CartStorage):
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("cart_storage_unreadable", path=str(self.path), error=str(exc))
            return []
        return data if isinstance(data, list) else []

    def write(self, entries: list[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(entries), encoding="utf-8")
        tmp.replace(self.path)
