# stores/memory.py
import itertools
import threading
from typing import Any, Dict, List

from inventory.logger import get_logger
from inventory.models import Item
from .errors import StoreError

logger = get_logger(__name__)


class MemoryItemStore:
    """
    In-process stand-in for the remote collection with the same contract
    as HttpItemStore. Identifiers are sequential strings starting at "1".
    """

    def __init__(self, items: List[Dict[str, Any]] | None = None, update_key: str = "id"):
        self._lock = threading.Lock()
        self._rows: List[Dict[str, str]] = []
        self._ids = itertools.count(1)
        self.update_key = update_key
        for row in items or []:
            item = Item.from_api(row)
            self._rows.append({"_id": item.item_id, "name": item.name, "qty": item.qty})
        taken = [int(r["_id"]) for r in self._rows if r["_id"].isdigit()]
        if taken:
            self._ids = itertools.count(max(taken) + 1)

    def list_all(self) -> List[Item]:
        with self._lock:
            return [Item.from_api(row) for row in self._rows]

    def create(self, name: str, qty: str) -> str:
        with self._lock:
            new_id = str(next(self._ids))
            self._rows.append({"_id": new_id, "name": name, "qty": qty})
        logger.debug("Memory store created %s (%s)", new_id, name)
        return new_id

    def update_quantity(self, item: Item, qty: str) -> Dict[str, Any]:
        field, key = ("name", item.name) if self.update_key == "name" else ("_id", item.item_id)
        with self._lock:
            matched = [row for row in self._rows if row[field] == key]
            if not matched:
                raise StoreError(f"No item with {field}={key!r}", status=404)
            for row in matched:
                row["qty"] = qty
        return {"matchedCount": len(matched), "modifiedCount": len(matched)}

    def delete(self, item_id: str) -> int:
        with self._lock:
            before = len(self._rows)
            self._rows = [row for row in self._rows if row["_id"] != item_id]
            return before - len(self._rows)
