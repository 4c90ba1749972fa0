# inventory/models.py
from dataclasses import dataclass
from typing import Any, Dict

PENDING_PREFIX = "pending-"


@dataclass(frozen=True)
class Item:
    """
    One row of the inventory list as mirrored from the remote collection.
    Quantities are free-form text; nothing validates them.
    """
    item_id: str
    name: str
    qty: str = ""

    @property
    def pending(self) -> bool:
        """True while the identifier is provisional (create not yet confirmed)."""
        return self.item_id.startswith(PENDING_PREFIX)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Item":
        if not isinstance(data, dict) or data.get("_id") in (None, ""):
            raise ValueError(f"Item record without _id: {data!r}")
        name = data.get("name")
        qty = data.get("qty")
        return cls(
            item_id=str(data["_id"]),
            name="" if name is None else str(name),
            qty="" if qty is None else str(qty),
        )
