# inventory/mirror.py
import dataclasses
import threading
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .models import Item

Observer = Callable[[Tuple[Item, ...], Tuple[Item, ...]], None]


class ItemMirror:
    """
    Local copy of the remote collection, in remote list order.

    The sequence is an immutable tuple that is swapped wholesale on every
    change, so observers always receive distinct previous/current snapshots.
    """

    def __init__(self, items: Iterable[Item] = ()):
        self._items: Tuple[Item, ...] = tuple(items)
        self._observers: List[Observer] = []
        self._lock = threading.RLock()

    @property
    def items(self) -> Tuple[Item, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def get(self, item_id: str) -> Optional[Item]:
        for it in self._items:
            if it.item_id == item_id:
                return it
        return None

    def index_of(self, item_id: str) -> int:
        for idx, it in enumerate(self._items):
            if it.item_id == item_id:
                return idx
        return -1

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def replace(self, items: Iterable[Item]) -> bool:
        """Swap in a new sequence. Returns False when nothing changed."""
        with self._lock:
            new_items = tuple(items)
            ids = [it.item_id for it in new_items]
            if len(set(ids)) != len(ids):
                raise ValueError(f"Duplicate item identifiers: {ids}")
            if new_items == self._items:
                return False
            previous = self._items
            self._items = new_items
            observers = list(self._observers)
            # Observers run under the lock so they see snapshots in order.
            for cb in observers:
                cb(previous, new_items)
        return True

    def append(self, item: Item) -> bool:
        with self._lock:
            return self.replace(self._items + (item,))

    def insert(self, index: int, item: Item) -> bool:
        with self._lock:
            index = max(0, min(index, len(self._items)))
            return self.replace(self._items[:index] + (item,) + self._items[index:])

    def set_qty(self, item_id: str, qty: str) -> bool:
        with self._lock:
            if self.get(item_id) is None:
                return False
            return self.replace(
                dataclasses.replace(it, qty=qty) if it.item_id == item_id else it
                for it in self._items
            )

    def rename_id(self, old_id: str, new_id: str) -> bool:
        with self._lock:
            if self.get(old_id) is None:
                return False
            return self.replace(
                dataclasses.replace(it, item_id=new_id) if it.item_id == old_id else it
                for it in self._items
            )

    def remove(self, item_id: str) -> bool:
        with self._lock:
            if self.get(item_id) is None:
                return False
            return self.replace(it for it in self._items if it.item_id != item_id)
