# inventory/diff.py
from typing import List, Sequence, Tuple

from .models import Item


def diff_items(
    previous: Sequence[Item], current: Sequence[Item]
) -> tuple[List[Item], List[Item], List[Tuple[Item, str, str]]]:
    """
    Compute added, removed, and qty_changes between previous and current.
    - previous: what the local mirror holds
    - current: what the remote store returned
    Returns:
      (added_items, removed_items, qty_changes[(item_after, qty_before, qty_after)])
    Each list keeps the order of the sequence it was drawn from.
    """
    old_map = {it.item_id: it for it in previous}
    new_map = {it.item_id: it for it in current}

    added = [it for it in current if it.item_id not in old_map]
    removed = [it for it in previous if it.item_id not in new_map]

    qty_changes: List[Tuple[Item, str, str]] = []
    for it in current:
        old_item = old_map.get(it.item_id)
        if old_item is None:
            continue
        if old_item.qty != it.qty:
            qty_changes.append((it, old_item.qty, it.qty))

    return added, removed, qty_changes
