import pytest

from inventory.models import Item
from stores import StoreError
from stores.memory import MemoryItemStore


def test_ids_continue_after_seed_rows():
    store = MemoryItemStore([{"_id": "1", "name": "Bolts", "qty": "10"}])
    assert store.create("Nails", "5") == "2"
    assert store.list_all() == [Item("1", "Bolts", "10"), Item("2", "Nails", "5")]


def test_update_unknown_record_is_404():
    store = MemoryItemStore()
    with pytest.raises(StoreError) as info:
        store.update_quantity(Item("9", "Ghost", "1"), "2")
    assert info.value.status == 404


def test_update_by_name_touches_every_match():
    store = MemoryItemStore(
        [{"_id": "1", "name": "Bolts", "qty": "10"}, {"_id": "2", "name": "Bolts", "qty": "3"}],
        update_key="name",
    )
    ack = store.update_quantity(Item("1", "Bolts", "10"), "7")
    assert ack["modifiedCount"] == 2
    assert [it.qty for it in store.list_all()] == ["7", "7"]


def test_delete_counts():
    store = MemoryItemStore([{"_id": "1", "name": "Bolts", "qty": "10"}])
    assert store.delete("9") == 0
    assert store.delete("1") == 1
    assert store.list_all() == []
