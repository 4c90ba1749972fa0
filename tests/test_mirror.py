import pytest

from inventory.mirror import ItemMirror
from inventory.models import Item

BOLTS = Item("1", "Bolts", "10")
NAILS = Item("2", "Nails", "5")


def test_replace_swaps_tuple_and_notifies():
    mirror = ItemMirror()
    seen = []
    mirror.subscribe(lambda prev, cur: seen.append((prev, cur)))

    before = mirror.items
    assert mirror.replace([BOLTS])
    assert mirror.items == (BOLTS,)
    assert mirror.items is not before
    assert seen == [((), (BOLTS,))]


def test_replace_with_equal_sequence_is_silent():
    mirror = ItemMirror([BOLTS])
    seen = []
    mirror.subscribe(lambda prev, cur: seen.append(cur))
    assert not mirror.replace([BOLTS])
    assert seen == []


def test_replace_rejects_duplicate_ids():
    mirror = ItemMirror()
    with pytest.raises(ValueError):
        mirror.replace([BOLTS, Item("1", "Other", "1")])


def test_set_qty_only_touches_quantity():
    mirror = ItemMirror([BOLTS, NAILS])
    mirror.set_qty("1", "20")
    assert mirror.items == (Item("1", "Bolts", "20"), NAILS)


def test_operations_on_absent_id_are_noops():
    mirror = ItemMirror([BOLTS])
    seen = []
    mirror.subscribe(lambda prev, cur: seen.append(cur))
    assert not mirror.set_qty("9", "1")
    assert not mirror.remove("9")
    assert not mirror.rename_id("9", "10")
    assert mirror.items == (BOLTS,)
    assert seen == []


def test_append_insert_remove_rename():
    mirror = ItemMirror([BOLTS])
    mirror.append(NAILS)
    assert [it.item_id for it in mirror] == ["1", "2"]

    mirror.remove("1")
    assert mirror.items == (NAILS,)

    mirror.insert(0, BOLTS)
    assert mirror.items == (BOLTS, NAILS)

    mirror.insert(99, Item("3", "Glue", "1"))
    assert mirror.index_of("3") == 2

    mirror.rename_id("3", "30")
    assert mirror.get("30") == Item("30", "Glue", "1")
    assert len(mirror) == 3


def test_unsubscribe_stops_notifications():
    mirror = ItemMirror()
    seen = []
    unsubscribe = mirror.subscribe(lambda prev, cur: seen.append(cur))
    mirror.append(BOLTS)
    unsubscribe()
    mirror.append(NAILS)
    assert seen == [(BOLTS,)]
