from concurrent.futures import Executor, Future

import pytest

from inventory.app import InventoryApp
from stores.errors import StoreError
from stores.memory import MemoryItemStore


class FlakyStore(MemoryItemStore):
    """Memory store whose operations can be made to fail by name."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failing = set()
        self.calls = []

    def _maybe_fail(self, op):
        self.calls.append(op)
        if op in self.failing:
            raise StoreError(f"{op} unavailable", status=503)

    def list_all(self):
        self._maybe_fail("list_all")
        return super().list_all()

    def create(self, name, qty):
        self._maybe_fail("create")
        return super().create(name, qty)

    def update_quantity(self, item, qty):
        self._maybe_fail("update_quantity")
        return super().update_quantity(item, qty)

    def delete(self, item_id):
        self._maybe_fail("delete")
        return super().delete(item_id)


class HeldExecutor(Executor):
    """Runs each call on submit but holds its outcome until release()."""

    def __init__(self):
        self.held = []

    def submit(self, fn, /, *args, **kwargs):
        fut = Future()
        try:
            outcome = (fn(*args, **kwargs), None)
        except Exception as e:
            outcome = (None, e)
        self.held.append((fut, outcome))
        return fut

    def release(self):
        held, self.held = self.held, []
        for fut, (result, exc) in held:
            if exc is None:
                fut.set_result(result)
            else:
                fut.set_exception(exc)


@pytest.fixture
def store():
    return FlakyStore([{"_id": "1", "name": "Bolts", "qty": "10"}])


@pytest.fixture
def app(store):
    return InventoryApp(store)


@pytest.fixture
def ready_app(app):
    app.load()
    return app
