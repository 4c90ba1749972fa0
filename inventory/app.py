# inventory/app.py
import enum
import queue
import threading
import uuid
from concurrent.futures import Executor, Future
from typing import Any, Callable, List, Optional, Tuple

from stores.errors import StoreError

from .diff import diff_items
from .logger import get_logger
from .mirror import ItemMirror
from .models import PENDING_PREFIX, Item

logger = get_logger(__name__)


class AppState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class InventoryApp:
    """
    Owns the item mirror and mediates every user intent.

    Add, update and delete are all applied to the mirror first and rolled
    back if the remote call fails. Without an executor the remote call runs
    inline and the intent returns whether it succeeded; with one, the call is
    submitted and the intent returns its Future.

    Background completions are queued, never applied on the worker thread;
    the owner of the app calls drain() from its own thread to apply them.
    """

    def __init__(self, store, mirror: ItemMirror | None = None, executor: Executor | None = None):
        self.store = store
        self.mirror = mirror if mirror is not None else ItemMirror()
        self.executor = executor
        self.state = AppState.UNINITIALIZED
        self.last_error: Optional[str] = None
        self._listeners: List[Callable[["InventoryApp"], None]] = []
        self._lock = threading.RLock()
        self._completions: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self.mirror.subscribe(self._on_mirror_change)

    # ----- observation ---------------------------------------------------

    @property
    def items(self) -> Tuple[Item, ...]:
        return self.mirror.items

    def subscribe(self, callback: Callable[["InventoryApp"], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for cb in list(self._listeners):
            cb(self)

    def _on_mirror_change(self, previous: Tuple[Item, ...], current: Tuple[Item, ...]) -> None:
        logger.debug("Items changed (%d -> %d): %s", len(previous), len(current), list(current))
        self._notify()

    def _set_state(self, state: AppState) -> None:
        if state is self.state:
            return
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state
        self._notify()

    def _fail(self, message: str, exc: Exception) -> None:
        self.last_error = f"{message}: {exc}"
        logger.error("%s: %s", message, exc)
        self._notify()

    def clear_error(self) -> None:
        if self.last_error is not None:
            self.last_error = None
            self._notify()

    def drain(self) -> int:
        """Apply queued background completions on the calling thread."""
        applied = 0
        while True:
            try:
                completion = self._completions.get_nowait()
            except queue.Empty:
                return applied
            completion()
            applied += 1

    # ----- loading -------------------------------------------------------

    def load(self) -> AppState:
        """Fetch the whole collection into the mirror."""
        with self._lock:
            self._set_state(AppState.LOADING)
            try:
                items = self.store.list_all()
            except StoreError as e:
                self._set_state(AppState.ERROR)
                self._fail("Could not load items", e)
                return self.state

            pending = [it for it in self.mirror if it.pending]
            self.mirror.replace(list(items) + pending)
            self.last_error = None
            self._set_state(AppState.READY)
            logger.info("Loaded %d items", len(items))
            return self.state

    def retry(self) -> AppState:
        if self.state is not AppState.ERROR:
            logger.warning("Retry requested while %s; reloading anyway.", self.state.value)
        return self.load()

    def refresh(self):
        """
        Re-read the remote collection and replace the mirror with it.
        Returns (added, removed, qty_changes) relative to what the mirror held.
        """
        with self._lock:
            try:
                remote = self.store.list_all()
            except StoreError as e:
                self._fail("Could not refresh items", e)
                return [], [], []

            confirmed = [it for it in self.mirror if not it.pending]
            pending = [it for it in self.mirror if it.pending]
            added, removed, qty_changes = diff_items(confirmed, remote)
            if added or removed or qty_changes:
                logger.warning(
                    "Local list had diverged: %d added, %d removed, %d qty changes remotely",
                    len(added), len(removed), len(qty_changes),
                )
                for it in added:
                    logger.info("Remote has new item %s (%s)", it.item_id, it.name)
                for it in removed:
                    logger.info("Remote no longer has item %s (%s)", it.item_id, it.name)
                for it, before, after in qty_changes:
                    logger.info("Remote qty for %s (%s): %r -> %r", it.item_id, it.name, before, after)

            self.mirror.replace(list(remote) + pending)
            if self.state is not AppState.READY:
                self._set_state(AppState.READY)
            return added, removed, qty_changes

    # ----- intents -------------------------------------------------------

    def _dispatch(
        self,
        call: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_failure: Callable[[StoreError], None],
    ):
        if self.executor is None:
            try:
                result = call()
            except StoreError as e:
                on_failure(e)
                return False
            on_success(result)
            return True

        def apply(fut: Future) -> None:
            exc = fut.exception()
            if exc is None:
                on_success(fut.result())
            elif isinstance(exc, StoreError):
                on_failure(exc)
            else:
                logger.error("Unexpected error in background write", exc_info=exc)

        def done(fut: Future) -> None:
            self._completions.put(lambda: apply(fut))

        fut = self.executor.submit(call)
        fut.add_done_callback(done)
        return fut

    def add_item(self, name: str, qty: str):
        provisional = Item(item_id=f"{PENDING_PREFIX}{uuid.uuid4().hex}", name=name, qty=qty)
        self.mirror.append(provisional)

        def confirmed(new_id: str) -> None:
            if self.mirror.get(new_id) is not None:
                # A reload already brought the created record in.
                self.mirror.remove(provisional.item_id)
            elif not self.mirror.rename_id(provisional.item_id, new_id):
                logger.warning("Created item %s (%s) no longer in the list", new_id, name)
            logger.info("Added item %s (%s)", new_id, name)

        def failed(e: StoreError) -> None:
            self.mirror.remove(provisional.item_id)
            self._fail(f"Could not add {name!r}", e)

        return self._dispatch(lambda: self.store.create(name, qty), confirmed, failed)

    def update_item(self, item: Item, qty: str):
        current = self.mirror.get(item.item_id)
        if current is None:
            logger.warning("Update for unknown item %s ignored", item.item_id)
            return None
        if current.pending:
            logger.warning("Item %s is still being created; update ignored", item.name)
            return None

        previous_qty = current.qty
        self.mirror.set_qty(current.item_id, qty)

        def confirmed(_ack) -> None:
            logger.info("Updated %s (%s) qty to %r", current.item_id, current.name, qty)

        def failed(e: StoreError) -> None:
            now = self.mirror.get(current.item_id)
            # A later update owns the value now.
            if now is not None and now.qty == qty:
                self.mirror.set_qty(current.item_id, previous_qty)
            self._fail(f"Could not update {current.name!r}", e)

        return self._dispatch(lambda: self.store.update_quantity(current, qty), confirmed, failed)

    def remove_item(self, item_id: str):
        index = self.mirror.index_of(item_id)
        if index < 0:
            logger.debug("Delete for absent item %s is a no-op", item_id)
            return None
        removed = self.mirror.items[index]
        if removed.pending:
            logger.warning("Item %s is still being created; delete ignored", removed.name)
            return None

        self.mirror.remove(item_id)

        def confirmed(count: int) -> None:
            logger.info("Deleted %s (%s), deletedCount=%s", item_id, removed.name, count)

        def failed(e: StoreError) -> None:
            if self.mirror.get(item_id) is None:
                self.mirror.insert(index, removed)
            self._fail(f"Could not delete {removed.name!r}", e)

        return self._dispatch(lambda: self.store.delete(item_id), confirmed, failed)
