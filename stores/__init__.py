from . import http_api
from . import memory
from .errors import StoreError

STORES = {
    "http": http_api.HttpItemStore,
    "memory": memory.MemoryItemStore,
}


def build_store(backend: str, **kwargs):
    store_cls = STORES.get(backend.strip().lower())
    if store_cls is None:
        raise ValueError(f"No store registered for backend '{backend}'")
    return store_cls(**kwargs)


__all__ = ["STORES", "StoreError", "build_store"]
