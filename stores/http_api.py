# stores/http_api.py
import os
from typing import Any, Dict, List
from urllib.parse import quote

import requests
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from inventory.logger import get_logger
from inventory.models import Item
from .errors import StoreError

logger = get_logger(__name__)

API_URL = os.getenv("ITEMS_API_URL", "https://inventorylistapi.herokuapp.com").strip()
ITEMS_PATH = os.getenv("ITEMS_PATH", "/items").strip()
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))
LIST_RETRY_ATTEMPTS = int(os.getenv("LIST_RETRY_ATTEMPTS", "3"))
UPDATE_KEY = os.getenv("UPDATE_KEY", "id").strip().lower()

UPDATE_KEYS = ("id", "name")
ACCEPT_JSON = {"Accept": "application/json"}


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code >= 500
    return False


def _status_of(exc: BaseException) -> int | None:
    response = getattr(exc, "response", None)
    return response.status_code if response is not None else None


class HttpItemStore:
    """
    Client for the remote /items collection.

    Only the list call is retried; writes go out exactly once.
    """

    def __init__(
        self,
        base_url: str = API_URL,
        items_path: str = ITEMS_PATH,
        timeout: float = REQUEST_TIMEOUT,
        retry_attempts: int = LIST_RETRY_ATTEMPTS,
        retry_wait: float = 1.0,
        update_key: str = UPDATE_KEY,
        session: requests.Session | None = None,
    ):
        if update_key not in UPDATE_KEYS:
            logger.warning("Unknown update key '%s'; using 'id'.", update_key)
            update_key = "id"
        self.collection_url = base_url.rstrip("/") + "/" + items_path.strip("/")
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_wait = retry_wait
        self.update_key = update_key
        self.session = session or requests.Session()

    def _url(self, key: str | None = None) -> str:
        if key is None:
            return self.collection_url
        return f"{self.collection_url}/{quote(key, safe='')}"

    def _send(self, method: str, url: str, payload: Dict[str, Any] | None = None) -> Any:
        r = self.session.request(
            method, url, json=payload, headers=ACCEPT_JSON, timeout=self.timeout
        )
        r.raise_for_status()
        if not r.content:
            return None
        return r.json()

    def _call(self, method: str, url: str, payload: Dict[str, Any] | None = None) -> Any:
        try:
            return self._send(method, url, payload)
        except requests.RequestException as e:
            raise StoreError(f"{method} {url} failed: {e}", status=_status_of(e)) from e
        except ValueError as e:
            raise StoreError(f"{method} {url} returned a non-JSON body: {e}") from e

    def list_all(self) -> List[Item]:
        url = self._url()
        retrying = Retrying(
            retry=retry_if_exception(_is_transient),
            wait=wait_exponential_jitter(
                initial=self.retry_wait, max=30, jitter=self.retry_wait
            ),
            stop=stop_after_attempt(self.retry_attempts),
        )
        try:
            data = retrying(self._send, "GET", url)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error("Listing %s failed after %d attempts: %s", url, self.retry_attempts, last)
            raise StoreError(f"GET {url} failed: {last}", status=_status_of(last)) from e
        except requests.RequestException as e:
            raise StoreError(f"GET {url} failed: {e}", status=_status_of(e)) from e
        except ValueError as e:
            raise StoreError(f"GET {url} returned a non-JSON body: {e}") from e

        if not isinstance(data, list):
            raise StoreError(f"GET {url} returned {type(data).__name__}, expected a list")
        try:
            items = [Item.from_api(row) for row in data]
        except ValueError as e:
            raise StoreError(str(e)) from e
        logger.info("Listed %d items from %s", len(items), url)
        return items

    def create(self, name: str, qty: str) -> str:
        url = self._url()
        data = self._call("POST", url, {"name": name, "qty": qty})
        logger.debug("Create %s returned %r", url, data)

        if isinstance(data, str) and data:
            return data
        if isinstance(data, dict):
            for key in ("_id", "insertedId", "id"):
                if data.get(key):
                    return str(data[key])
        raise StoreError(f"POST {url} returned no identifier: {data!r}")

    def update_quantity(self, item: Item, qty: str) -> Dict[str, Any]:
        key = item.name if self.update_key == "name" else item.item_id
        url = self._url(key)
        data = self._call("PUT", url, {"qty": qty})
        logger.debug("Update %s returned %r", url, data)
        return data if isinstance(data, dict) else {"result": data}

    def delete(self, item_id: str) -> int:
        url = self._url(item_id)
        data = self._call("DELETE", url)
        count = data.get("deletedCount") if isinstance(data, dict) else None
        try:
            count = int(count)
        except (TypeError, ValueError):
            count = 0
        if count != 1:
            logger.warning("Delete %s reported deletedCount=%s (expected 1)", url, count)
        return count
