"""HTTP client for the warehouse API with an explicit resource cache.

The client mirrors the ``products``, ``inventory`` and ``orders`` lists.
Reads are served from the cache once loaded; every command lists the
collections it changes and re-fetches exactly those after it succeeds.
"""

from typing import Any, Dict, Iterable, List, Optional
import httpx
from wms.core import get_logger

logger = get_logger(__name__)

COLLECTIONS = ("products", "inventory", "orders")


class ClientError(Exception):
    def __init__(self, status_code: int, error: str, details: Any = None):
        super().__init__(f"{status_code}: {error}")
        self.status_code = status_code
        self.error = error
        self.details = details


class ResourceCache:
    """Last fetched copy of each collection; ``None`` means not loaded."""

    def __init__(self):
        self._data: Dict[str, Optional[List[dict]]] = {name: None for name in COLLECTIONS}

    def get(self, name: str) -> Optional[List[dict]]:
        return self._data[name]

    def put(self, name: str, items: List[dict]) -> None:
        self._data[name] = items

    def invalidate(self, *names: str) -> None:
        for name in names or COLLECTIONS:
            self._data[name] = None

    def is_loaded(self, name: str) -> bool:
        return self._data[name] is not None


class WarehouseClient:
    def __init__(self, base_url: str = "http://localhost:8000", api_prefix: str = "/api",
                 http: Optional[httpx.Client] = None, timeout: float = 5.0):
        self._owns_http = http is None
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.api_prefix = api_prefix.rstrip("/")
        self.cache = ResourceCache()

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self.http.request(method, f"{self.api_prefix}{path}", **kwargs)
        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {"details": body}
            raise ClientError(response.status_code, body.get("error", response.reason_phrase), body.get("details"))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _refresh(self, names: Iterable[str]) -> None:
        for name in names:
            self.cache.invalidate(name)
            self.cache.put(name, self._request("GET", f"/{name}"))
        logger.debug("Client cache refreshed", extra={'extra_fields': {'collections': list(names)}})

    def _command(self, method: str, path: str, affects: Iterable[str], **kwargs) -> Any:
        affects = tuple(affects)
        result = self._request(method, path, **kwargs)
        self._refresh(affects)
        return result

    def _collection(self, name: str, refresh: bool = False) -> List[dict]:
        if refresh or not self.cache.is_loaded(name):
            self._refresh((name,))
        return self.cache.get(name)

    # Queries

    def products(self, refresh: bool = False) -> List[dict]:
        return self._collection("products", refresh)

    def inventory(self, refresh: bool = False) -> List[dict]:
        return self._collection("inventory", refresh)

    def orders(self, refresh: bool = False) -> List[dict]:
        return self._collection("orders", refresh)

    # Commands

    def add_product(self, name: str, note: Optional[str] = None, image: Optional[str] = None) -> str:
        body = {"name": name, "note": note, "image": image}
        return self._command("POST", "/products", ("products",), json=body)["id"]

    def delete_product(self, product_id: str) -> None:
        self._command("DELETE", f"/products/{product_id}", ("products", "inventory", "orders"))

    def add_to_inventory(self, product_id: str, quantity: int) -> str:
        body = {"product_id": product_id, "quantity": quantity}
        return self._command("POST", "/inventory", ("inventory",), json=body)["id"]

    def update_inventory_quantity(self, item_id: str, quantity: int) -> None:
        self._command("PUT", f"/inventory/{item_id}", ("inventory",), json={"quantity": quantity})

    def apply_inventory_deltas(self, updates: Dict[str, int]) -> None:
        body = {"updates": [{"productId": pid, "quantity": qty} for pid, qty in updates.items()]}
        self._command("PUT", "/inventory/bulk", ("inventory",), json=body)

    def delete_inventory_item(self, item_id: str) -> None:
        self._command("DELETE", f"/inventory/{item_id}", ("inventory",))

    def add_order(self, name: str, address: str, products: Dict[str, int], note: Optional[str] = None) -> str:
        body = {
            "name": name,
            "address": address,
            "note": note,
            "products": [{"productId": pid, "quantity": qty} for pid, qty in products.items()],
        }
        return self._command("POST", "/orders", ("orders",), json=body)["id"]

    def ship_order(self, order_id: str) -> None:
        self._command("POST", f"/orders/{order_id}/ship", ("inventory", "orders"))

    def delete_order(self, order_id: str) -> None:
        self._command("DELETE", f"/orders/{order_id}", ("orders",))
