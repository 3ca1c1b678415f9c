import httpx
import pytest

from wms.client import ClientError, WarehouseClient


@pytest.fixture
def wms(client):
    return WarehouseClient(http=client)


def test_reads_are_served_from_cache(wms, client):
    assert wms.products() == []
    client.post("/api/products", json={"name": "behind the cache"})
    assert wms.products() == []
    assert len(wms.products(refresh=True)) == 1


def test_commands_refresh_affected_collections(wms):
    product_id = wms.add_product("Crate")
    assert [p["id"] for p in wms.cache.get("products")] == [product_id]
    assert not wms.cache.is_loaded("inventory")

    wms.add_to_inventory(product_id, 5)
    assert wms.cache.get("inventory")[0]["quantity"] == 5

    order_id = wms.add_order("Acme", "1 Dock Road", {product_id: 2})
    wms.ship_order(order_id)
    assert wms.cache.get("inventory")[0]["quantity"] == 3
    assert wms.cache.get("orders")[0]["id"] == order_id

    wms.delete_product(product_id)
    assert wms.cache.get("products") == []
    assert wms.cache.get("inventory") == []


def test_failed_command_raises_and_keeps_cache(wms):
    product_id = wms.add_product("Crate")
    wms.add_to_inventory(product_id, 1)
    before = wms.inventory()

    with pytest.raises(ClientError) as excinfo:
        wms.apply_inventory_deltas({product_id: -2})
    assert excinfo.value.status_code == 400
    assert product_id in excinfo.value.error
    assert wms.inventory() is before


def test_inventory_corrections(wms):
    product_id = wms.add_product("Crate")
    item_id = wms.add_to_inventory(product_id, 1)
    wms.update_inventory_quantity(item_id, 8)
    assert wms.inventory()[0]["quantity"] == 8
    wms.apply_inventory_deltas({product_id: 2})
    assert wms.inventory()[0]["quantity"] == 10
    wms.delete_inventory_item(item_id)
    assert wms.inventory() == []


def test_non_object_error_body_still_raises_client_error():
    def handler(request):
        return httpx.Response(500, json=["disk full"])

    http = httpx.Client(base_url="http://wms", transport=httpx.MockTransport(handler))
    with WarehouseClient(http=http) as remote:
        with pytest.raises(ClientError) as excinfo:
            remote.products()
    assert excinfo.value.status_code == 500
    assert excinfo.value.error == "Internal Server Error"
    assert excinfo.value.details == ["disk full"]
    http.close()
