from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session


def create_product(client, name="Widget", note=None):
    resp = client.post("/api/products", json={"name": name, "note": note})
    assert resp.status_code == 201
    return resp.json()["id"]


def restock(client, product_id, quantity):
    return client.post("/api/inventory", json={"product_id": product_id, "quantity": quantity})


def inventory_by_product(client):
    resp = client.get("/api/inventory")
    assert resp.status_code == 200
    return {row["product_id"]: row for row in resp.json()}


def test_health_endpoints(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "pass"
    assert client.get("/health/live").json() == {"status": "alive"}


def test_request_id_is_echoed(client):
    resp = client.get("/api/products", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_product_lifecycle(client):
    product_id = create_product(client, "Bolt", "M8")
    resp = client.get(f"/api/products/{product_id}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Bolt"
    assert [p["id"] for p in client.get("/api/products").json()] == [product_id]

    assert client.delete(f"/api/products/{product_id}").status_code == 204
    assert client.get(f"/api/products/{product_id}").status_code == 404


def test_blank_product_name_rejected(client):
    resp = client.post("/api/products", json={"name": "   "})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"


def test_restock_merges_into_one_row(client):
    product_id = create_product(client)
    first = restock(client, product_id, 5)
    assert first.status_code == 201
    second = restock(client, product_id, 7)
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]

    rows = client.get("/api/inventory").json()
    assert len(rows) == 1
    assert rows[0]["quantity"] == 12
    assert rows[0]["name"] == "Widget"


def test_restock_quantity_floor_is_one(client):
    product_id = create_product(client)
    assert restock(client, product_id, 0).status_code == 201
    assert inventory_by_product(client)[product_id]["quantity"] == 1


def test_restock_unknown_product(client):
    resp = restock(client, "nope", 3)
    assert resp.status_code == 404
    assert "nope" in resp.json()["error"]


def test_bulk_update_success(client):
    product_id = create_product(client)
    restock(client, product_id, 10)
    resp = client.put("/api/inventory/bulk", json={"updates": [{"productId": product_id, "quantity": -5}]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert inventory_by_product(client)[product_id]["quantity"] == 5


def test_bulk_update_insufficient_names_product(client):
    ok_id = create_product(client, "ok")
    short_id = create_product(client, "short")
    restock(client, ok_id, 10)
    restock(client, short_id, 3)

    resp = client.put("/api/inventory/bulk", json={"updates": [
        {"productId": ok_id, "quantity": -1},
        {"productId": short_id, "quantity": -5},
    ]})
    assert resp.status_code == 400
    body = resp.json()
    assert short_id in body["error"]
    assert body["details"]["shortfall"] == 2

    rows = inventory_by_product(client)
    assert rows[ok_id]["quantity"] == 10
    assert rows[short_id]["quantity"] == 3


def test_bulk_update_missing_inventory_row(client):
    product_id = create_product(client)
    resp = client.put("/api/inventory/bulk", json={"updates": [{"productId": product_id, "quantity": 1}]})
    assert resp.status_code == 404
    assert set(resp.json()) == {"error", "details"}


def test_bulk_update_requires_updates(client):
    resp = client.put("/api/inventory/bulk", json={"updates": []})
    assert resp.status_code == 400


def test_set_quantity_validation(client):
    product_id = create_product(client)
    item_id = restock(client, product_id, 4).json()["id"]

    for bad in (0, -1, 2.5, "3"):
        assert client.put(f"/api/inventory/{item_id}", json={"quantity": bad}).status_code == 400

    resp = client.put(f"/api/inventory/{item_id}", json={"quantity": 20})
    assert resp.status_code == 200
    assert inventory_by_product(client)[product_id]["quantity"] == 20
    assert client.put("/api/inventory/missing", json={"quantity": 2}).status_code == 404


def test_delete_inventory_item(client):
    product_id = create_product(client)
    item_id = restock(client, product_id, 4).json()["id"]
    assert client.delete(f"/api/inventory/{item_id}").status_code == 204
    assert client.get("/api/inventory").json() == []
    assert client.delete(f"/api/inventory/{item_id}").status_code == 404


def test_deleting_product_removes_inventory_but_keeps_order_lines(client):
    product_id = create_product(client, "Gone")
    restock(client, product_id, 4)
    order_id = client.post("/api/orders", json={
        "name": "Acme", "address": "1 Dock Road",
        "products": [{"productId": product_id, "quantity": 1}],
    }).json()["id"]

    client.delete(f"/api/products/{product_id}")
    assert client.get("/api/inventory").json() == []

    order = client.get(f"/api/orders/{order_id}").json()
    assert order["products"] == [{"productId": product_id, "name": None, "quantity": 1}]


def test_order_create_list_and_delete(client):
    p1 = create_product(client, "P1")
    p2 = create_product(client, "P2")
    resp = client.post("/api/orders", json={
        "name": "Acme", "address": "1 Dock Road", "note": "fragile",
        "products": [{"productId": p1, "quantity": 2}, {"productId": p2, "quantity": 3}],
    })
    assert resp.status_code == 201
    order_id = resp.json()["id"]

    orders = client.get("/api/orders").json()
    assert len(orders) == 1
    assert orders[0]["status"] == "pending"
    assert orders[0]["products"] == [
        {"productId": p1, "name": "P1", "quantity": 2},
        {"productId": p2, "name": "P2", "quantity": 3},
    ]

    assert client.delete(f"/api/orders/{order_id}").status_code == 204
    assert client.get("/api/orders").json() == []
    assert client.get(f"/api/orders/{order_id}").status_code == 404


def test_order_requires_positive_line_quantities(client):
    p1 = create_product(client)
    resp = client.post("/api/orders", json={
        "name": "Acme", "address": "1 Dock Road",
        "products": [{"productId": p1, "quantity": 0}],
    })
    assert resp.status_code == 400
    resp = client.post("/api/orders", json={"name": "Acme", "address": "1 Dock Road", "products": []})
    assert resp.status_code == 400


def test_ship_order_endpoint(client):
    p1 = create_product(client, "P1")
    p2 = create_product(client, "P2")
    restock(client, p1, 5)
    restock(client, p2, 1)
    order_id = client.post("/api/orders", json={
        "name": "Acme", "address": "1 Dock Road",
        "products": [{"productId": p1, "quantity": 2}, {"productId": p2, "quantity": 3}],
    }).json()["id"]

    resp = client.post(f"/api/orders/{order_id}/ship")
    assert resp.status_code == 400
    assert p2 in resp.json()["error"]
    assert inventory_by_product(client)[p1]["quantity"] == 5

    restock(client, p2, 2)
    assert client.post(f"/api/orders/{order_id}/ship").json() == {"success": True}
    rows = inventory_by_product(client)
    assert rows[p1]["quantity"] == 3
    assert rows[p2]["quantity"] == 0

    assert client.post("/api/orders/missing/ship").status_code == 404


def test_oversized_delta_rejected_as_bad_request(client):
    product_id = create_product(client)
    restock(client, product_id, 10)
    resp = client.put("/api/inventory/bulk", json={"updates": [{"productId": product_id, "quantity": 10**20}]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"
    assert inventory_by_product(client)[product_id]["quantity"] == 10


def test_oversized_absolute_quantity_rejected(client):
    product_id = create_product(client)
    item_id = restock(client, product_id, 4).json()["id"]
    assert client.put(f"/api/inventory/{item_id}", json={"quantity": 2**31}).status_code == 400


def test_long_image_path_rejected(client):
    resp = client.post("/api/products", json={"name": "Widget", "image": "x" * 501})
    assert resp.status_code == 400


def test_storage_failure_answers_json(client, stock, monkeypatch):
    product_id = stock("Kept", 4)

    def broken_commit(self):
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    for method, path in (
        ("POST", "/api/products"),
        ("DELETE", f"/api/products/{product_id}"),
    ):
        kwargs = {"json": {"name": "Widget"}} if method == "POST" else {}
        resp = client.request(method, path, **kwargs)
        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("application/json")
        assert set(resp.json()) == {"error", "details"}
        assert "connection lost" not in resp.text
    monkeypatch.undo()

    assert client.get(f"/api/products/{product_id}").status_code == 200
    assert [p["id"] for p in client.get("/api/products").json()] == [product_id]


def test_order_delete_storage_failure_answers_json(client, stock, monkeypatch):
    product_id = stock("P1", 4)
    order_id = client.post("/api/orders", json={
        "name": "Acme", "address": "1 Dock Road",
        "products": [{"productId": product_id, "quantity": 1}],
    }).json()["id"]

    def broken_commit(self):
        raise OperationalError("COMMIT", {}, Exception("connection lost"))

    monkeypatch.setattr(Session, "commit", broken_commit)
    resp = client.delete(f"/api/orders/{order_id}")
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to delete order"
    monkeypatch.undo()

    assert client.get(f"/api/orders/{order_id}").status_code == 200
