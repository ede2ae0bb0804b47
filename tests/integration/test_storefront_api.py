"""Integration tests for the storefront API via TestClient."""

import pytest
import structlog
from fastapi.testclient import TestClient
from storefront.api import create_app, routes
from storefront.domain import storefront
from storefront.utils.logging import add_context, clear_context

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


@pytest.fixture()
def client():
    return TestClient(create_app(storefront))


def _add_product(client, name="Apple", price="2.50", stock_quantity=10):
    response = client.post(
        "/products",
        json={"name": name, "price": price, "stock_quantity": stock_quantity},
        headers=ADMIN,
    )
    assert response.status_code == 201
    return response.json()["product_id"]


def _add_discount(client, **fields):
    payload = {"code": "SAVE10", "discount_type": "PERCENTAGE", "value": "10"}
    payload.update(fields)
    response = client.post("/discounts", json=payload, headers=ADMIN)
    assert response.status_code == 201
    return response.json()["discount_id"]


def _place_order(client, product_id, quantity=1, headers=ALICE, **fields):
    return client.post(
        "/orders",
        json={"items": [{"product_id": product_id, "quantity": quantity}], **fields},
        headers=headers,
    )


class TestIdentity:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_missing_user_header(self, client):
        assert client.get("/cart").status_code == 401

    def test_customer_cannot_manage_catalogue(self, client):
        response = client.post("/products", json={"name": "Apple", "price": "1.00"}, headers=ALICE)
        assert response.status_code == 403

    def test_unknown_role(self, client):
        assert client.get("/cart", headers={"X-User-Id": "x", "X-User-Role": "root"}).status_code == 403

    def test_request_id_is_returned(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 32

    def test_forwarded_request_id_is_kept(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_handlers_log_with_request_and_caller(self, client, monkeypatch):
        seen = {}
        real_load_product = routes.load_product

        def recording_load_product(product_id):
            seen.update(structlog.contextvars.get_contextvars())
            return real_load_product(product_id)

        monkeypatch.setattr(routes, "load_product", recording_load_product)
        product_id = _add_product(client)

        client.get(f"/products/{product_id}", headers={**ALICE, "X-Request-ID": "req-7"})

        assert seen["request_id"] == "req-7"
        assert seen["user_id"] == "alice"
        assert seen["path"] == f"/products/{product_id}"
        assert structlog.contextvars.get_contextvars().get("request_id") != "req-7"

    def test_log_context_can_be_cleared(self):
        add_context(job="nightly")
        assert structlog.contextvars.get_contextvars()["job"] == "nightly"
        clear_context()
        assert "job" not in structlog.contextvars.get_contextvars()


class TestProductApi:
    def test_add_and_get(self, client):
        product_id = _add_product(client, price="1.25", stock_quantity=7)
        response = client.get(f"/products/{product_id}", headers=ALICE)
        assert response.status_code == 200
        data = response.json()
        assert data["price"] == "1.25"
        assert data["stock_quantity"] == 7
        assert data["is_active"] is True

    def test_restock_and_reprice(self, client):
        product_id = _add_product(client, stock_quantity=1)
        assert client.put(f"/products/{product_id}/stock", json={"quantity": 4}, headers=ADMIN).status_code == 200
        assert client.put(f"/products/{product_id}/price", json={"price": "3.00"}, headers=ADMIN).status_code == 200
        data = client.get(f"/products/{product_id}", headers=ALICE).json()
        assert data["stock_quantity"] == 5
        assert data["price"] == "3.00"

    def test_unknown_product(self, client):
        response = client.get("/products/missing", headers=ALICE)
        assert response.status_code == 404
        assert response.json()["error"] == "product_not_found"

    def test_invalid_body(self, client):
        response = client.post("/products", json={"name": "", "price": "-1"}, headers=ADMIN)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


class TestDiscountApi:
    def test_validate_valid_code(self, client):
        _add_discount(client, max_discount_amount="5")
        response = client.post("/discounts/validate", json={"code": "save10", "order_amount": "80.00"}, headers=ALICE)
        data = response.json()
        assert response.status_code == 200
        assert data["valid"] is True
        assert data["calculated_discount_amount"] == "5.00"
        assert data["final_amount"] == "75.00"

    def test_validate_rejection_is_not_an_error(self, client):
        _add_discount(client, min_order_amount="50")
        response = client.post("/discounts/validate", json={"code": "SAVE10", "order_amount": "20.00"}, headers=ALICE)
        data = response.json()
        assert response.status_code == 200
        assert data["valid"] is False
        assert data["error"] == "discount_minimum_not_met"

    def test_duplicate_code(self, client):
        _add_discount(client)
        response = client.post(
            "/discounts",
            json={"code": "save10", "discount_type": "PERCENTAGE", "value": "5"},
            headers=ADMIN,
        )
        assert response.status_code == 409
        assert response.json()["error"] == "duplicate_discount_code"

    def test_deactivate(self, client):
        _add_discount(client)
        assert client.put("/discounts/SAVE10/deactivate", headers=ADMIN).status_code == 200
        response = client.post("/discounts/validate", json={"code": "SAVE10", "order_amount": "20.00"}, headers=ALICE)
        assert response.json()["error"] == "discount_not_found"

    def test_active_codes_exclude_inactive_and_exhausted(self, client):
        _add_discount(client)
        _add_discount(client, code="GONE")
        _add_discount(client, code="ONCE", usage_limit=1)
        client.put("/discounts/GONE/deactivate", headers=ADMIN)
        apple = _add_product(client)
        _place_order(client, apple, discount_code="ONCE")

        response = client.get("/discounts/active", headers=ALICE)

        assert response.status_code == 200
        assert [d["code"] for d in response.json()] == ["SAVE10"]

    def test_get_by_code(self, client):
        _add_discount(client, max_discount_amount="5", usage_limit=10)
        response = client.get("/discounts/code/save10", headers=ALICE)
        data = response.json()
        assert response.status_code == 200
        assert data["code"] == "SAVE10"
        assert data["discount_type"] == "PERCENTAGE"
        assert data["max_discount_amount"] == "5.00"
        assert data["min_order_amount"] == "0.00"
        assert data["remaining_usage"] == 10

    def test_inactive_code_is_hidden_from_customers(self, client):
        _add_discount(client, is_active=False)
        assert client.get("/discounts/code/SAVE10", headers=ALICE).status_code == 404
        assert client.get("/discounts/code/SAVE10", headers=ADMIN).json()["is_active"] is False

    def test_usages_and_stats(self, client):
        apple = _add_product(client, price="10.00")
        _add_discount(client, usage_limit=5)
        _add_discount(client, code="FIVE", discount_type="FIXED_AMOUNT", value="5")
        first = _place_order(client, apple, discount_code="SAVE10").json()["order_id"]
        second = _place_order(client, apple, quantity=2, headers=BOB, discount_code="SAVE10").json()["order_id"]
        third = _place_order(client, apple, discount_code="FIVE").json()["order_id"]

        usages = client.get("/discounts/SAVE10/usages", headers=ADMIN).json()
        assert [(u["user_id"], u["order_id"], u["discount_amount"]) for u in usages] == [
            ("bob", second, "2.00"),
            ("alice", first, "1.00"),
        ]

        stats = client.get("/discounts/SAVE10/stats", headers=ADMIN).json()
        assert stats["total_usages"] == 2
        assert stats["total_discount_amount"] == "3.00"
        assert stats["usage_count"] == 2
        assert stats["remaining_usage"] == 3

        mine = client.get("/discounts/user/alice/usages", headers=ADMIN).json()
        assert sorted((u["code"], u["order_id"]) for u in mine) == sorted([("SAVE10", first), ("FIVE", third)])

    def test_usage_reports_are_admin_only(self, client):
        _add_discount(client)
        assert client.get("/discounts/SAVE10/usages", headers=ALICE).status_code == 403
        assert client.get("/discounts/SAVE10/stats", headers=ALICE).status_code == 403
        assert client.get("/discounts/user/alice/usages", headers=ALICE).status_code == 403
        assert client.get("/discounts/NOPE/stats", headers=ADMIN).status_code == 404


class TestCartApi:
    def test_cart_lifecycle(self, client):
        apple = _add_product(client)
        pear = _add_product(client, name="Pear")

        assert client.get("/cart", headers=ALICE).json()["is_empty"] is True

        client.post("/cart/items", json={"product_id": apple, "quantity": 2}, headers=ALICE)
        data = client.post("/cart/items", json={"product_id": pear, "quantity": 1}, headers=ALICE).json()
        assert data["item_count"] == 2
        assert data["total_items"] == 3

        data = client.put(f"/cart/items/{apple}", json={"quantity": 5}, headers=ALICE).json()
        assert data["total_items"] == 6

        data = client.delete(f"/cart/items/{pear}", headers=ALICE).json()
        assert data["item_count"] == 1

        assert client.delete("/cart", headers=ALICE).json()["is_empty"] is True

    def test_adding_beyond_stock(self, client):
        apple = _add_product(client, stock_quantity=1)
        response = client.post("/cart/items", json={"product_id": apple, "quantity": 2}, headers=ALICE)
        assert response.status_code == 409
        assert response.json()["details"]["available"] == 1

    def test_cart_total_matches_checkout_subtotal(self, client):
        apple = _add_product(client, price="0.35")
        pear = _add_product(client, name="Pear", price="1.10")
        client.post("/cart/items", json={"product_id": apple, "quantity": 3}, headers=ALICE)
        client.post("/cart/items", json={"product_id": pear, "quantity": 2}, headers=ALICE)

        total = client.get("/cart/total", headers=ALICE).json()
        assert total["subtotal"] == "3.25"
        assert total["total_items"] == 5
        assert client.get("/cart", headers=ALICE).json()["subtotal"] == "3.25"

        order = client.post("/orders/checkout", json={}, headers=ALICE).json()
        assert order["subtotal"] == total["subtotal"]

    def test_empty_cart_total(self, client):
        total = client.get("/cart/total", headers=ALICE).json()
        assert total == {"user_id": "alice", "total_items": 0, "subtotal": "0.00"}

    def test_cart_with_deactivated_product(self, client):
        apple = _add_product(client)
        client.post("/cart/items", json={"product_id": apple, "quantity": 1}, headers=ALICE)
        client.put(f"/products/{apple}/deactivate", headers=ADMIN)

        assert client.get("/cart", headers=ALICE).json()["subtotal"] is None
        response = client.get("/cart/total", headers=ALICE)
        assert response.status_code == 422
        assert response.json()["error"] == "product_inactive"


class TestOrderApi:
    def test_place_order(self, client):
        apple = _add_product(client, price="2.50")
        _add_discount(client)

        response = _place_order(client, apple, quantity=4, discount_code="SAVE10", customer_name="Alice")

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["subtotal"] == "10.00"
        assert data["discount_amount"] == "1.00"
        assert data["total_amount"] == "9.00"
        assert data["items"][0]["unit_price"] == "2.50"
        assert data["customer_name"] == "Alice"
        assert client.get(f"/products/{apple}", headers=ALICE).json()["stock_quantity"] == 6

    def test_checkout_from_cart(self, client):
        apple = _add_product(client, price="1.00")
        client.post("/cart/items", json={"product_id": apple, "quantity": 3}, headers=ALICE)

        response = client.post("/orders/checkout", json={"shipping_address": "1 Orchard Lane"}, headers=ALICE)

        assert response.status_code == 201
        assert response.json()["total_amount"] == "3.00"
        assert client.get("/cart", headers=ALICE).json()["is_empty"] is True

    def test_checkout_with_empty_cart(self, client):
        response = client.post("/orders/checkout", json={}, headers=ALICE)
        assert response.status_code == 400
        assert response.json()["error"] == "empty_cart"

    def test_insufficient_stock(self, client):
        apple = _add_product(client, stock_quantity=1)
        response = _place_order(client, apple, quantity=2)
        assert response.status_code == 409
        assert response.json()["error"] == "insufficient_stock"

    def test_orders_are_private(self, client):
        apple = _add_product(client)
        order_id = _place_order(client, apple).json()["order_id"]

        assert client.get(f"/orders/{order_id}", headers=ALICE).status_code == 200
        assert client.get(f"/orders/{order_id}", headers=ADMIN).status_code == 200
        assert client.get(f"/orders/{order_id}", headers=BOB).status_code == 404
        assert client.put(f"/orders/{order_id}/cancel", headers=BOB).status_code == 404
        assert [o["order_id"] for o in client.get("/orders", headers=ALICE).json()] == [order_id]
        assert client.get("/orders", headers=BOB).json() == []

    def test_status_changes_and_statistics(self, client):
        apple = _add_product(client, price="4.00")
        order_id = _place_order(client, apple).json()["order_id"]

        for status in ("CONFIRMED", "PROCESSING", "SHIPPED", "DELIVERED"):
            response = client.put(f"/orders/{order_id}/status", json={"status": status}, headers=ADMIN)
            assert response.status_code == 200
        assert response.json()["status"] == "DELIVERED"

        response = client.put(f"/orders/{order_id}/cancel", headers=ALICE)
        assert response.status_code == 409
        assert response.json()["details"]["from_status"] == "DELIVERED"

        stats = client.get("/orders/statistics", headers=ADMIN).json()
        assert stats["total_orders"] == 1
        assert stats["total_revenue"] == "4.00"
        assert stats["counts_by_status"]["DELIVERED"] == 1

    def test_customers_cannot_change_status(self, client):
        apple = _add_product(client)
        order_id = _place_order(client, apple).json()["order_id"]
        response = client.put(f"/orders/{order_id}/status", json={"status": "CONFIRMED"}, headers=ALICE)
        assert response.status_code == 403

    def test_cancel_restores_stock(self, client):
        apple = _add_product(client, stock_quantity=3)
        order_id = _place_order(client, apple, quantity=3).json()["order_id"]

        response = client.put(f"/orders/{order_id}/cancel", headers=ALICE)

        assert response.json()["status"] == "CANCELLED"
        assert client.get(f"/products/{apple}", headers=ALICE).json()["stock_quantity"] == 3

    def test_filter_orders_by_status(self, client):
        apple = _add_product(client)
        alice_order = _place_order(client, apple).json()["order_id"]
        bob_order = _place_order(client, apple, headers=BOB).json()["order_id"]
        client.put(f"/orders/{bob_order}/status", json={"status": "CONFIRMED"}, headers=ADMIN)

        pending = client.get("/orders", params={"status": "pending"}, headers=ADMIN).json()
        assert [o["order_id"] for o in pending] == [alice_order]
        confirmed = client.get("/orders", params={"status": "CONFIRMED"}, headers=ADMIN).json()
        assert [o["order_id"] for o in confirmed] == [bob_order]
        assert client.get("/orders", params={"status": "CONFIRMED"}, headers=ALICE).json() == []
        assert client.get("/orders", params={"status": "LOST"}, headers=ADMIN).status_code == 400

    def test_malformed_order_line(self, client):
        apple = _add_product(client)
        response = client.post("/orders", json={"items": [{"product_id": apple}]}, headers=ALICE)
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
