"""Tests for the orders HTTP endpoints."""

import uuid
from decimal import Decimal

import pytest

from conftest import bearer_headers, identity_of

API = "/api/v1"


@pytest.fixture
def as_customer(caller, customer):
    caller["identity"] = identity_of(customer)
    return customer


@pytest.fixture
def as_admin(caller, admin):
    caller["identity"] = identity_of(admin)
    return admin


def post_order(client, product, **overrides):
    body = {"product_id": str(product.id), "quantity": 3, "address": "Main St 42"}
    body.update(overrides)
    return client.post(f"{API}/orders", json=body)


class TestCreateOrderEndpoint:
    def test_create_returns_id(self, client, as_customer, product):
        response = post_order(client, product)

        assert response.status_code == 201
        data = response.json()
        assert data["ok"] is True
        assert "id" in data
        assert "error" not in data

    def test_created_order_is_readable(self, client, as_customer, product):
        order_id = post_order(client, product).json()["id"]

        response = client.get(f"{API}/orders/{order_id}")

        assert response.status_code == 200
        row = response.json()
        assert row["status"] == "CREATED"
        assert row["quantity"] == 3
        assert row["address"] == "Main St 42"
        assert row["product_name"] == "P1"
        assert row["customer_name"] == "Carl Customer"
        assert Decimal(str(row["total"])) == Decimal("30.00")

    def test_anonymous(self, client, product):
        response = post_order(client, product)
        assert response.status_code == 401
        assert response.json()["ok"] is False

    def test_bad_quantity(self, client, as_customer, product):
        response = post_order(client, product, quantity=0)
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"

    def test_malformed_body_uses_envelope(self, client, as_customer, product):
        response = client.post(
            f"{API}/orders",
            json={"product_id": str(product.id), "quantity": "three", "address": "Main St 42"},
            headers=bearer_headers(as_customer),
        )
        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "error": "Invalid request.",
            "code": "invalid_argument",
        }

    def test_missing_quantity(self, client, as_customer, product):
        response = client.post(
            f"{API}/orders", json={"product_id": str(product.id), "address": "Main St 42"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_argument"

    def test_unknown_product(self, client, as_customer):
        response = client.post(
            f"{API}/orders",
            json={"product_id": str(uuid.uuid4()), "quantity": 1, "address": "Main St 42"},
        )
        assert response.status_code == 404


class TestStatusEndpoint:
    def test_non_admin_forbidden(self, client, caller, customer, admin, product):
        caller["identity"] = identity_of(customer)
        order_id = post_order(client, product).json()["id"]

        response = client.patch(f"{API}/orders/{order_id}/status", json={"status": "SHIPPED"})

        assert response.status_code == 403
        assert response.json()["ok"] is False
        assert response.json()["error"] == "Forbidden"
        assert client.get(f"{API}/orders/{order_id}").json()["status"] == "CREATED"

    def test_admin_changes_status(self, client, caller, customer, admin, product):
        caller["identity"] = identity_of(customer)
        order_id = post_order(client, product).json()["id"]

        caller["identity"] = identity_of(admin)
        response = client.patch(f"{API}/orders/{order_id}/status", json={"status": "DELIVERED"})

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert client.get(f"{API}/orders/{order_id}").json()["status"] == "DELIVERED"

    def test_invalid_status(self, client, as_admin, product):
        order_id = post_order(client, product).json()["id"]

        response = client.patch(f"{API}/orders/{order_id}/status", json={"status": "LOST"})

        assert response.status_code == 400
        assert response.json()["allowed"] == [
            "CREATED",
            "PROCESSING",
            "SHIPPED",
            "DELIVERED",
            "CANCELLED",
        ]

    def test_unknown_id(self, client, as_admin):
        response = client.patch(
            f"{API}/orders/{uuid.uuid4()}/status", json={"status": "SHIPPED"}
        )
        assert response.status_code == 404


class TestUpdateAndDeleteEndpoints:
    def test_update_details(self, client, as_customer, product):
        order_id = post_order(client, product).json()["id"]

        response = client.patch(
            f"{API}/orders/{order_id}", json={"quantity": 7, "address": "Second Ave 3"}
        )

        assert response.status_code == 200
        row = client.get(f"{API}/orders/{order_id}").json()
        assert row["quantity"] == 7
        assert row["address"] == "Second Ave 3"

    def test_delete_then_gone(self, client, as_customer, product):
        order_id = post_order(client, product).json()["id"]

        response = client.delete(f"{API}/orders/{order_id}")

        assert response.status_code == 200
        assert client.get(f"{API}/orders/{order_id}").status_code == 404

    def test_delete_other_users_order(self, client, caller, customer, other_customer, product):
        caller["identity"] = identity_of(customer)
        order_id = post_order(client, product).json()["id"]

        caller["identity"] = identity_of(other_customer)
        response = client.delete(f"{API}/orders/{order_id}")

        assert response.status_code == 403
        caller["identity"] = identity_of(customer)
        assert client.get(f"{API}/orders/{order_id}").status_code == 200

    def test_delete_undefined_id(self, client, as_customer):
        response = client.delete(f"{API}/orders/undefined")
        assert response.status_code == 404


class TestListOrdersEndpoint:
    def test_list_requires_identity(self, client):
        response = client.get(f"{API}/orders")
        assert response.status_code == 401
        assert response.json()["ok"] is False

    def test_list_invalid_status_filter(self, client, as_admin):
        response = client.get(f"{API}/orders", params={"status": "LOST"})
        assert response.status_code == 400

    def test_list_newest_first(self, client, as_customer, product):
        first = post_order(client, product).json()["id"]
        second = post_order(client, product).json()["id"]

        rows = client.get(f"{API}/orders").json()

        assert [r["id"] for r in rows] == [second, first]


class TestAnonymousBadInput:
    """Without an identity the answer is Unauthorized, whatever the body holds."""

    def assert_unauthorized(self, response):
        assert response.status_code == 401
        assert response.json() == {
            "ok": False,
            "error": "You are not signed in.",
            "code": "unauthorized",
        }

    def test_create_missing_quantity(self, client, product):
        response = client.post(
            f"{API}/orders", json={"product_id": str(product.id), "address": "Main St 42"}
        )
        self.assert_unauthorized(response)

    def test_create_wrong_types(self, client, product):
        response = post_order(client, product, quantity="three")
        self.assert_unauthorized(response)

    def test_create_unknown_field(self, client, product):
        response = post_order(client, product, discount=10)
        self.assert_unauthorized(response)

    def test_update_empty_body(self, client):
        self.assert_unauthorized(client.patch(f"{API}/orders/abc", json={}))

    def test_status_not_an_object(self, client):
        self.assert_unauthorized(client.patch(f"{API}/orders/abc/status", json=["SHIPPED"]))

    def test_product_missing_price(self, client):
        self.assert_unauthorized(client.post(f"{API}/products", json={"name": "X"}))

    def test_product_bad_price(self, client):
        self.assert_unauthorized(client.post(f"{API}/products", json={"name": "X", "price": "abc"}))
