"""
Online order tests.

Verifies:
- Orders start pending with a sequential ORD-nnn number and reserve no stock
- Stock is deducted exactly once, the first time an order is delivered
- Cancelling has no stock effect
- A delivery that exceeds stock is rejected and leaves the order unchanged
"""

import pytest

from boutique_pos.extensions import db
from boutique_pos.models import Activity


def _order_body(product, quantity=2, **overrides):
    body = {
        "customer_name": "Mariam",
        "phone": "+971500000000",
        "emirate": "Dubai",
        "address": "Villa 12, Jumeirah",
        "payment_method": "cod",
        "items": [
            {"product_id": product.id, "color_name": "Black", "size_label": "M", "quantity": quantity},
        ],
    }
    body.update(overrides)
    return body


@pytest.fixture
def create_order(client, headers):
    def _create(product, **kwargs):
        resp = client.post("/api/orders", json=_order_body(product, **kwargs), headers=headers("online"))
        assert resp.status_code == 201, resp.json
        return resp.json["order"]

    return _create


class TestCreateOrder:
    def test_order_starts_pending_without_touching_stock(self, product, create_order, stock):
        order = create_order(product)

        assert order["order_number"] == "ORD-001"
        assert order["status"] == "pending"
        assert order["inventory_deducted"] is False
        # online price
        assert order["total_amount_cents"] == 24000
        assert stock(product.id, "Black", "M") == 5

    def test_order_numbers_increment(self, product, create_order):
        assert create_order(product)["order_number"] == "ORD-001"
        assert create_order(product)["order_number"] == "ORD-002"

    def test_required_customer_fields(self, client, product, headers):
        body = _order_body(product)
        del body["phone"]
        del body["address"]
        resp = client.post("/api/orders", json=body, headers=headers())
        assert resp.status_code == 400
        fields = {d["field"] for d in resp.json["details"]}
        assert {"phone", "address"} <= fields

    def test_payment_method_must_be_cod_or_bank(self, client, product, headers):
        resp = client.post("/api/orders", json=_order_body(product, payment_method="cash"), headers=headers())
        assert resp.status_code == 400

    def test_order_is_logged(self, product, create_order):
        create_order(product)
        entry = db.session.query(Activity).filter_by(type="order_created").one()
        assert entry.context == "online"
        assert entry.metadata_json["order_number"] == "ORD-001"


class TestOrderStatus:
    def test_delivery_deducts_once(self, client, product, create_order, stock, headers):
        order = create_order(product)

        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"}, headers=headers())
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "delivered"
        assert resp.json["order"]["inventory_deducted"] is True
        assert resp.json["order"]["delivered_at"] is not None
        assert stock(product.id, "Black", "M") == 3

        # Back and forth: stock must not move again
        client.patch(f"/api/orders/{order['id']}/status", json={"status": "out_for_delivery"})
        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"})
        assert resp.status_code == 200
        assert stock(product.id, "Black", "M") == 3

    def test_put_is_accepted(self, client, product, create_order):
        order = create_order(product)
        resp = client.put(
            f"/api/orders/{order['id']}/status",
            json={"status": "out_for_delivery", "tracking_number": "TRK-1"},
        )
        assert resp.status_code == 200
        assert resp.json["order"]["tracking_number"] == "TRK-1"

    def test_cancel_has_no_stock_effect(self, client, product, create_order, stock):
        order = create_order(product)
        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "cancelled"})
        assert resp.status_code == 200
        assert stock(product.id, "Black", "M") == 5

    def test_cancelled_order_can_be_reopened(self, client, product, create_order):
        order = create_order(product)
        client.patch(f"/api/orders/{order['id']}/status", json={"status": "cancelled"})
        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "pending"})
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "pending"

    def test_delivery_with_insufficient_stock(self, client, product, create_order, stock):
        order = create_order(product, quantity=9)

        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"})
        assert resp.status_code == 409
        assert resp.json["details"]["requested_quantity"] == 9

        detail = client.get(f"/api/orders/{order['id']}").json["order"]
        assert detail["status"] == "pending"
        assert detail["inventory_deducted"] is False
        assert stock(product.id, "Black", "M") == 5

    def test_unknown_status(self, client, product, create_order):
        order = create_order(product)
        resp = client.patch(f"/api/orders/{order['id']}/status", json={"status": "lost"})
        assert resp.status_code == 400

    def test_unknown_order(self, client, employee):
        resp = client.patch("/api/orders/9999/status", json={"status": "delivered"})
        assert resp.status_code == 404

    def test_status_change_is_logged(self, client, product, create_order, headers):
        order = create_order(product)
        client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"}, headers=headers())

        entry = db.session.query(Activity).filter_by(type="status_updated").one()
        assert entry.employee_name == "Heba"
        assert entry.metadata_json["previous_status"] == "pending"
        assert entry.metadata_json["new_status"] == "delivered"


class TestListOrders:
    def test_filter_by_status(self, client, product, create_order):
        first = create_order(product)
        create_order(product)
        client.patch(f"/api/orders/{first['id']}/status", json={"status": "cancelled"})

        resp = client.get("/api/orders?status=pending")
        assert resp.json["count"] == 1
        assert client.get("/api/orders").json["count"] == 2
        assert client.get("/api/orders?status=nope").status_code == 400
