"""
Sales (boutique checkout) tests.

Verifies:
- A sale deducts every line from its variant and records the invoice
- Tax is applied to the subtotal only when requested
- A line that exceeds stock rejects the whole sale with no side effects
- Invoice numbers are sequential and never reused after a failed sale
"""

from boutique_pos.extensions import db
from boutique_pos.models import Sale, Activity


def _sale_body(product, **overrides):
    body = {
        "store_type": "boutique",
        "payment_method": "cash",
        "items": [
            {"product_id": product.id, "color_name": "Black", "size_label": "M", "quantity": 2},
        ],
    }
    body.update(overrides)
    return body


class TestCreateSale:
    def test_sale_deducts_stock_and_numbers_invoice(self, client, product, headers, stock):
        resp = client.post("/api/sales", json=_sale_body(product), headers=headers())
        assert resp.status_code == 201, resp.json

        sale = resp.json["sale"]
        assert sale["invoice_number"] == "7000001"
        assert sale["employee_name"] == "Heba"
        assert sale["subtotal_cents"] == 20000
        assert sale["tax_amount_cents"] == 0
        assert sale["total_amount_cents"] == 20000
        assert sale["items"][0]["unit_price_cents"] == 10000
        assert sale["items"][0]["product_code"] == product.product_code

        assert stock(product.id, "Black", "M") == 3

    def test_invoice_numbers_increment(self, client, product, headers):
        first = client.post("/api/sales", json=_sale_body(product), headers=headers())
        second = client.post("/api/sales", json=_sale_body(product), headers=headers())
        assert first.json["sale"]["invoice_number"] == "7000001"
        assert second.json["sale"]["invoice_number"] == "7000002"

    def test_tax_applied_on_subtotal(self, client, product, headers):
        body = _sale_body(product, tax_applied=True)
        body["items"][0]["unit_price_cents"] = 9999
        body["items"][0]["quantity"] = 1

        resp = client.post("/api/sales", json=body, headers=headers())
        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["subtotal_cents"] == 9999
        # 5% of 99.99 = 4.9995 -> 5.00
        assert sale["tax_amount_cents"] == 500
        assert sale["total_amount_cents"] == 10499

    def test_employee_id_in_body_without_header(self, client, product, employees):
        body = _sale_body(product, employee_id=employees["Hadeel"].id)
        resp = client.post("/api/sales", json=body)
        assert resp.status_code == 201
        assert resp.json["sale"]["employee_name"] == "Hadeel"

    def test_missing_employee_is_rejected(self, client, product):
        resp = client.post("/api/sales", json=_sale_body(product))
        assert resp.status_code == 400
        assert resp.json["details"][0]["field"] == "employee_id"

    def test_online_store_type_uses_online_price(self, client, product, headers):
        body = _sale_body(product)
        body.pop("store_type")
        resp = client.post("/api/sales", json=body, headers=headers("online"))
        assert resp.status_code == 201
        assert resp.json["sale"]["store_type"] == "online"
        assert resp.json["sale"]["items"][0]["unit_price_cents"] == 12000

    def test_color_and_size_aliases(self, client, product, headers, stock):
        body = _sale_body(product, items=[{"product_id": product.id, "color": "Navy", "size": "M", "quantity": 1}])
        resp = client.post("/api/sales", json=body, headers=headers())
        assert resp.status_code == 201
        assert stock(product.id, "Navy", "M") == 0

    def test_sale_is_logged(self, client, product, headers):
        client.post("/api/sales", json=_sale_body(product), headers=headers())

        entry = db.session.query(Activity).filter_by(type="sale_made").one()
        assert entry.employee_name == "Heba"
        assert entry.context == "boutique"
        assert entry.metadata_json["invoice_number"] == "7000001"
        assert entry.metadata_json["adjustments"][0]["quantity_delta"] == -2


class TestSaleRejections:
    def test_insufficient_stock_rolls_back_everything(self, client, product, headers, stock):
        body = _sale_body(product, items=[
            {"product_id": product.id, "color_name": "Black", "size_label": "M", "quantity": 1},
            {"product_id": product.id, "color_name": "Navy", "size_label": "M", "quantity": 3},
        ])
        resp = client.post("/api/sales", json=body, headers=headers())

        assert resp.status_code == 409
        assert resp.json["details"]["color_name"] == "Navy"
        assert resp.json["details"]["on_hand"] == 1
        assert stock(product.id, "Black", "M") == 5
        assert stock(product.id, "Navy", "M") == 1
        assert db.session.query(Sale).count() == 0
        assert db.session.query(Activity).filter_by(type="sale_made").count() == 0

    def test_failed_sale_does_not_consume_invoice_number(self, client, product, headers):
        bad = _sale_body(product, items=[
            {"product_id": product.id, "color_name": "Black", "size_label": "M", "quantity": 50},
        ])
        assert client.post("/api/sales", json=bad, headers=headers()).status_code == 409

        resp = client.post("/api/sales", json=_sale_body(product), headers=headers())
        assert resp.json["sale"]["invoice_number"] == "7000001"

    def test_unknown_variant_is_insufficient(self, client, product, headers):
        body = _sale_body(product, items=[
            {"product_id": product.id, "color_name": "Green", "size_label": "M", "quantity": 1},
        ])
        resp = client.post("/api/sales", json=body, headers=headers())
        assert resp.status_code == 409
        assert resp.json["details"]["on_hand"] == 0

    def test_unknown_product_returns_404(self, client, product, headers):
        body = _sale_body(product, items=[
            {"product_id": 9999, "color_name": "Black", "size_label": "M", "quantity": 1},
        ])
        resp = client.post("/api/sales", json=body, headers=headers())
        assert resp.status_code == 404

    def test_invalid_payload_reports_each_field(self, client, product, headers):
        body = {
            "payment_method": "bitcoin",
            "items": [{"product_id": product.id, "color_name": "Black", "quantity": 0}],
        }
        resp = client.post("/api/sales", json=body, headers=headers())
        assert resp.status_code == 400
        fields = {d["field"] for d in resp.json["details"]}
        assert "items[0].size_label" in fields
        assert "items[0].quantity" in fields

    def test_bad_payment_method(self, client, product, headers):
        resp = client.post("/api/sales", json=_sale_body(product, payment_method="bitcoin"), headers=headers())
        assert resp.status_code == 400
        assert resp.json["details"][0]["field"] == "payment_method"

    def test_empty_items(self, client, headers):
        resp = client.post("/api/sales", json={"items": []}, headers=headers())
        assert resp.status_code == 400

    def test_unknown_employee_header(self, client, product):
        resp = client.post("/api/sales", json=_sale_body(product), headers={"X-Employee-Id": "999"})
        assert resp.status_code == 404

    def test_oversell_allowed_clamps_at_zero(self, app, client, product, headers, stock):
        app.config["ALLOW_OVERSELL"] = True
        body = _sale_body(product, items=[
            {"product_id": product.id, "color_name": "Navy", "size_label": "M", "quantity": 3},
        ])
        resp = client.post("/api/sales", json=body, headers=headers())
        assert resp.status_code == 201
        assert stock(product.id, "Navy", "M") == 0


class TestListSales:
    def test_filter_by_store_type_alias(self, client, product, headers):
        client.post("/api/sales", json=_sale_body(product), headers=headers())
        client.post("/api/sales", json=_sale_body(product, store_type="online"), headers=headers())

        resp = client.get("/api/sales?storeType=online")
        assert resp.status_code == 200
        assert resp.json["count"] == 1
        assert resp.json["items"][0]["store_type"] == "online"

        assert client.get("/api/sales").json["count"] == 2

    def test_date_range_is_half_open(self, client, product, headers):
        client.post("/api/sales", json=_sale_body(product), headers=headers())

        resp = client.get("/api/sales?date_from=2000-01-01&date_to=2000-01-02")
        assert resp.json["count"] == 0

    def test_bad_date(self, client):
        resp = client.get("/api/sales?date_from=yesterday")
        assert resp.status_code == 400

    def test_get_sale(self, client, product, headers):
        sale_id = client.post("/api/sales", json=_sale_body(product), headers=headers()).json["sale"]["id"]
        resp = client.get(f"/api/sales/{sale_id}")
        assert resp.status_code == 200
        assert resp.json["sale"]["id"] == sale_id
        assert client.get("/api/sales/9999").status_code == 404
