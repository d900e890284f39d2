"""
Product catalog tests.

Verifies:
- Both inventory input shapes (nested colors, colors x sizes + map)
- Duplicate product codes are rejected
- Updates overwrite listed variants only
- Image uploads are stored and served
- Products with sales history cannot be deleted
"""

import io
import json

from boutique_pos.extensions import db
from boutique_pos.models import Activity, Product


class TestCreateProduct:
    def test_create_with_inventory_map(self, client, employee, headers):
        resp = client.post(
            "/api/products",
            json={
                "product_code": "KFT-100",
                "name": "Linen Kaftan",
                "brand": "Heba Atelier",
                "store_price_cents": 25000,
                "online_price_cents": 27500,
                "colors": ["Sand", "White"],
                "sizes": ["S", "M"],
                "inventory": {"Sand": {"S": 4, "M": 1}},
            },
            headers=headers("boutique"),
        )
        assert resp.status_code == 201, resp.json
        product = resp.json["product"]
        assert product["inventory"] == {"Sand": {"S": 4, "M": 1}, "White": {"S": 0, "M": 0}}
        assert product["total_stock"] == 5

        entry = db.session.query(Activity).filter_by(type="product_added").one()
        assert entry.employee_name == "Heba"
        assert entry.context == "boutique"

    def test_create_with_nested_colors(self, client, employee):
        resp = client.post(
            "/api/products",
            json={
                "product_code": "ABY-200",
                "colors": [
                    {"color_name": "Black", "color_swatch_url": "/uploads/black.png",
                     "sizes": [{"size_label": "52", "quantity": 3}]},
                ],
            },
        )
        assert resp.status_code == 201
        colors = resp.json["product"]["colors"]
        assert colors[0]["color_swatch_url"] == "/uploads/black.png"
        assert colors[0]["sizes"][0]["quantity"] == 3

    def test_duplicate_code_conflicts(self, client, product):
        resp = client.post("/api/products", json={"product_code": product.product_code})
        assert resp.status_code == 409

    def test_product_code_required(self, client, employee):
        resp = client.post("/api/products", json={"name": "Nameless"})
        assert resp.status_code == 400
        assert resp.json["details"][0]["field"] == "product_code"

    def test_negative_price_rejected(self, client, employee):
        resp = client.post("/api/products", json={"product_code": "X-1", "store_price_cents": -1})
        assert resp.status_code == 400

    def test_negative_quantity_rejected(self, client, employee):
        resp = client.post("/api/products", json={"product_code": "X-2", "inventory": {"Red": {"M": -3}}})
        assert resp.status_code == 400
        assert db.session.query(Product).count() == 0

    def test_unknown_field_rejected(self, client, employee):
        resp = client.post("/api/products", json={"product_code": "X-3", "discount": 10})
        assert resp.status_code == 400
        assert resp.json["details"][0]["field"] == "discount"

    def test_multipart_with_image(self, app, client, employee):
        data = {
            "product_code": "JLB-7",
            "name": "Jalabiya",
            "store_price_cents": "18000",
            "online_price_cents": "",
            "inventory": json.dumps({"Rose": {"M": 2}}),
            "image": (io.BytesIO(b"\x89PNG\r\n\x1a\nfake"), "front.png", "image/png"),
        }
        resp = client.post("/api/products", data=data, content_type="multipart/form-data")
        assert resp.status_code == 201, resp.json

        product = resp.json["product"]
        assert product["store_price_cents"] == 18000
        assert product["online_price_cents"] is None
        assert product["main_image_url"].startswith("/uploads/")
        assert product["main_image_url"].endswith(".png")

        served = client.get(product["main_image_url"])
        assert served.status_code == 200
        assert served.data.startswith(b"\x89PNG")

    def test_multipart_rejects_non_image(self, client, employee):
        data = {
            "product_code": "JLB-8",
            "image": (io.BytesIO(b"#!/bin/sh"), "run.sh", "text/x-sh"),
        }
        resp = client.post("/api/products", data=data, content_type="multipart/form-data")
        assert resp.status_code == 400
        assert db.session.query(Product).count() == 0

    def test_replaced_and_deleted_images_are_removed(self, client, employee):
        created = client.post(
            "/api/products",
            data={"product_code": "JLB-9", "image": (io.BytesIO(b"\x89PNG\r\n\x1a\nold"), "old.png", "image/png")},
            content_type="multipart/form-data",
        ).json["product"]
        old_url = created["main_image_url"]

        resp = client.put(
            f"/api/products/{created['id']}",
            data={"image": (io.BytesIO(b"\x89PNG\r\n\x1a\nnew"), "new.png", "image/png")},
            content_type="multipart/form-data",
        )
        assert resp.status_code == 200, resp.json
        new_url = resp.json["product"]["main_image_url"]
        assert new_url != old_url
        assert client.get(old_url).status_code == 404
        assert client.get(new_url).status_code == 200

        # A text-only update keeps the current image
        assert client.put(f"/api/products/{created['id']}", json={"name": "Jalabiya"}).status_code == 200
        assert client.get(new_url).status_code == 200

        assert client.delete(f"/api/products/{created['id']}").status_code == 200
        assert client.get(new_url).status_code == 404


class TestReadProducts:
    def test_lookup_by_code_with_channel_price(self, client, product, headers):
        resp = client.get(f"/api/products/code/{product.product_code}", headers=headers("online"))
        assert resp.status_code == 200
        assert resp.json["product"]["price_cents"] == 12000
        assert resp.json["product"]["inventory"]["Black"]["M"] == 5

        assert client.get("/api/products/code/NOPE").status_code == 404

    def test_search(self, client, make_product):
        make_product("ABY-1", name="Crepe Abaya")
        make_product("KFT-1", name="Kaftan")

        resp = client.get("/api/products?search=abaya")
        assert resp.json["count"] == 1
        assert resp.json["items"][0]["product_code"] == "ABY-1"

    def test_low_stock(self, client, product):
        resp = client.get("/api/products/low-stock")
        assert resp.json["threshold"] == 5
        labels = {(i["color_name"], i["size_label"]) for i in resp.json["items"]}
        # M=5 is not below the threshold
        assert labels == {("Black", "S"), ("Navy", "M")}


class TestUpdateAndDelete:
    def test_update_overwrites_listed_variants_only(self, client, product, stock):
        resp = client.put(
            f"/api/products/{product.id}",
            json={"online_price_cents": 13000, "inventory": {"Black": {"M": 9}, "Beige": {"L": 2}}},
        )
        assert resp.status_code == 200, resp.json
        assert resp.json["product"]["online_price_cents"] == 13000
        assert stock(product.id, "Black", "M") == 9
        assert stock(product.id, "Black", "S") == 2
        assert stock(product.id, "Beige", "L") == 2

    def test_update_code_conflict(self, client, make_product):
        make_product("A-1")
        second = make_product("A-2")
        resp = client.patch(f"/api/products/{second.id}", json={"product_code": "A-1"})
        assert resp.status_code == 409

    def test_update_unknown(self, client, employee):
        assert client.put("/api/products/999", json={"name": "x"}).status_code == 404

    def test_delete(self, client, product):
        product_id = product.id
        resp = client.delete(f"/api/products/{product_id}")
        assert resp.status_code == 200
        assert client.get(f"/api/products/{product_id}").status_code == 404

    def test_delete_sold_product_conflicts(self, client, product, headers):
        client.post(
            "/api/sales",
            json={"items": [{"product_id": product.id, "color_name": "Black", "size_label": "M", "quantity": 1}]},
            headers=headers(),
        )
        resp = client.delete(f"/api/products/{product.id}")
        assert resp.status_code == 409
