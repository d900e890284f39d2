"""
Reporting and dashboard tests.

Figures are recomputed from sales and orders; these tests build a small
day of trading and check the aggregates.
"""

import pytest

from boutique_pos.time_utils import utcnow


@pytest.fixture
def trading_day(client, make_product, headers):
    """
    Two boutique sales, one online sale, one delivered order and one
    cancelled order, across two products.
    """
    abaya = make_product("ABY-1", inventory={"Black": {"M": 10}}, store_price_cents=10000, online_price_cents=11000)
    kaftan = make_product("KFT-1", inventory={"Sand": {"L": 10}}, store_price_cents=5000, online_price_cents=6000)

    def sale(product, color, size, qty, store_type="boutique", tax=False):
        resp = client.post(
            "/api/sales",
            json={
                "store_type": store_type,
                "tax_applied": tax,
                "items": [{"product_id": product.id, "color_name": color, "size_label": size, "quantity": qty}],
            },
            headers=headers(),
        )
        assert resp.status_code == 201, resp.json
        return resp.json["sale"]

    def order(product, color, size, qty):
        resp = client.post(
            "/api/orders",
            json={
                "customer_name": "Aisha",
                "phone": "0501234567",
                "emirate": "Dubai",
                "address": "Marina",
                "payment_method": "cod",
                "items": [{"product_id": product.id, "color_name": color, "size_label": size, "quantity": qty}],
            },
            headers=headers(),
        )
        assert resp.status_code == 201, resp.json
        return resp.json["order"]

    sale(abaya, "Black", "M", 2, tax=True)      # 20000 + 1000 tax
    sale(kaftan, "Sand", "L", 1)                # 5000
    sale(kaftan, "Sand", "L", 3, "online")      # 18000
    delivered = order(abaya, "Black", "M", 1)   # 11000
    cancelled = order(kaftan, "Sand", "L", 4)   # 24000, excluded
    client.patch(f"/api/orders/{delivered['id']}/status", json={"status": "delivered"})
    client.patch(f"/api/orders/{cancelled['id']}/status", json={"status": "cancelled"})

    return {"abaya": abaya, "kaftan": kaftan}


class TestPeriodReports:
    def test_daily_boutique(self, client, trading_day):
        today = utcnow().date().isoformat()
        resp = client.get(f"/api/reports/boutique/daily/{today}")
        assert resp.status_code == 200

        report = resp.json
        assert report["period"] == "daily"
        assert report["transaction_count"] == 2
        assert report["items_sold"] == 3
        assert report["total_revenue_cents"] == 26000
        assert report["tax_total_cents"] == 1000
        assert report["average_order_value_cents"] == 13000
        assert report["by_day"][0]["date"] == today

    def test_daily_online_includes_orders_not_cancelled(self, client, trading_day):
        today = utcnow().date().isoformat()
        report = client.get(f"/api/reports/online/daily/{today}").json

        assert report["transaction_count"] == 2
        assert report["items_sold"] == 4
        assert report["total_revenue_cents"] == 29000

    def test_approved_sale_refund_nets_out(self, client, trading_day, headers):
        today = utcnow().date().isoformat()
        sales = client.get("/api/sales?store_type=boutique").json["items"]
        abaya_sale = next(s for s in sales if s["items"][0]["product_id"] == trading_day["abaya"].id)

        pending = client.post(
            "/api/returns",
            json={
                "type": "refund",
                "original_sale_id": abaya_sale["id"],
                "items": [{"item_id": abaya_sale["items"][0]["id"], "quantity": 1}],
            },
            headers=headers(),
        ).json["return"]
        report = client.get(f"/api/reports/boutique/daily/{today}").json
        assert report["refunds_cents"] == 0

        client.patch(f"/api/returns/{pending['id']}/approve")
        report = client.get(f"/api/reports/boutique/daily/{today}").json
        assert report["total_revenue_cents"] == 26000
        assert report["refunds_cents"] == 10000
        assert report["net_revenue_cents"] == 16000

        online = client.get(f"/api/reports/online/daily/{today}").json
        assert online["refunds_cents"] == 0

    def test_monthly_contains_today(self, client, trading_day):
        today = utcnow().date().isoformat()
        report = client.get(f"/api/reports/boutique/monthly/{today}").json
        assert report["transaction_count"] == 2

    def test_weekly_starting_tomorrow_is_empty(self, client, trading_day):
        from datetime import timedelta

        tomorrow = (utcnow().date() + timedelta(days=1)).isoformat()
        report = client.get(f"/api/reports/boutique/weekly/{tomorrow}").json
        assert report["transaction_count"] == 0
        assert report["average_order_value_cents"] == 0
        assert report["top_products"] == []

    def test_bad_inputs(self, client, db_session):
        assert client.get("/api/reports/boutique/yearly/2026-01-01").status_code == 400
        assert client.get("/api/reports/wholesale/daily/2026-01-01").status_code == 400
        assert client.get("/api/reports/boutique/daily/01-01-2026").status_code == 400


class TestTopProducts:
    def test_ranked_by_units_across_channels(self, client, trading_day):
        resp = client.get("/api/reports/top-products")
        assert resp.status_code == 200

        items = resp.json["items"]
        # kaftan: 1 + 3 sold (cancelled order excluded), abaya: 2 + 1
        assert [i["product"]["product_code"] for i in items] == ["KFT-1", "ABY-1"]
        assert items[0]["total_sold"] == 4
        assert items[0]["total_revenue_cents"] == 23000
        assert items[1]["total_sold"] == 3

    def test_limit_and_context(self, client, trading_day):
        items = client.get("/api/reports/top-products?limit=1&context=boutique").json["items"]
        assert len(items) == 1
        assert items[0]["product"]["product_code"] == "ABY-1"


class TestDashboard:
    def test_stats(self, client, trading_day):
        stats = client.get("/api/dashboard/stats").json

        assert stats["total_products"] == 2
        assert stats["today_sales_count"] == 3
        assert stats["today_sales_cents"] == 21000 + 5000 + 18000
        assert stats["today_orders_count"] == 2
        assert stats["pending_orders"] == 0
        assert stats["low_stock_threshold"] == 5
        # abaya Black M: 10 - 2 - 1 = 7; kaftan Sand L: 10 - 1 - 3 = 6
        assert stats["low_stock_products"] == 0

    def test_stats_by_context(self, client, trading_day):
        stats = client.get("/api/dashboard/stats?context=online").json
        assert stats["today_sales_count"] == 1
        assert client.get("/api/dashboard/stats?context=mall").status_code == 400
