import pytest

from boutique_pos.models import Order
from boutique_pos.validation import (
    ModelValidationPolicy,
    ValidationError,
    coerce_int,
    coerce_bool,
    parse_line_items,
    validate_payload,
)


class TestCoercion:
    @pytest.mark.parametrize("value,expected", [(5, 5), ("7", 7), (" -3 ", -3)])
    def test_coerce_int_accepts(self, value, expected):
        assert coerce_int(value, "n") == expected

    @pytest.mark.parametrize("value", [1.5, "1.5", "1e3", "", True, None, "abc"])
    def test_coerce_int_rejects(self, value):
        with pytest.raises(ValidationError):
            coerce_int(value, "n")

    @pytest.mark.parametrize("value,expected", [(True, True), ("yes", True), ("0", False), ("", False)])
    def test_coerce_bool(self, value, expected):
        assert coerce_bool(value, "flag") is expected

    def test_coerce_bool_rejects(self):
        with pytest.raises(ValidationError):
            coerce_bool("maybe", "flag")


class TestLineItems:
    def test_aliases_and_defaults(self):
        items = parse_line_items([{"product_id": "3", "color": " Red ", "size": "M", "quantity": 2}])
        assert items == [{
            "product_id": 3,
            "color_name": "Red",
            "size_label": "M",
            "quantity": 2,
            "unit_price_cents": None,
        }]

    def test_collects_every_problem(self):
        with pytest.raises(ValidationError) as exc:
            parse_line_items([
                {"product_id": "x", "color_name": "Red", "size_label": "M", "quantity": 1},
                {"product_id": 1, "size_label": "M", "quantity": -1, "unit_price_cents": -5},
                "not-an-object",
            ])
        fields = [d["field"] for d in exc.value.details]
        assert fields == [
            "items[0].product_id",
            "items[1].color_name",
            "items[1].quantity",
            "items[1].unit_price_cents",
            "items[2]",
        ]

    @pytest.mark.parametrize("raw", [None, [], {}, "items"])
    def test_requires_non_empty_list(self, raw):
        with pytest.raises(ValidationError):
            parse_line_items(raw)


class TestValidatePayload:
    policy = ModelValidationPolicy(
        writable_fields={"customer_name", "phone", "emirate", "address", "payment_method"},
        required_on_create={"customer_name", "phone"},
        choices={"payment_method": ("cod", "bank")},
    )

    def test_strips_and_returns_patch(self, app):
        patch = validate_payload(
            model=Order,
            payload={"customer_name": "  Mona ", "phone": "050", "payment_method": "bank"},
            policy=self.policy,
            partial=False,
        )
        assert patch == {"customer_name": "Mona", "phone": "050", "payment_method": "bank"}

    def test_reports_all_errors(self, app):
        with pytest.raises(ValidationError) as exc:
            validate_payload(
                model=Order,
                payload={"phone": "   ", "payment_method": "card", "status": "delivered"},
                policy=self.policy,
                partial=False,
            )
        fields = {d["field"] for d in exc.value.details}
        assert fields == {"customer_name", "phone", "payment_method", "status"}

    def test_partial_skips_required(self, app):
        patch = validate_payload(model=Order, payload={"emirate": "Ajman"}, policy=self.policy, partial=True)
        assert patch == {"emirate": "Ajman"}

    def test_max_length(self, app):
        with pytest.raises(ValidationError):
            validate_payload(model=Order, payload={"phone": "0" * 40}, policy=self.policy, partial=True)

    def test_error_shape(self):
        err = ValidationError("price must be >= 0", field="price")
        assert err.to_dict() == {
            "error": "price must be >= 0",
            "details": [{"field": "price", "message": "price must be >= 0"}],
        }


class TestNonObjectBodies:
    @pytest.mark.parametrize("method,path", [
        ("post", "/api/sales"),
        ("post", "/api/orders"),
        ("patch", "/api/orders/1/status"),
        ("post", "/api/returns"),
        ("patch", "/api/returns/1/reject"),
        ("post", "/api/employees"),
        ("post", "/api/products"),
    ])
    def test_array_body_is_rejected(self, client, employee, method, path):
        resp = getattr(client, method)(path, json=[1, 2])
        assert resp.status_code == 400
        assert resp.json["error"] == "Invalid JSON payload"
