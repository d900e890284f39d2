# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/boutique_pos/routes/sales.py
"""Sales API routes (boutique checkout)"""

from flask import Blueprint, request, jsonify, current_app

from ..models import Sale, SALE_PAYMENT_METHODS, STORE_TYPES
from ..services import sales_service
from ..services.inventory_service import InsufficientStockError
from ..time_utils import parse_iso_datetime
from ..validation import (
    ModelValidationPolicy,
    json_object_body,
    ValidationError,
    NotFoundError,
    coerce_int,
    parse_line_items,
    validate_payload,
)
from ..decorators import with_request_context, resolve_employee_id, current_context

SALE_POLICY = ModelValidationPolicy(
    writable_fields={"store_type", "payment_method", "tax_applied", "customer_name", "customer_phone"},
    choices={"store_type": STORE_TYPES, "payment_method": SALE_PAYMENT_METHODS},
)

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _date_arg(*names: str):
    for name in names:
        raw = request.args.get(name)
        if raw:
            try:
                return parse_iso_datetime(raw)
            except ValueError:
                raise ValidationError(f"{name} must be an ISO-8601 date", field=name)
    return None


@sales_bp.get("")
def list_sales_route():
    """
    List sales, newest first.

    Query params:
    - store_type (alias storeType): boutique | online
    - date_from / date_to (aliases dateFrom / dateTo): ISO-8601, date_to exclusive
    - limit: default 50, max 500
    """
    store_type = request.args.get("store_type") or request.args.get("storeType")
    if store_type and store_type not in STORE_TYPES:
        return jsonify({"error": "store_type must be boutique or online"}), 400

    try:
        date_from = _date_arg("date_from", "dateFrom")
        date_to = _date_arg("date_to", "dateTo")
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    sales = sales_service.list_sales(
        store_type=store_type,
        date_from=date_from,
        date_to=date_to,
        limit=request.args.get("limit", type=int),
    )
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.post("")
@with_request_context
def create_sale_route():
    """
    Create a sale and deduct its items from stock.

    Request body:
    {
        "employee_id": 1,               (optional if X-Employee-Id is sent)
        "store_type": "boutique",       (default: X-Store-Context or boutique)
        "payment_method": "visa",
        "tax_applied": true,
        "customer_name": "...",
        "items": [{"product_id": 1, "color_name": "Red", "size_label": "M",
                   "quantity": 2, "unit_price_cents": 15000}]
    }

    Returns:
        201: sale with its invoice number
        400: invalid payload
        404: employee or product not found
        409: insufficient stock (nothing is recorded)
    """
    try:
        data = json_object_body()
        items = parse_line_items(data.get("items"))
        employee_id = resolve_employee_id(data)
        if employee_id is None:
            raise ValidationError("employee_id is required", field="employee_id")
        employee_id = coerce_int(employee_id, "employee_id")

        fields = {k: v for k, v in data.items() if k not in ("items", "employee_id")}
        patch = validate_payload(model=Sale, payload=fields, policy=SALE_POLICY, partial=True)
        patch.setdefault("store_type", current_context().store_context or "boutique")

        sale = sales_service.create_sale(employee_id=employee_id, items=items, **patch)
        return jsonify({"sale": sale.to_dict()}), 201

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error"}), 500
