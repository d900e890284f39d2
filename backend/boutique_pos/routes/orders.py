# Overview: Flask API routes for online orders; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..models import Order, ORDER_STATUSES, ORDER_PAYMENT_METHODS
from ..services import orders_service
from ..services.inventory_service import InsufficientStockError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    json_object_body,
    parse_line_items,
    coerce_int,
    ValidationError,
    NotFoundError,
)
from ..decorators import with_request_context, resolve_employee_id, current_context

ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_name",
        "phone",
        "emirate",
        "address",
        "tracking_number",
        "notes",
        "payment_method",
    },
    required_on_create={"customer_name", "phone", "emirate", "address", "payment_method"},
    choices={"payment_method": ORDER_PAYMENT_METHODS},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
def list_orders_route():
    status = request.args.get("status")
    if status and status not in ORDER_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(ORDER_STATUSES)}"}), 400

    orders = orders_service.list_orders(status=status, limit=request.args.get("limit", type=int))
    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)}), 200


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        order = orders_service.get_order(order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"order": order.to_dict()}), 200


@orders_bp.post("")
@with_request_context
def create_order_route():
    """
    Create an online order in `pending`.

    Request body:
    {
        "employee_id": 1,
        "customer_name": "...", "phone": "...", "emirate": "Dubai", "address": "...",
        "payment_method": "cod" | "bank",
        "notes": "...",
        "items": [{"product_id": 1, "color_name": "Red", "size_label": "M", "quantity": 1}]
    }

    No stock moves until the order is delivered.
    """
    try:
        data = json_object_body()
        items = parse_line_items(data.get("items"))
        employee_id = resolve_employee_id(data)
        if employee_id is None:
            raise ValidationError("employee_id is required", field="employee_id")
        employee_id = coerce_int(employee_id, "employee_id")

        fields = {k: v for k, v in data.items() if k not in ("items", "employee_id")}
        patch = validate_payload(model=Order, payload=fields, policy=ORDER_POLICY, partial=False)
        payment_method = patch.pop("payment_method")

        order = orders_service.create_order(
            employee_id=employee_id,
            payment_method=payment_method,
            items=items,
            customer=patch,
        )
        return jsonify({"order": order.to_dict()}), 201

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.route("/<int:order_id>/status", methods=["PATCH", "PUT"])
@with_request_context
def update_order_status_route(order_id: int):
    """
    Change an order's status.

    Request body: {"status": "delivered", "tracking_number": "..."}

    Entering `delivered` deducts the order's items from stock the first time.

    Returns:
        200: updated order
        400: unknown status
        404: order not found
        409: insufficient stock for delivery (status unchanged)
    """
    try:
        data = json_object_body()
        status = data.get("status")
        if status not in ORDER_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}", field="status")

        tracking_number = data.get("tracking_number") or data.get("trackingNumber")
        order = orders_service.update_order_status(
            order_id=order_id,
            status=status,
            tracking_number=str(tracking_number).strip() if tracking_number else None,
            actor_name=current_context().employee_name,
        )
        return jsonify({"order": order.to_dict()}), 200

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Internal server error"}), 500
