# Overview: Flask API routes for returns and exchanges; parses input and returns JSON responses.

# backend/boutique_pos/routes/returns.py
"""
Returns & exchanges routes.

A return is created pending and changes no stock. Approval restores the
returned lines (and deducts an exchange replacement); rejection does nothing
to stock.
"""
from flask import Blueprint, request, jsonify, current_app

from ..models import (
    RETURN_STATUS_PENDING,
    RETURN_STATUS_APPROVED,
    RETURN_STATUS_REJECTED,
)
from ..services import return_service
from ..validation import ValidationError, ConflictError, NotFoundError, coerce_int, json_object_body
from ..decorators import with_request_context, resolve_employee_id, current_context

RETURN_STATUSES = (RETURN_STATUS_PENDING, RETURN_STATUS_APPROVED, RETURN_STATUS_REJECTED)

returns_bp = Blueprint("returns", __name__, url_prefix="/api/returns")


def _optional_int(data: dict, *keys: str) -> int | None:
    for key in keys:
        if data.get(key) is not None:
            return coerce_int(data[key], keys[0])
    return None


def _optional_text(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ValidationError(f"{key} must be a string", field=key)
    return str(value).strip() or None


@returns_bp.get("")
def list_returns_route():
    status = request.args.get("status")
    if status and status not in RETURN_STATUSES:
        return jsonify({"error": f"status must be one of: {', '.join(RETURN_STATUSES)}"}), 400

    returns = return_service.list_returns(status=status, limit=request.args.get("limit", type=int))
    return jsonify({"items": [r.to_dict() for r in returns], "count": len(returns)}), 200


@returns_bp.get("/<int:return_id>")
def get_return_route(return_id: int):
    try:
        return_doc = return_service.get_return(return_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"return": return_doc.to_dict()}), 200


@returns_bp.post("")
@with_request_context
def create_return_route():
    """
    Record a refund or exchange request.

    Request body:
    {
        "type": "refund" | "exchange",
        "original_sale_id": 1,            (or "original_order_id")
        "exchange_mode": "size_to_size",  (exchanges only)
        "items": [{"item_id": 3, "quantity": 1}],   (optional, default: everything)
        "replacement": {"product_id": 1, "color_name": "Red", "size_label": "L"},
        "reason": "...",
        "notes": "..."
    }
    """
    try:
        data = json_object_body()
        employee_id = resolve_employee_id(data)
        if employee_id is None:
            raise ValidationError("employee_id is required", field="employee_id")

        items = data.get("items")
        if items is not None and not isinstance(items, list):
            raise ValidationError("items must be a list", field="items")
        replacement = data.get("replacement")
        if replacement is not None and not isinstance(replacement, dict):
            raise ValidationError("replacement must be an object", field="replacement")

        return_doc = return_service.create_return(
            type=data.get("type"),
            employee_id=coerce_int(employee_id, "employee_id"),
            original_sale_id=_optional_int(data, "original_sale_id", "sale_id"),
            original_order_id=_optional_int(data, "original_order_id", "order_id"),
            exchange_mode=data.get("exchange_mode"),
            items=items,
            replacement=replacement,
            reason=_optional_text(data, "reason"),
            notes=_optional_text(data, "notes"),
        )
        return jsonify({"return": return_doc.to_dict()}), 201

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        current_app.logger.exception("Failed to create return")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.route("/<int:return_id>/approve", methods=["PATCH", "POST"])
@with_request_context
def approve_return_route(return_id: int):
    """
    Approve a pending return and restore its stock.

    Approving an already approved return returns it unchanged.
    """
    try:
        return_doc = return_service.approve_return(
            return_id,
            processed_by_employee_id=current_context().employee_id,
        )
        return jsonify({"return": return_doc.to_dict()}), 200

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        current_app.logger.exception("Failed to approve return")
        return jsonify({"error": "Internal server error"}), 500


@returns_bp.route("/<int:return_id>/reject", methods=["PATCH", "POST"])
@with_request_context
def reject_return_route(return_id: int):
    try:
        data = json_object_body()
        return_doc = return_service.reject_return(
            return_id,
            processed_by_employee_id=current_context().employee_id,
            notes=_optional_text(data, "notes"),
        )
        return jsonify({"return": return_doc.to_dict()}), 200

    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        current_app.logger.exception("Failed to reject return")
        return jsonify({"error": "Internal server error"}), 500
