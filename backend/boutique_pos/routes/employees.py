# Overview: Flask API routes for employees; the fixed staff roster used for attribution.

from flask import Blueprint, jsonify, current_app

from ..models import Employee, EMPLOYEE_ROLES
from ..services import employee_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    json_object_body,
    ValidationError,
    ConflictError,
    NotFoundError,
)

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "role"},
    required_on_create={"name"},
    choices={"role": EMPLOYEE_ROLES},
)

employees_bp = Blueprint("employees", __name__, url_prefix="/api/employees")


@employees_bp.get("")
def list_employees_route():
    employees = employee_service.list_employees()
    return jsonify({"items": [e.to_dict() for e in employees], "count": len(employees)}), 200


@employees_bp.get("/<int:employee_id>")
def get_employee_route(employee_id: int):
    try:
        employee = employee_service.get_employee(employee_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"employee": employee.to_dict()}), 200


@employees_bp.post("")
def create_employee_route():
    try:
        data = json_object_body()
        patch = validate_payload(model=Employee, payload=data, policy=EMPLOYEE_POLICY, partial=False)
        employee = employee_service.create_employee(name=patch["name"], role=patch.get("role") or "staff")
        return jsonify({"employee": employee.to_dict()}), 201
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except ConflictError as e:
        return jsonify(e.to_dict()), 409
    except Exception:
        current_app.logger.exception("Failed to create employee")
        return jsonify({"error": "Internal server error"}), 500
