# Overview: Request decorators for API routes.

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import request, jsonify, g

from .extensions import db
from .models import Employee, ACTIVITY_CONTEXTS

EMPLOYEE_HEADER = "X-Employee-Id"
CONTEXT_HEADER = "X-Store-Context"


@dataclass(frozen=True)
class RequestContext:
    """
    Who is acting and in which channel.

    The client keeps the current employee and store context in its own
    storage and sends them with every request; nothing is held server-side.
    """
    employee: Employee | None = None
    store_context: str | None = None

    @property
    def employee_id(self) -> int | None:
        return self.employee.id if self.employee else None

    @property
    def employee_name(self) -> str | None:
        return self.employee.name if self.employee else None


def current_context() -> RequestContext:
    return getattr(g, "request_context", None) or RequestContext()


def with_request_context(f):
    """
    Resolve X-Employee-Id / X-Store-Context into g.request_context.
    A `context` query param stands in for the header when it is absent.

    Returns 400 if the headers are malformed and 404 if the employee
    does not exist. Both headers are optional.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        employee = None
        raw_employee = request.headers.get(EMPLOYEE_HEADER)
        if raw_employee:
            if not raw_employee.strip().isdigit():
                return jsonify({"error": f"{EMPLOYEE_HEADER} must be an integer"}), 400
            employee = db.session.get(Employee, int(raw_employee))
            if employee is None:
                return jsonify({"error": "Employee not found"}), 404

        store_context = request.headers.get(CONTEXT_HEADER) or request.args.get("context") or None
        if store_context is not None and store_context not in ACTIVITY_CONTEXTS:
            return jsonify({"error": f"{CONTEXT_HEADER} must be boutique or online"}), 400

        g.request_context = RequestContext(employee=employee, store_context=store_context)
        return f(*args, **kwargs)

    return decorated_function


def resolve_employee_id(payload: dict) -> int | None:
    """Body `employee_id` wins over the X-Employee-Id header."""
    raw = payload.get("employee_id")
    if raw is not None:
        return raw
    return current_context().employee_id
