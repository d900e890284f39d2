# Overview: Employee lookups and creation.

from __future__ import annotations

from ..extensions import db
from ..models import Employee, EMPLOYEE_ROLES
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import run_in_transaction

DEFAULT_EMPLOYEES = (
    ("Abdulrahman", "manager"),
    ("Heba", "staff"),
    ("Hadeel", "staff"),
)


def list_employees() -> list[Employee]:
    return db.session.query(Employee).order_by(Employee.name.asc()).all()


def get_employee(employee_id: int) -> Employee:
    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def get_employee_by_name(name: str) -> Employee | None:
    return db.session.query(Employee).filter_by(name=name).first()


def create_employee(*, name: str, role: str = "staff") -> Employee:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", field="name")
    if role not in EMPLOYEE_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(EMPLOYEE_ROLES)}", field="role")

    def _op():
        if get_employee_by_name(name):
            raise ConflictError(f"Employee '{name}' already exists")
        employee = Employee(name=name, role=role)
        db.session.add(employee)
        db.session.flush()
        return employee

    return run_in_transaction(_op)


def ensure_default_employees() -> list[Employee]:
    """Idempotently create the default staff roster."""
    created = []
    for name, role in DEFAULT_EMPLOYEES:
        if get_employee_by_name(name):
            continue
        employee = Employee(name=name, role=role)
        db.session.add(employee)
        created.append(employee)
    db.session.commit()
    return created
