from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z

EMPLOYEE_ROLES = ("staff", "manager")


class Employee(db.Model):
    """
    Person recorded as the actor on sales, orders and returns.

    Not an authentication principal: the client picks the current employee
    and sends it with each request.
    """
    __tablename__ = "employees"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    role = db.Column(db.String(16), nullable=False, default="staff")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Employee id={self.id} name={self.name!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }
