from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z

ORDER_STATUSES = ("pending", "out_for_delivery", "delivered", "cancelled", "returned")
ORDER_PAYMENT_METHODS = ("cod", "bank")


class Order(db.Model):
    """
    Online order fulfilled by delivery.

    Creating an order reserves no stock. Stock is deducted once, when the
    order first enters `delivered`; `inventory_deducted_at` records that the
    deduction happened.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Sequential human-readable number (e.g., "ORD-001")
    order_number = db.Column(db.String(50), nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    emirate = db.Column(db.String(64), nullable=False)
    address = db.Column(db.Text, nullable=False)
    tracking_number = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    payment_method = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(24), nullable=False, default="pending", index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    delivered_at = db.Column(db.DateTime, nullable=True)
    inventory_deducted_at = db.Column(db.DateTime, nullable=True)

    employee = db.relationship("Employee")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )

    def to_dict(self, *, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "customer_name": self.customer_name,
            "phone": self.phone,
            "emirate": self.emirate,
            "address": self.address,
            "tracking_number": self.tracking_number,
            "notes": self.notes,
            "payment_method": self.payment_method,
            "status": self.status,
            "total_amount_cents": self.total_amount_cents,
            "employee_id": self.employee_id,
            "employee_name": self.employee.name if self.employee else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "delivered_at": to_utc_z(self.delivered_at),
            "inventory_deducted": self.inventory_deducted_at is not None,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    color_name = db.Column(db.String(64), nullable=False)
    size_label = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_code": self.product.product_code if self.product else None,
            "color_name": self.color_name,
            "size_label": self.size_label,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }
