from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z

RETURN_TYPES = ("refund", "exchange")
EXCHANGE_MODES = ("color_to_color", "size_to_size", "model_to_model")

RETURN_STATUS_PENDING = "pending"
RETURN_STATUS_APPROVED = "approved"
RETURN_STATUS_REJECTED = "rejected"


class ReturnExchange(db.Model):
    """
    Refund or exchange request against a sale or a delivered order.

    Stock is untouched while the request is pending. Approval restores the
    returned lines (and, for exchanges with a replacement, deducts the
    replacement variant) exactly once.
    """
    __tablename__ = "returns_exchanges"
    __table_args__ = (
        db.CheckConstraint(
            "(original_sale_id IS NULL) <> (original_order_id IS NULL)",
            name="ck_returns_single_origin",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    return_number = db.Column(db.String(50), nullable=False, unique=True)

    type = db.Column(db.String(16), nullable=False)
    exchange_mode = db.Column(db.String(24), nullable=True)

    original_sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    original_order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default=RETURN_STATUS_PENDING, index=True)

    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)
    processed_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True)

    reason = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    refund_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    # Exchange target (optional)
    replacement_product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    replacement_color_name = db.Column(db.String(64), nullable=True)
    replacement_size_label = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    processed_at = db.Column(db.DateTime, nullable=True)

    employee = db.relationship("Employee", foreign_keys=[employee_id])
    processed_by = db.relationship("Employee", foreign_keys=[processed_by_employee_id])
    lines = db.relationship(
        "ReturnLine",
        back_populates="return_doc",
        cascade="all, delete-orphan",
        order_by="ReturnLine.id",
        lazy=True,
    )

    @property
    def context(self) -> str:
        return "online" if self.original_order_id else "boutique"

    def to_dict(self) -> dict:
        replacement = None
        if self.replacement_product_id:
            replacement = {
                "product_id": self.replacement_product_id,
                "color_name": self.replacement_color_name,
                "size_label": self.replacement_size_label,
            }
        return {
            "id": self.id,
            "return_number": self.return_number,
            "type": self.type,
            "exchange_mode": self.exchange_mode,
            "original_sale_id": self.original_sale_id,
            "original_order_id": self.original_order_id,
            "status": self.status,
            "approved": self.status == RETURN_STATUS_APPROVED,
            "employee_id": self.employee_id,
            "employee_name": self.employee.name if self.employee else None,
            "processed_by_employee_id": self.processed_by_employee_id,
            "reason": self.reason,
            "notes": self.notes,
            "refund_amount_cents": self.refund_amount_cents,
            "replacement": replacement,
            "created_at": to_utc_z(self.created_at),
            "processed_at": to_utc_z(self.processed_at),
            "lines": [line.to_dict() for line in self.lines],
        }


class ReturnLine(db.Model):
    """One returned (product, color, size, quantity) taken from the original document."""
    __tablename__ = "return_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_return_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(
        db.Integer, db.ForeignKey("returns_exchanges.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sale_item_id = db.Column(db.Integer, db.ForeignKey("sale_items.id"), nullable=True, index=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=True, index=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    color_name = db.Column(db.String(64), nullable=False)
    size_label = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)

    return_doc = db.relationship("ReturnExchange", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "return_id": self.return_id,
            "sale_item_id": self.sale_item_id,
            "order_item_id": self.order_item_id,
            "product_id": self.product_id,
            "color_name": self.color_name,
            "size_label": self.size_label,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
        }
