from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z

STORE_TYPES = ("boutique", "online")
SALE_PAYMENT_METHODS = ("cash", "visa", "cod", "bank")


class Sale(db.Model):
    """
    In-store sale with its line items.

    Created in one transaction together with its items, its invoice number and
    the stock deduction of every item.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_store_type_created", "store_type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Sequential human-readable number (e.g., "7000001")
    invoice_number = db.Column(db.String(32), nullable=False, unique=True)

    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    store_type = db.Column(db.String(16), nullable=False, default="boutique")

    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    payment_method = db.Column(db.String(16), nullable=True)

    # Amounts in cents
    tax_applied = db.Column(db.Boolean, nullable=False, default=False)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    employee = db.relationship("Employee")
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
        lazy=True,
    )

    def to_dict(self, *, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "employee_id": self.employee_id,
            "employee_name": self.employee.name if self.employee else None,
            "store_type": self.store_type,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "payment_method": self.payment_method,
            "tax_applied": self.tax_applied,
            "subtotal_cents": self.subtotal_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Individual line items on a sale."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    color_name = db.Column(db.String(64), nullable=False)
    size_label = db.Column(db.String(32), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_code": self.product.product_code if self.product else None,
            "color_name": self.color_name,
            "size_label": self.size_label,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }
