"""
Sales Service - in-store checkout

A sale, its line items, its invoice number, the stock deduction of every
line and the activity entry are written in one transaction: either all of it
is committed or none of it is.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Sale, SaleItem, Product, Employee, SALE_PAYMENT_METHODS, STORE_TYPES
from ..validation import NotFoundError, ValidationError, require_choice
from .activity_service import log_activity
from .concurrency import run_in_transaction
from .document_service import next_invoice_number
from .inventory_service import deduct_lines

DEFAULT_SALES_LIMIT = 50
MAX_SALES_LIMIT = 500


def compute_tax_cents(subtotal_cents: int, tax_applied: bool) -> int:
    """VAT on the subtotal, rounded half-up to the cent."""
    if not tax_applied:
        return 0
    rate_bps = current_app.config["TAX_RATE_BPS"]
    return (subtotal_cents * rate_bps + 5_000) // 10_000


def resolve_unit_price(product: Product, requested: int | None, context: str, index: int) -> int:
    if requested is not None:
        return requested
    price = product.price_for(context)
    if price is None:
        raise ValidationError(
            "Product has no price",
            field=f"items[{index}].unit_price_cents",
        )
    return price


def load_line_products(items: list[dict]) -> dict[int, Product]:
    product_ids = {item["product_id"] for item in items}
    products = db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    by_id = {p.id: p for p in products}
    missing = sorted(product_ids - set(by_id))
    if missing:
        raise NotFoundError(f"Product not found: {', '.join(str(m) for m in missing)}")
    return by_id


def create_sale(
    *,
    employee_id: int,
    items: list[dict],
    store_type: str = "boutique",
    payment_method: str | None = None,
    tax_applied: bool = False,
    customer_name: str | None = None,
    customer_phone: str | None = None,
) -> Sale:
    """
    Create a sale with its line items and deduct stock for each line.

    `items` are pre-validated dicts (see validation.parse_line_items).

    Raises:
        ValidationError: bad store_type/payment_method or unpriced product
        NotFoundError: unknown employee or product
        InsufficientStockError: a line exceeds on-hand stock (nothing is written)
    """
    require_choice(store_type, STORE_TYPES, "store_type")
    if payment_method is not None:
        require_choice(payment_method, SALE_PAYMENT_METHODS, "payment_method")

    def _op():
        employee = db.session.get(Employee, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        products = load_line_products(items)

        sale = Sale(
            invoice_number=next_invoice_number(),
            employee_id=employee.id,
            store_type=store_type,
            payment_method=payment_method,
            tax_applied=bool(tax_applied),
            customer_name=customer_name,
            customer_phone=customer_phone,
            total_amount_cents=0,
        )

        subtotal = 0
        for idx, item in enumerate(items):
            product = products[item["product_id"]]
            unit_price = resolve_unit_price(product, item.get("unit_price_cents"), store_type, idx)
            line_total = unit_price * item["quantity"]
            subtotal += line_total
            sale.items.append(
                SaleItem(
                    product_id=product.id,
                    color_name=item["color_name"],
                    size_label=item["size_label"],
                    quantity=item["quantity"],
                    unit_price_cents=unit_price,
                    line_total_cents=line_total,
                )
            )

        sale.subtotal_cents = subtotal
        sale.tax_amount_cents = compute_tax_cents(subtotal, sale.tax_applied)
        sale.total_amount_cents = subtotal + sale.tax_amount_cents

        db.session.add(sale)
        db.session.flush()

        adjustments = deduct_lines(sale.items)

        log_activity(
            type="sale_made",
            description=f"Sale recorded - invoice {sale.invoice_number}",
            employee_name=employee.name,
            context=store_type,
            metadata={
                "sale_id": sale.id,
                "invoice_number": sale.invoice_number,
                "amount_cents": sale.total_amount_cents,
                "adjustments": adjustments,
            },
        )
        return sale

    sale = run_in_transaction(_op)
    current_app.logger.info("Sale %s created (%s items)", sale.invoice_number, len(items))
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def list_sales(
    *,
    store_type: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int | None = None,
) -> list[Sale]:
    """Newest first. `date_to` is exclusive."""
    limit = min(max(limit or DEFAULT_SALES_LIMIT, 1), MAX_SALES_LIMIT)

    query = db.session.query(Sale)
    if store_type:
        query = query.filter(Sale.store_type == store_type)
    if date_from:
        query = query.filter(Sale.created_at >= date_from)
    if date_to:
        query = query.filter(Sale.created_at < date_to)

    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
