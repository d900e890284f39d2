# Overview: Service-layer operations for variant inventory; encapsulates stock adjustments.

# backend/boutique_pos/services/inventory_service.py

from __future__ import annotations

from flask import current_app
from sqlalchemy import case, update

from ..extensions import db
from ..models import Product, ProductColor, ProductSize
from ..validation import ConflictError, NotFoundError
from .concurrency import lock_for_update
"""
Inventory invariants (authoritative)

Stock model:
- Stock is a mutable counter per (product, color, size) variant in product_sizes.
- A variant with no row holds zero stock.
- Quantity is never negative (CHECK constraint plus guarded updates).

Adjustments:
- Sale creation deducts every line item.
- An order deducts its items once, when it first enters `delivered`.
- Return approval restores the returned lines.
- Every change is a single conditional UPDATE against the variant row, executed
  inside the caller's transaction. No read-modify-write in Python.

Oversell:
- Default: a deduction larger than on-hand fails with InsufficientStockError
  and the caller's transaction is rolled back.
- ALLOW_OVERSELL=True: the deduction clamps at zero and missing variants are
  skipped.
"""


class InsufficientStockError(ConflictError):
    """Raised when a deduction exceeds the variant's on-hand quantity."""

    def __init__(self, *, product_id: int, color_name: str, size_label: str, requested: int, on_hand: int):
        super().__init__(
            "Insufficient stock",
            details={
                "product_id": product_id,
                "color_name": color_name,
                "size_label": size_label,
                "requested_quantity": requested,
                "on_hand": on_hand,
            },
        )


def _adjustment(product_id: int, color_name: str, size_label: str, delta: int, on_hand: int) -> dict:
    return {
        "product_id": product_id,
        "color_name": color_name,
        "size_label": size_label,
        "quantity_delta": delta,
        "on_hand": on_hand,
    }


def find_variant(product_id: int, color_name: str, size_label: str, *, lock: bool = False) -> ProductSize | None:
    query = (
        db.session.query(ProductSize)
        .join(ProductColor, ProductSize.color_id == ProductColor.id)
        .filter(
            ProductColor.product_id == product_id,
            ProductColor.color_name == color_name,
            ProductSize.size_label == size_label,
        )
    )
    if lock:
        query = lock_for_update(query)
    return query.first()


def get_variant_quantity(product_id: int, color_name: str, size_label: str) -> int:
    variant = find_variant(product_id, color_name, size_label)
    return variant.quantity if variant else 0


def deduct_variant(product_id: int, color_name: str, size_label: str, quantity: int) -> dict:
    """
    Remove `quantity` units from one variant.

    Locates the variant by (product, color, size) and applies
    quantity = quantity - n guarded by quantity >= n.
    """
    allow_oversell = current_app.config.get("ALLOW_OVERSELL", False)

    variant = find_variant(product_id, color_name, size_label, lock=True)
    if variant is None:
        if allow_oversell:
            return _adjustment(product_id, color_name, size_label, 0, 0)
        raise InsufficientStockError(
            product_id=product_id,
            color_name=color_name,
            size_label=size_label,
            requested=quantity,
            on_hand=0,
        )

    before = variant.quantity
    if allow_oversell:
        stmt = (
            update(ProductSize)
            .where(ProductSize.id == variant.id)
            .values(quantity=case((ProductSize.quantity > quantity, ProductSize.quantity - quantity), else_=0))
        )
    else:
        stmt = (
            update(ProductSize)
            .where(ProductSize.id == variant.id, ProductSize.quantity >= quantity)
            .values(quantity=ProductSize.quantity - quantity)
        )

    result = db.session.execute(stmt.execution_options(synchronize_session=False))
    db.session.refresh(variant)
    if not result.rowcount:
        raise InsufficientStockError(
            product_id=product_id,
            color_name=color_name,
            size_label=size_label,
            requested=quantity,
            on_hand=variant.quantity,
        )

    return _adjustment(product_id, color_name, size_label, variant.quantity - before, variant.quantity)


def restore_variant(product_id: int, color_name: str, size_label: str, quantity: int) -> dict:
    """Put `quantity` units back, recreating the color/size row if it was removed."""
    variant = find_variant(product_id, color_name, size_label, lock=True)
    if variant is None:
        variant = _ensure_variant(product_id, color_name, size_label)
        variant.quantity = quantity
        db.session.flush()
        return _adjustment(product_id, color_name, size_label, quantity, quantity)

    stmt = (
        update(ProductSize)
        .where(ProductSize.id == variant.id)
        .values(quantity=ProductSize.quantity + quantity)
    )
    db.session.execute(stmt.execution_options(synchronize_session=False))
    db.session.refresh(variant)
    return _adjustment(product_id, color_name, size_label, quantity, variant.quantity)


def deduct_lines(lines) -> list[dict]:
    """Deduct every line (objects with product_id/color_name/size_label/quantity)."""
    return [
        deduct_variant(line.product_id, line.color_name, line.size_label, line.quantity)
        for line in lines
    ]


def restore_lines(lines) -> list[dict]:
    return [
        restore_variant(line.product_id, line.color_name, line.size_label, line.quantity)
        for line in lines
    ]


def _ensure_color(product_id: int, color_name: str, swatch_url: str | None = None) -> ProductColor:
    color = db.session.query(ProductColor).filter_by(product_id=product_id, color_name=color_name).first()
    if color is None:
        if db.session.get(Product, product_id) is None:
            raise NotFoundError("Product not found")
        color = ProductColor(product_id=product_id, color_name=color_name, color_swatch_url=swatch_url)
        db.session.add(color)
        db.session.flush()
    elif swatch_url is not None:
        color.color_swatch_url = swatch_url
    return color


def _ensure_variant(product_id: int, color_name: str, size_label: str) -> ProductSize:
    color = _ensure_color(product_id, color_name)
    size = db.session.query(ProductSize).filter_by(color_id=color.id, size_label=size_label).first()
    if size is None:
        size = ProductSize(color_id=color.id, size_label=size_label, quantity=0)
        db.session.add(size)
        db.session.flush()
    return size


def set_variant_quantity(
    product_id: int,
    color_name: str,
    size_label: str,
    quantity: int,
    *,
    swatch_url: str | None = None,
) -> ProductSize:
    """Overwrite a variant's on-hand quantity (stock entry from the product form)."""
    if quantity < 0:
        raise ValueError("quantity must be >= 0")
    color = _ensure_color(product_id, color_name, swatch_url)
    size = db.session.query(ProductSize).filter_by(color_id=color.id, size_label=size_label).first()
    if size is None:
        size = ProductSize(color_id=color.id, size_label=size_label, quantity=quantity)
        db.session.add(size)
    else:
        size.quantity = quantity
    db.session.flush()
    return size


def list_low_stock(threshold: int | None = None, limit: int = 200) -> list[dict]:
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]

    rows = (
        db.session.query(Product, ProductColor, ProductSize)
        .join(ProductColor, ProductColor.product_id == Product.id)
        .join(ProductSize, ProductSize.color_id == ProductColor.id)
        .filter(ProductSize.quantity < threshold)
        .order_by(ProductSize.quantity.asc(), Product.product_code.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": product.id,
            "product_code": product.product_code,
            "name": product.name,
            "color_name": color.color_name,
            "size_label": size.size_label,
            "quantity": size.quantity,
        }
        for product, color, size in rows
    ]


def count_low_stock(threshold: int | None = None) -> int:
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    return db.session.query(ProductSize).filter(ProductSize.quantity < threshold).count()
