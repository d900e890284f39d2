# backend/boutique_pos/services/products_service.py
"""
Products Service

Products own a color -> size inventory tree. Two input shapes are accepted
for that tree, matching what the product form sends:

- nested:  colors=[{"color_name": "Red", "sizes": [{"size_label": "M", "quantity": 3}]}]
- map:     colors=["Red"], sizes=["M", "L"], inventory={"Red": {"M": 3}}
           (every color x size combination gets a row; absent entries are 0)
"""
from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Product, SaleItem, OrderItem, ReturnLine
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_int,
    enforce_quantity,
)
from .activity_service import log_activity
from .concurrency import run_in_transaction
from .inventory_service import set_variant_quantity

PRODUCT_MUTABLE_FIELDS = {
    "product_code",
    "name",
    "model_no",
    "brand",
    "product_type",
    "store_price_cents",
    "online_price_cents",
    "specs",
    "main_image_url",
}

DEFAULT_PRODUCT_LIMIT = 50
MAX_PRODUCT_LIMIT = 500


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _label(value, field: str) -> str:
    if value is None or isinstance(value, (dict, list, bool)):
        raise ValidationError(f"{field} must be a string", field=field)
    label = str(value).strip()
    if not label:
        raise ValidationError(f"{field} cannot be blank", field=field)
    return label


def _quantity(value, field: str) -> int:
    qty = coerce_int(value, field)
    enforce_quantity(qty, field, allow_zero=True)
    return qty


def parse_inventory_spec(colors=None, sizes=None, inventory=None) -> list[dict]:
    """
    Flatten either inventory input shape into
    [{"color_name", "color_swatch_url", "size_label", "quantity"}, ...].

    Returns an empty list when no inventory input was supplied.
    """
    entries: dict[tuple[str, str], dict] = {}
    swatches: dict[str, str | None] = {}

    def _put(color_name: str, size_label: str, qty: int) -> None:
        entries[(color_name, size_label)] = {
            "color_name": color_name,
            "color_swatch_url": swatches.get(color_name),
            "size_label": size_label,
            "quantity": qty,
        }

    if colors is not None and not isinstance(colors, list):
        raise ValidationError("colors must be a list", field="colors")
    if sizes is not None and not isinstance(sizes, list):
        raise ValidationError("sizes must be a list", field="sizes")
    if inventory is not None and not isinstance(inventory, dict):
        raise ValidationError("inventory must be an object of color -> size -> quantity", field="inventory")

    size_labels = [_label(s, "sizes") for s in (sizes or [])]
    plain_colors: list[str] = []

    for idx, color in enumerate(colors or []):
        if isinstance(color, dict):
            color_name = _label(color.get("color_name", color.get("name")), f"colors[{idx}].color_name")
            swatches[color_name] = color.get("color_swatch_url")
            nested = color.get("sizes")
            if nested is None:
                plain_colors.append(color_name)
                continue
            if not isinstance(nested, list):
                raise ValidationError("sizes must be a list", field=f"colors[{idx}].sizes")
            for jdx, size in enumerate(nested):
                field = f"colors[{idx}].sizes[{jdx}]"
                if not isinstance(size, dict):
                    raise ValidationError("must be an object", field=field)
                size_label = _label(size.get("size_label", size.get("size")), f"{field}.size_label")
                _put(color_name, size_label, _quantity(size.get("quantity", 0), f"{field}.quantity"))
        else:
            plain_colors.append(_label(color, f"colors[{idx}]"))

    for color_name in plain_colors:
        for size_label in size_labels:
            if (color_name, size_label) not in entries:
                _put(color_name, size_label, 0)

    for raw_color, per_size in (inventory or {}).items():
        color_name = _label(raw_color, "inventory")
        if not isinstance(per_size, dict):
            raise ValidationError(f"inventory.{color_name} must be an object of size -> quantity", field="inventory")
        for raw_size, qty in per_size.items():
            size_label = _label(raw_size, f"inventory.{color_name}")
            _put(color_name, size_label, _quantity(qty, f"inventory.{color_name}.{size_label}"))

    return list(entries.values())


def _apply_inventory(product: Product, entries: list[dict]) -> None:
    for entry in entries:
        set_variant_quantity(
            product.id,
            entry["color_name"],
            entry["size_label"],
            entry["quantity"],
            swatch_url=entry.get("color_swatch_url"),
        )


def list_products(
    *,
    search: str | None = None,
    limit: int | None = None,
) -> list[Product]:
    """Newest first; `search` matches code, name or brand case-insensitively."""
    limit = min(max(limit or DEFAULT_PRODUCT_LIMIT, 1), MAX_PRODUCT_LIMIT)

    query = db.session.query(Product)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Product.product_code.ilike(pattern),
                Product.name.ilike(pattern),
                Product.brand.ilike(pattern),
            )
        )
    return query.order_by(Product.created_at.desc(), Product.id.desc()).limit(limit).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


def get_product_by_code(code: str) -> Product:
    product = db.session.query(Product).filter_by(product_code=code).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def create_product(
    *,
    patch: dict,
    inventory: list[dict] | None = None,
    actor_name: str | None = None,
    context: str | None = None,
) -> Product:
    """
    Create product from a validated patch dict plus its variant inventory.

    Raises:
        ConflictError: If product_code already exists
    """
    def _op():
        code = patch["product_code"]
        if db.session.query(Product).filter_by(product_code=code).first():
            raise ConflictError(f"Product code '{code}' already exists")

        product = Product()
        apply_product_patch(product, patch)
        db.session.add(product)
        db.session.flush()

        _apply_inventory(product, inventory or [])

        log_activity(
            type="product_added",
            description=f"Product added: {product.name or product.product_code}",
            employee_name=actor_name,
            context=context,
            metadata={"product_id": product.id, "product_code": product.product_code},
        )
        return product

    product = run_in_transaction(_op)
    db.session.refresh(product)
    return product


def update_product(
    *,
    product_id: int,
    patch: dict,
    inventory: list[dict] | None = None,
    actor_name: str | None = None,
    context: str | None = None,
) -> Product:
    """
    Patch product fields; listed variants get their quantity overwritten,
    unlisted variants are left alone.
    """
    def _op():
        product = get_product(product_id)

        new_code = patch.get("product_code")
        if new_code and new_code != product.product_code:
            clash = db.session.query(Product).filter(
                Product.product_code == new_code, Product.id != product_id
            ).first()
            if clash:
                raise ConflictError(f"Product code '{new_code}' already exists")

        apply_product_patch(product, patch)
        db.session.flush()
        _apply_inventory(product, inventory or [])

        log_activity(
            type="product_updated",
            description=f"Product updated: {product.name or product.product_code}",
            employee_name=actor_name,
            context=context,
            metadata={
                "product_id": product.id,
                "fields": sorted(patch.keys()),
                "variants": [
                    {"color_name": e["color_name"], "size_label": e["size_label"], "quantity": e["quantity"]}
                    for e in (inventory or [])
                ],
            },
        )
        return product

    product = run_in_transaction(_op)
    db.session.refresh(product)
    return product


def delete_product(*, product_id: int, actor_name: str | None = None, context: str | None = None) -> None:
    """
    Delete a product and its variants.

    Products referenced by sales, orders or returns are kept for history.
    """
    def _op():
        product = get_product(product_id)

        referenced = (
            db.session.query(SaleItem.id).filter_by(product_id=product_id).first()
            or db.session.query(OrderItem.id).filter_by(product_id=product_id).first()
            or db.session.query(ReturnLine.id).filter_by(product_id=product_id).first()
        )
        if referenced:
            raise ConflictError("Product is referenced by sales, orders or returns")

        code = product.product_code
        db.session.delete(product)
        db.session.flush()

        log_activity(
            type="product_deleted",
            description=f"Product deleted: {code}",
            employee_name=actor_name,
            context=context,
            metadata={"product_id": product_id, "product_code": code},
        )

    run_in_transaction(_op)
