"""
Return / Exchange Processing Service

DESIGN PRINCIPLES:
- A return references exactly one original document: a sale, or an order that
  has been delivered.
- Creating a return never touches stock; it sits in `pending`.
- Approval restores the returned variants (and deducts the replacement
  variant of an exchange) in one transaction, exactly once.
- Once approved refunds cover every unit of an order, the order moves to
  `returned`. A partial refund leaves it `delivered`.
- Returned quantity per original line can never exceed the line quantity
  (pending and approved returns both count).

LIFECYCLE:
1. Create return (pending)
2. Approve (pending -> approved, stock restored) or reject (pending -> rejected)
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, update

from ..extensions import db
from ..models import (
    ReturnExchange,
    ReturnLine,
    Sale,
    SaleItem,
    Order,
    OrderItem,
    Employee,
    Product,
    RETURN_TYPES,
    EXCHANGE_MODES,
    RETURN_STATUS_PENDING,
    RETURN_STATUS_APPROVED,
    RETURN_STATUS_REJECTED,
)
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError, coerce_int, require_choice
from .activity_service import log_activity
from .concurrency import lock_for_update, run_in_transaction
from .document_service import next_return_number
from .inventory_service import deduct_variant, restore_lines

DEFAULT_RETURNS_LIMIT = 50
MAX_RETURNS_LIMIT = 500

# A partially refunded order stays delivered; a fully refunded one is returned
RETURNABLE_ORDER_STATUSES = ("delivered", "returned")


class ReturnError(ConflictError):
    """Raised when a return violates a business rule."""
    pass


# =============================================================================
# RETURN CREATION
# =============================================================================

def _original_lines(sale: Sale | None, order: Order | None) -> list:
    return list(sale.items if sale else order.items)


def _already_returned(item_field, item_id: int) -> int:
    """Units of one original line covered by pending or approved returns."""
    total = (
        db.session.query(func.coalesce(func.sum(ReturnLine.quantity), 0))
        .join(ReturnExchange, ReturnExchange.id == ReturnLine.return_id)
        .filter(
            item_field == item_id,
            ReturnExchange.status.in_([RETURN_STATUS_PENDING, RETURN_STATUS_APPROVED]),
        )
        .scalar()
    )
    return int(total or 0)


def _select_lines(originals: list, requested: list[dict] | None) -> list[tuple[object, int]]:
    """Pair original line items with the quantity being returned."""
    by_id = {line.id: line for line in originals}

    if not requested:
        return [(line, line.quantity) for line in originals]

    selected = []
    seen = set()
    for idx, raw in enumerate(requested):
        if not isinstance(raw, dict):
            raise ValidationError("must be an object", field=f"items[{idx}]")
        item_id = coerce_int(raw.get("item_id"), f"items[{idx}].item_id")
        if item_id not in by_id:
            raise ValidationError(
                "item does not belong to the original document", field=f"items[{idx}].item_id"
            )
        if item_id in seen:
            raise ValidationError("item listed twice", field=f"items[{idx}].item_id")
        seen.add(item_id)

        line = by_id[item_id]
        qty = raw.get("quantity")
        qty = line.quantity if qty is None else coerce_int(qty, f"items[{idx}].quantity")
        if qty <= 0:
            raise ValidationError("quantity must be > 0", field=f"items[{idx}].quantity")
        selected.append((line, qty))
    return selected


def _validate_replacement(mode: str, lines: list[tuple[object, int]], replacement: dict) -> dict:
    """
    Check an exchange target against its mode:
    color_to_color keeps product and size, size_to_size keeps product and
    color, model_to_model switches product.
    """
    if len(lines) != 1:
        raise ValidationError("An exchange with a replacement must return exactly one item", field="replacement")

    original, _qty = lines[0]
    product_id = coerce_int(replacement.get("product_id", original.product_id), "replacement.product_id")
    color_name = str(replacement.get("color_name") or original.color_name).strip()
    size_label = str(replacement.get("size_label") or original.size_label).strip()

    if db.session.get(Product, product_id) is None:
        raise NotFoundError("Replacement product not found")

    same_product = product_id == original.product_id
    if mode == "color_to_color":
        ok = same_product and size_label == original.size_label and color_name != original.color_name
        rule = "color_to_color keeps product and size and changes color"
    elif mode == "size_to_size":
        ok = same_product and color_name == original.color_name and size_label != original.size_label
        rule = "size_to_size keeps product and color and changes size"
    else:
        ok = not same_product
        rule = "model_to_model changes the product"
    if not ok:
        raise ValidationError(f"Replacement does not match exchange mode: {rule}", field="replacement")

    return {"product_id": product_id, "color_name": color_name, "size_label": size_label}


def create_return(
    *,
    type: str,
    employee_id: int,
    original_sale_id: int | None = None,
    original_order_id: int | None = None,
    exchange_mode: str | None = None,
    items: list[dict] | None = None,
    replacement: dict | None = None,
    reason: str | None = None,
    notes: str | None = None,
) -> ReturnExchange:
    """
    Create a pending return/exchange.

    `items` is an optional list of {"item_id", "quantity"} naming lines of the
    original sale/order; when omitted every line is returned in full.

    Raises:
        ValidationError: bad input
        NotFoundError: original document or employee missing
        ReturnError: order not delivered, or quantity beyond what remains returnable
    """
    require_choice(type, RETURN_TYPES, "type")
    if type == "exchange":
        if exchange_mode is None:
            raise ValidationError("exchange_mode is required for exchanges", field="exchange_mode")
        require_choice(exchange_mode, EXCHANGE_MODES, "exchange_mode")
    elif exchange_mode is not None or replacement:
        raise ValidationError("exchange_mode and replacement apply to exchanges only", field="exchange_mode")

    if (original_sale_id is None) == (original_order_id is None):
        raise ValidationError(
            "Exactly one of original_sale_id or original_order_id is required",
            field="original_sale_id",
        )

    def _op():
        employee = db.session.get(Employee, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        sale = order = None
        if original_sale_id is not None:
            sale = db.session.get(Sale, original_sale_id)
            if not sale:
                raise NotFoundError("Sale not found")
            item_field = ReturnLine.sale_item_id
        else:
            order = db.session.get(Order, original_order_id)
            if not order:
                raise NotFoundError("Order not found")
            if order.status not in RETURNABLE_ORDER_STATUSES:
                raise ReturnError(
                    f"Only delivered orders can be returned. Order {order.order_number} is {order.status}"
                )
            item_field = ReturnLine.order_item_id

        lines = _select_lines(_original_lines(sale, order), items)

        for line, qty in lines:
            returned = _already_returned(item_field, line.id)
            if returned + qty > line.quantity:
                raise ReturnError(
                    f"Cannot return {qty} units. Original quantity: {line.quantity}, "
                    f"already returned: {returned}, available: {line.quantity - returned}",
                    details={"item_id": line.id, "available": line.quantity - returned},
                )

        target = None
        if type == "exchange" and replacement:
            target = _validate_replacement(exchange_mode, lines, replacement)

        return_doc = ReturnExchange(
            return_number=next_return_number(),
            type=type,
            exchange_mode=exchange_mode,
            original_sale_id=original_sale_id,
            original_order_id=original_order_id,
            status=RETURN_STATUS_PENDING,
            employee_id=employee.id,
            reason=reason,
            notes=notes,
            replacement_product_id=target["product_id"] if target else None,
            replacement_color_name=target["color_name"] if target else None,
            replacement_size_label=target["size_label"] if target else None,
        )

        refund = 0
        for line, qty in lines:
            return_doc.lines.append(
                ReturnLine(
                    sale_item_id=line.id if sale else None,
                    order_item_id=line.id if order else None,
                    product_id=line.product_id,
                    color_name=line.color_name,
                    size_label=line.size_label,
                    quantity=qty,
                    unit_price_cents=line.unit_price_cents,
                )
            )
            refund += line.unit_price_cents * qty
        return_doc.refund_amount_cents = refund if type == "refund" else 0

        db.session.add(return_doc)
        db.session.flush()

        log_activity(
            type="return_created",
            description=f"Return {return_doc.return_number} recorded ({type})",
            employee_name=employee.name,
            context=return_doc.context,
            metadata={
                "return_id": return_doc.id,
                "sale_id": original_sale_id,
                "order_id": original_order_id,
            },
        )
        return return_doc

    return run_in_transaction(_op)


# =============================================================================
# APPROVAL / REJECTION
# =============================================================================

def _transition(return_id: int, target: str, processed_by: int | None, now) -> bool:
    """Conditional pending -> target; True only for the caller that moved it."""
    stmt = (
        update(ReturnExchange)
        .where(ReturnExchange.id == return_id, ReturnExchange.status == RETURN_STATUS_PENDING)
        .values(status=target, processed_at=now, processed_by_employee_id=processed_by)
        .execution_options(synchronize_session=False)
    )
    return bool(db.session.execute(stmt).rowcount)


def _resolve_processor(employee_id: int | None) -> Employee | None:
    if employee_id is None:
        return None
    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


def _fully_refunded(order: Order) -> bool:
    """True once approved refunds cover every unit of every order line."""
    refunded = dict(
        db.session.query(ReturnLine.order_item_id, func.coalesce(func.sum(ReturnLine.quantity), 0))
        .join(ReturnExchange, ReturnExchange.id == ReturnLine.return_id)
        .filter(
            ReturnExchange.original_order_id == order.id,
            ReturnExchange.type == "refund",
            ReturnExchange.status == RETURN_STATUS_APPROVED,
        )
        .group_by(ReturnLine.order_item_id)
        .all()
    )
    return all(int(refunded.get(item.id) or 0) >= item.quantity for item in order.items)


def approve_return(return_id: int, *, processed_by_employee_id: int | None = None) -> ReturnExchange:
    """
    Approve a pending return and restore its stock.

    Approving an already approved return is a no-op that returns the record;
    approving a rejected one raises ReturnError.
    """
    def _op():
        return_doc = lock_for_update(db.session.query(ReturnExchange).filter_by(id=return_id)).first()
        if not return_doc:
            raise NotFoundError("Return not found")

        if return_doc.status == RETURN_STATUS_APPROVED:
            return return_doc
        if return_doc.status == RETURN_STATUS_REJECTED:
            raise ReturnError("Cannot approve a rejected return")

        processor = _resolve_processor(processed_by_employee_id)
        now = utcnow()
        if not _transition(return_doc.id, RETURN_STATUS_APPROVED, processor.id if processor else None, now):
            # Another request approved or rejected it between our read and update
            db.session.refresh(return_doc)
            if return_doc.status == RETURN_STATUS_APPROVED:
                return return_doc
            raise ReturnError(f"Cannot approve a {return_doc.status} return")

        adjustments = restore_lines(return_doc.lines)

        if return_doc.replacement_product_id:
            quantity = sum(line.quantity for line in return_doc.lines)
            adjustments.append(
                deduct_variant(
                    return_doc.replacement_product_id,
                    return_doc.replacement_color_name,
                    return_doc.replacement_size_label,
                    quantity,
                )
            )

        if return_doc.type == "refund" and return_doc.original_order_id:
            order = db.session.get(Order, return_doc.original_order_id)
            if _fully_refunded(order):
                order.status = "returned"

        log_activity(
            type="return_approved",
            description=f"Return {return_doc.return_number} approved and stock restored",
            employee_name=processor.name if processor else None,
            context=return_doc.context,
            metadata={"return_id": return_doc.id, "adjustments": adjustments},
        )
        return return_doc

    return_doc = run_in_transaction(_op)
    db.session.refresh(return_doc)
    current_app.logger.info("Return %s is %s", return_doc.return_number, return_doc.status)
    return return_doc


def reject_return(
    return_id: int,
    *,
    processed_by_employee_id: int | None = None,
    notes: str | None = None,
) -> ReturnExchange:
    """Reject a pending return. No stock effect."""
    def _op():
        return_doc = lock_for_update(db.session.query(ReturnExchange).filter_by(id=return_id)).first()
        if not return_doc:
            raise NotFoundError("Return not found")
        if return_doc.status != RETURN_STATUS_PENDING:
            raise ReturnError(f"Cannot reject a {return_doc.status} return")

        processor = _resolve_processor(processed_by_employee_id)
        if not _transition(return_doc.id, RETURN_STATUS_REJECTED, processor.id if processor else None, utcnow()):
            raise ReturnError("Return was processed concurrently")
        if notes:
            return_doc.notes = notes

        log_activity(
            type="return_rejected",
            description=f"Return {return_doc.return_number} rejected",
            employee_name=processor.name if processor else None,
            context=return_doc.context,
            metadata={"return_id": return_doc.id},
        )
        return return_doc

    return_doc = run_in_transaction(_op)
    db.session.refresh(return_doc)
    return return_doc


# =============================================================================
# QUERIES
# =============================================================================

def get_return(return_id: int) -> ReturnExchange:
    return_doc = db.session.get(ReturnExchange, return_id)
    if not return_doc:
        raise NotFoundError("Return not found")
    return return_doc


def list_returns(*, status: str | None = None, limit: int | None = None) -> list[ReturnExchange]:
    limit = min(max(limit or DEFAULT_RETURNS_LIMIT, 1), MAX_RETURNS_LIMIT)

    query = db.session.query(ReturnExchange)
    if status:
        query = query.filter(ReturnExchange.status == status)
    return query.order_by(ReturnExchange.created_at.desc(), ReturnExchange.id.desc()).limit(limit).all()
