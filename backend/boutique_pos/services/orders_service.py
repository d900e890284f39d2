# Overview: Online orders; creation, status transitions and the delivery stock deduction.

from __future__ import annotations

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Order, OrderItem, Employee, ORDER_STATUSES, ORDER_PAYMENT_METHODS
from ..time_utils import utcnow
from ..validation import NotFoundError, require_choice
from .activity_service import log_activity
from .concurrency import lock_for_update, run_in_transaction
from .document_service import next_order_number
from .inventory_service import deduct_lines
from .sales_service import load_line_products, resolve_unit_price

DEFAULT_ORDERS_LIMIT = 50
MAX_ORDERS_LIMIT = 500

ORDER_CUSTOMER_FIELDS = ("customer_name", "phone", "emirate", "address", "tracking_number", "notes")


def create_order(
    *,
    employee_id: int,
    payment_method: str,
    items: list[dict],
    customer: dict,
) -> Order:
    """
    Create an order in `pending` with a generated order number.

    No stock is reserved: inventory only moves when the order is delivered.
    """
    require_choice(payment_method, ORDER_PAYMENT_METHODS, "payment_method")

    def _op():
        employee = db.session.get(Employee, employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        products = load_line_products(items)

        order = Order(
            order_number=next_order_number(),
            payment_method=payment_method,
            status="pending",
            employee_id=employee.id,
        )
        for field in ORDER_CUSTOMER_FIELDS:
            if field in customer:
                setattr(order, field, customer[field])

        total = 0
        for idx, item in enumerate(items):
            product = products[item["product_id"]]
            unit_price = resolve_unit_price(product, item.get("unit_price_cents"), "online", idx)
            line_total = unit_price * item["quantity"]
            total += line_total
            order.items.append(
                OrderItem(
                    product_id=product.id,
                    color_name=item["color_name"],
                    size_label=item["size_label"],
                    quantity=item["quantity"],
                    unit_price_cents=unit_price,
                    line_total_cents=line_total,
                )
            )
        order.total_amount_cents = total

        db.session.add(order)
        db.session.flush()

        log_activity(
            type="order_created",
            description=f"Order created - {order.order_number}",
            employee_name=employee.name,
            context="online",
            metadata={
                "order_id": order.id,
                "order_number": order.order_number,
                "amount_cents": order.total_amount_cents,
            },
        )
        return order

    order = run_in_transaction(_op)
    current_app.logger.info("Order %s created", order.order_number)
    return order


def _claim_delivery_deduction(order_id: int, now) -> bool:
    """
    Mark the order's delivery deduction as done.

    Returns True only for the caller that flipped the marker, so the stock
    is deducted at most once per order no matter how often `delivered` is set.
    """
    stmt = (
        update(Order)
        .where(Order.id == order_id, Order.inventory_deducted_at.is_(None))
        .values(inventory_deducted_at=now)
        .execution_options(synchronize_session=False)
    )
    return bool(db.session.execute(stmt).rowcount)


def update_order_status(
    *,
    order_id: int,
    status: str,
    tracking_number: str | None = None,
    actor_name: str | None = None,
) -> Order:
    """
    Move an order to `status`.

    Any known status is accepted from any state. Entering `delivered` deducts
    the order's items from stock the first time it happens; `cancelled` and
    the other states have no stock effect.
    """
    require_choice(status, ORDER_STATUSES, "status")

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError("Order not found")

        previous = order.status
        now = utcnow()
        adjustments: list[dict] = []

        if status == "delivered":
            if _claim_delivery_deduction(order.id, now):
                adjustments = deduct_lines(order.items)
            if order.delivered_at is None:
                order.delivered_at = now

        order.status = status
        if tracking_number:
            order.tracking_number = tracking_number
        db.session.flush()

        log_activity(
            type="status_updated",
            description=f"Order {order.order_number} status changed from {previous} to {status}",
            employee_name=actor_name,
            context="online",
            metadata={
                "order_id": order.id,
                "previous_status": previous,
                "new_status": status,
                "adjustments": adjustments,
            },
        )
        return order

    order = run_in_transaction(_op)
    db.session.refresh(order)
    return order


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_orders(*, status: str | None = None, limit: int | None = None) -> list[Order]:
    limit = min(max(limit or DEFAULT_ORDERS_LIMIT, 1), MAX_ORDERS_LIMIT)

    query = db.session.query(Order)
    if status:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()
