# Overview: Service-layer operations for reporting; plain aggregates recomputed per request.

from __future__ import annotations

from datetime import date, datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Sale, SaleItem, Order, OrderItem, Product, ReturnExchange, RETURN_STATUS_APPROVED
from ..time_utils import day_bounds, period_bounds, to_utc_z, utcnow
from .inventory_service import count_low_stock

REPORT_CONTEXTS = ("boutique", "online")
REPORT_PERIODS = ("daily", "weekly", "monthly")

# Orders in these states earned nothing
NON_REVENUE_ORDER_STATUSES = ("cancelled", "returned")


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _sources(context: str | None) -> list[tuple]:
    """
    (header model, item model, item->header FK, header filters) per revenue source.

    boutique -> in-store sales
    online   -> sales rung up as online plus online orders that were not
                cancelled or returned
    None     -> everything
    """
    if context is not None and context not in REPORT_CONTEXTS:
        raise ReportError("context must be boutique or online")

    sources = []
    sale_filters = [] if context is None else [Sale.store_type == context]
    sources.append((Sale, SaleItem, SaleItem.sale_id, sale_filters))
    if context in (None, "online"):
        sources.append(
            (Order, OrderItem, OrderItem.order_id, [Order.status.notin_(NON_REVENUE_ORDER_STATUSES)])
        )
    return sources


def _range_filters(header, start: datetime | None, end: datetime | None) -> list:
    conds = []
    if start is not None:
        conds.append(header.created_at >= start)
    if end is not None:
        conds.append(header.created_at < end)
    return conds


def _refunds(header, filters: list, start: datetime | None, end: datetime | None) -> int:
    """
    Approved refunds processed in [start, end) against documents of one
    source. Refunds on orders that dropped out of revenue are not counted.
    """
    link = ReturnExchange.original_sale_id if header is Sale else ReturnExchange.original_order_id
    conds = [ReturnExchange.type == "refund", ReturnExchange.status == RETURN_STATUS_APPROVED, *filters]
    if start is not None:
        conds.append(ReturnExchange.processed_at >= start)
    if end is not None:
        conds.append(ReturnExchange.processed_at < end)

    total = (
        db.session.query(func.coalesce(func.sum(ReturnExchange.refund_amount_cents), 0))
        .join(header, link == header.id)
        .filter(*conds)
        .scalar()
    )
    return int(total or 0)


def _average(total: int, count: int) -> int:
    if not count:
        return 0
    return (total + count // 2) // count


def top_products(
    *,
    limit: int = 10,
    context: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[dict]:
    """Best sellers by units sold, with the revenue they brought in."""
    totals: dict[int, dict] = {}
    for header, item, fk, filters in _sources(context):
        rows = (
            db.session.query(
                item.product_id,
                func.coalesce(func.sum(item.quantity), 0),
                func.coalesce(func.sum(item.line_total_cents), 0),
            )
            .join(header, fk == header.id)
            .filter(*filters, *_range_filters(header, start, end))
            .group_by(item.product_id)
            .all()
        )
        for product_id, sold, revenue in rows:
            entry = totals.setdefault(product_id, {"total_sold": 0, "total_revenue_cents": 0})
            entry["total_sold"] += int(sold or 0)
            entry["total_revenue_cents"] += int(revenue or 0)

    ranked = sorted(
        totals.items(),
        key=lambda kv: (-kv[1]["total_sold"], -kv[1]["total_revenue_cents"], kv[0]),
    )[: max(limit, 1)]

    ids = [product_id for product_id, _ in ranked]
    products = {p.id: p for p in db.session.query(Product).filter(Product.id.in_(ids)).all()} if ids else {}

    return [
        {
            "product": products[product_id].to_dict(include_inventory=False) if product_id in products else None,
            "product_id": product_id,
            "total_sold": entry["total_sold"],
            "total_revenue_cents": entry["total_revenue_cents"],
        }
        for product_id, entry in ranked
    ]


def summarize(
    *,
    context: str | None,
    start: datetime | None,
    end: datetime | None,
    top_limit: int = 5,
) -> dict:
    """
    Transaction count, items sold, revenue, tax and average order value over [start, end).

    `total_revenue_cents` is gross. Approved refunds processed in the window
    are reported as `refunds_cents` and taken off in `net_revenue_cents`.
    """
    transactions = 0
    revenue = 0
    refunds = 0
    tax = 0
    items_sold = 0
    by_day: dict[str, dict] = {}

    for header, item, fk, filters in _sources(context):
        conds = [*filters, *_range_filters(header, start, end)]

        count, total = (
            db.session.query(func.count(header.id), func.coalesce(func.sum(header.total_amount_cents), 0))
            .filter(*conds)
            .one()
        )
        transactions += int(count or 0)
        revenue += int(total or 0)
        refunds += _refunds(header, filters, start, end)

        if header is Sale:
            tax += int(
                db.session.query(func.coalesce(func.sum(Sale.tax_amount_cents), 0)).filter(*conds).scalar() or 0
            )

        items_sold += int(
            db.session.query(func.coalesce(func.sum(item.quantity), 0))
            .join(header, fk == header.id)
            .filter(*conds)
            .scalar()
            or 0
        )

        day_expr = func.date(header.created_at)
        day_rows = (
            db.session.query(day_expr, func.count(header.id), func.coalesce(func.sum(header.total_amount_cents), 0))
            .filter(*conds)
            .group_by(day_expr)
            .all()
        )
        for day, day_count, day_total in day_rows:
            key = str(day)
            entry = by_day.setdefault(key, {"date": key, "transaction_count": 0, "revenue_cents": 0})
            entry["transaction_count"] += int(day_count or 0)
            entry["revenue_cents"] += int(day_total or 0)

    return {
        "context": context,
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "transaction_count": transactions,
        "items_sold": items_sold,
        "total_revenue_cents": revenue,
        "refunds_cents": refunds,
        "net_revenue_cents": revenue - refunds,
        "tax_total_cents": tax,
        "average_order_value_cents": _average(revenue, transactions),
        "top_products": top_products(limit=top_limit, context=context, start=start, end=end),
        "by_day": [by_day[k] for k in sorted(by_day)],
    }


def period_report(*, context: str, period: str, day: date) -> dict:
    """Daily / weekly (7 days from `day`) / monthly (calendar month) report."""
    if context not in REPORT_CONTEXTS:
        raise ReportError("context must be boutique or online")
    if period not in REPORT_PERIODS:
        raise ReportError("period must be daily, weekly, or monthly")

    start, end = period_bounds(period, day)
    report = summarize(context=context, start=start, end=end)
    report["period"] = period
    report["date"] = day.isoformat()
    return report


def dashboard_stats(*, context: str | None = None) -> dict:
    if context is not None and context not in REPORT_CONTEXTS:
        raise ReportError("context must be boutique or online")

    start, end = day_bounds(utcnow().date())

    sales_query = db.session.query(
        func.count(Sale.id), func.coalesce(func.sum(Sale.total_amount_cents), 0)
    ).filter(Sale.created_at >= start, Sale.created_at < end)
    if context is not None:
        sales_query = sales_query.filter(Sale.store_type == context)
    today_count, today_total = sales_query.one()

    today_orders = (
        db.session.query(func.count(Order.id))
        .filter(Order.created_at >= start, Order.created_at < end)
        .scalar()
    )

    return {
        "total_products": db.session.query(func.count(Product.id)).scalar() or 0,
        "today_sales_cents": int(today_total or 0),
        "today_sales_count": int(today_count or 0),
        "today_orders_count": int(today_orders or 0),
        "pending_orders": db.session.query(func.count(Order.id)).filter(Order.status == "pending").scalar() or 0,
        "low_stock_threshold": current_app.config["LOW_STOCK_THRESHOLD"],
        "low_stock_products": count_low_stock(),
    }
