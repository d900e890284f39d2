# Overview: Flask API routes for reports and the dashboard; parses input and returns JSON responses.

# backend/boutique_pos/routes/reports.py
"""
Reports routes.

All figures are recomputed from sales and orders on every request; nothing
is cached or stored.
"""
from flask import Blueprint, request, jsonify, current_app

from ..services.reporting_service import (
    ReportError,
    REPORT_PERIODS,
    top_products,
    period_report,
    dashboard_stats,
)
from ..time_utils import parse_iso_date, parse_iso_datetime

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")
dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


def _datetime_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ReportError(f"{name} must be an ISO-8601 date")


@reports_bp.get("/top-products")
def top_products_route():
    """
    Best sellers across sales and orders.

    Query params: limit (default 10), context (boutique | online), start, end
    """
    try:
        limit = request.args.get("limit", default=10, type=int)
        items = top_products(
            limit=min(max(limit, 1), 100),
            context=request.args.get("context") or None,
            start=_datetime_arg("start"),
            end=_datetime_arg("end"),
        )
        return jsonify({"items": items, "count": len(items)}), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build top products report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/<string:context>/<string:period>/<string:day>")
def period_report_route(context: str, period: str, day: str):
    """
    Daily / weekly / monthly summary for one context.

    `day` is YYYY-MM-DD: the day itself, the first of 7 days, or any day in
    the calendar month.
    """
    if period not in REPORT_PERIODS:
        return jsonify({"error": "period must be daily, weekly, or monthly"}), 400
    try:
        parsed_day = parse_iso_date(day)
    except ValueError:
        return jsonify({"error": "date must be YYYY-MM-DD"}), 400

    try:
        report = period_report(context=context, period=period, day=parsed_day)
        return jsonify(report), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build %s report", period)
        return jsonify({"error": "Internal server error"}), 500


@dashboard_bp.get("/stats")
def dashboard_stats_route():
    try:
        stats = dashboard_stats(context=request.args.get("context") or None)
        return jsonify(stats), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build dashboard stats")
        return jsonify({"error": "Internal server error"}), 500
