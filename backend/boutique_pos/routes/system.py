# backend/boutique_pos/routes/system.py
"""
System health, version and uploaded-file endpoints.
"""

import sys
import time

from flask import Blueprint, current_app, send_from_directory
from werkzeug.utils import secure_filename

from ..extensions import db
from ..models import Employee, Product, DocumentSequence
from ..time_utils import utcnow, to_utc_z

API_VERSION = "1.0.0"

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        employee_count = db.session.query(Employee).count()
        product_count = db.session.query(Product).count()
        sequence_count = db.session.query(DocumentSequence).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "employees": employee_count,
                "products": product_count,
                "document_sequences": sequence_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_seed_health() -> dict:
    """Without employees nobody can be attributed to a sale; report degraded."""
    try:
        employee_count = db.session.query(Employee).count()
    except Exception:
        current_app.logger.exception("Seed health check failed")
        return {"status": "unhealthy", "error": "Database error"}

    if employee_count == 0:
        return {"status": "degraded", "warning": "No employees configured (run `flask system init`)"}
    return {"status": "healthy"}


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    seed_health = check_seed_health()

    all_checks = [database_health, seed_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "seed": seed_health,
        }
    }, http_status


@system_bp.get("/version")
def version():
    """
    Non-sensitive deployment information. No secrets, credentials or paths.
    """
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }


@system_bp.get("/uploads/<path:filename>")
def uploaded_file(filename: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], secure_filename(filename))
