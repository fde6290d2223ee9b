# backend/bookvoucher/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Outlet, User, VoucherStock, DayEndReport
from ..serializers import to_api
from bookvoucher.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        outlet_count = db.session.query(Outlet).count()
        user_count = db.session.query(User).count()
        stock_count = db.session.query(VoucherStock).count()
        report_count = db.session.query(DayEndReport).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "outlets": outlet_count,
                "users": user_count,
                "stock_entries": stock_count,
                "day_end_reports": report_count,
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


def check_catalogue_health() -> dict:
    """A usable deployment needs at least one grade and one active outlet."""
    grades = current_app.config.get("GRADE_CATALOGUE") or []
    try:
        active_outlets = db.session.query(Outlet).filter(Outlet.active.is_(True)).count()
    except Exception:
        current_app.logger.exception("Catalogue health check failed")
        return {"status": "unhealthy", "error": "Database error"}

    status = "healthy" if grades and active_outlets else "degraded"
    return {
        "status": status,
        "details": {
            "grades": len(grades),
            "active_outlets": active_outlets,
        },
    }


@system_bp.get("/api/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (still operational)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    catalogue_health = check_catalogue_health()

    all_checks = [database_health, catalogue_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    return to_api({
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "catalogue": catalogue_health,
        },
    }), http_status


@system_bp.get("/api/version")
def version():
    """Non-sensitive deployment information."""
    env = "production" if not current_app.debug else "development"

    return to_api({
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    })
