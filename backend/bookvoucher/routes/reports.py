# Overview: Flask API routes for dashboard stats and data export.

import json

from flask import Blueprint, Response, request, jsonify, current_app
from ..serializers import to_api
from ..services import reporting_service
from ..validation import ValidationError, coerce_date


reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/stats")
def get_stats():
    """Dashboard counters. Optional query parameter: today (YYYY-MM-DD)."""
    try:
        today = request.args.get("today")
        stats = reporting_service.get_stats(coerce_date("today", today) if today else None)
        return jsonify(to_api(stats)), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute stats")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/export")
def export_data():
    """Download a JSON backup of all back-office data."""
    try:
        snapshot = to_api(reporting_service.export_snapshot())
        filename = reporting_service.export_filename()
        return Response(
            json.dumps(snapshot, indent=2),
            mimetype="application/json",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except Exception:
        current_app.logger.exception("Failed to export data")
        return jsonify({"error": "Internal server error"}), 500
