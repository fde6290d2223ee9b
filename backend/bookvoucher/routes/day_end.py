# backend/bookvoucher/routes/day_end.py
"""
Day-end report API routes.

Report bodies carry the redemption value as ``totalValueCents`` (integer
cents); there is no decimal ``totalValue`` field.
"""
from flask import Blueprint, request, jsonify, current_app
from ..extensions import db
from ..serializers import from_api, to_api
from ..services import day_end_service
from ..validation import ValidationError, NotFoundError, ConflictError, require_object


day_end_bp = Blueprint("day_end", __name__, url_prefix="/api/day-end-reports")


def _grades() -> list[str]:
    return list(current_app.config["GRADE_CATALOGUE"])


@day_end_bp.get("")
def list_reports():
    """
    List day-end reports, newest date first.

    Query parameters:
        location: Outlet name (optional)
        date: YYYY-MM-DD (optional)
    """
    try:
        reports = day_end_service.list_reports(
            location=request.args.get("location"),
            date=request.args.get("date"),
        )
        return jsonify(to_api([r.to_dict() for r in reports])), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list day-end reports")
        return jsonify({"error": "Internal server error"}), 500


@day_end_bp.post("")
def create_report():
    """
    Open the day-end report for an outlet.

    Request body:
    {
        "date": "YYYY-MM-DD",
        "location": str,
        "staffId": int,
        "notes": str (optional)
    }

    Returns:
        201: Report created with opening/closing snapshots
             (redemption value in ``totalValueCents``, integer cents)
        400: Invalid request
        404: Unknown location or staff
        409: Report already exists for date/location
    """
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        report = day_end_service.create_report(
            date=data.get("date"),
            location=data.get("location"),
            staff_id=data.get("staff_id"),
            grades=_grades(),
            notes=data.get("notes"),
        )
        db.session.commit()
        return jsonify(to_api(report.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create day-end report")
        return jsonify({"error": "Internal server error"}), 500


@day_end_bp.get("/lookup")
def lookup_report():
    """Find the report for a date and outlet. Query parameters: date, location."""
    date = request.args.get("date")
    location = request.args.get("location")

    try:
        if not date or not location:
            raise ValidationError("date and location are required")
        report = day_end_service.find_report(date, location)
        if report is None:
            raise NotFoundError(f"No day-end report for {location} on {date}")
        return jsonify(to_api(report.to_dict())), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to look up day-end report")
        return jsonify({"error": "Internal server error"}), 500


@day_end_bp.get("/<int:report_id>")
def get_report(report_id: int):
    try:
        report = day_end_service.get_report(report_id)
        return jsonify(to_api(report.to_dict())), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load day-end report")
        return jsonify({"error": "Internal server error"}), 500


@day_end_bp.post("/<int:report_id>/stock-count")
def complete_stock_count(report_id: int):
    """
    Record the physical stock count for a report.

    Request body:
    {
        "actualCounts": {"<grade>": int, ...},
        "countedBy": int
    }

    Returns:
        200: Report with discrepancies
        400: Missing/negative counts
        404: Report, user or grade not found
        409: Stock already counted
    """
    data = from_api(request.get_json(silent=True) or {}, passthrough={"actualCounts"})

    try:
        require_object(data)
        report = day_end_service.complete_stock_count(
            report_id,
            actual_counts=data.get("actual_counts"),
            counted_by=data.get("counted_by"),
            grades=_grades(),
        )
        db.session.commit()
        return jsonify(to_api(report.to_dict())), 200

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to complete stock count")
        return jsonify({"error": "Internal server error"}), 500
