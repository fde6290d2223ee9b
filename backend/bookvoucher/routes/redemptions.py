# Overview: Flask API routes for voucher redemptions; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app
from ..extensions import db
from ..models import Redemption
from ..serializers import from_api, to_api
from ..services import redemption_service
from ..services.redemption_service import REDEMPTION_MUTABLE_FIELDS
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_object,
    coerce_date,
    ValidationError,
    NotFoundError,
)

REDEMPTION_POLICY = ModelValidationPolicy(
    writable_fields=set(REDEMPTION_MUTABLE_FIELDS),
    required_on_create={
        "voucher_id", "staff_id", "date", "location",
        "parent_name", "contact_no", "student_name", "school",
        "booklist_id", "customization", "delivery_status",
    },
    ignored_fields={"id", "created_at", "updated_at"},
)

redemptions_bp = Blueprint("redemptions", __name__, url_prefix="/api/redemptions")


@redemptions_bp.get("")
def list_redemptions():
    """
    List redemptions, newest first.

    Query parameters:
        location: Outlet name
        date: YYYY-MM-DD
    """
    try:
        date = request.args.get("date")
        redemptions = redemption_service.list_redemptions(
            location=request.args.get("location"),
            date=coerce_date("date", date) if date else None,
        )
        return jsonify(to_api([r.to_dict() for r in redemptions])), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list redemptions")
        return jsonify({"error": "Internal server error"}), 500


@redemptions_bp.post("")
def create_redemption():
    """
    Record a voucher redemption.

    Returns:
        201: Redemption created
        400: Missing/invalid fields
        404: Unknown booklist, staff or location
    """
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=Redemption, payload=data, policy=REDEMPTION_POLICY, partial=False)
        redemption = redemption_service.create_redemption(patch=patch)
        db.session.commit()
        return jsonify(to_api(redemption.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create redemption")
        return jsonify({"error": "Internal server error"}), 500


@redemptions_bp.get("/<int:redemption_id>")
def get_redemption(redemption_id: int):
    try:
        redemption = redemption_service.get_redemption(redemption_id)
        return jsonify(to_api(redemption.to_dict())), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load redemption")
        return jsonify({"error": "Internal server error"}), 500


@redemptions_bp.patch("/<int:redemption_id>")
def update_redemption(redemption_id: int):
    """Partial update, e.g. {"deliveryStatus": "delivered", "deliveryDate": "2024-01-05"}."""
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=Redemption, payload=data, policy=REDEMPTION_POLICY, partial=True)
        redemption = redemption_service.update_redemption(redemption_id, patch=patch)
        db.session.commit()
        return jsonify(to_api(redemption.to_dict())), 200

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update redemption")
        return jsonify({"error": "Internal server error"}), 500


@redemptions_bp.delete("/<int:redemption_id>")
def delete_redemption(redemption_id: int):
    try:
        redemption_service.delete_redemption(redemption_id)
        db.session.commit()
        return jsonify({"ok": True}), 200

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete redemption")
        return jsonify({"error": "Internal server error"}), 500
