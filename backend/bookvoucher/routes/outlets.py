# Overview: Flask API routes for outlets and locations; parses input and returns JSON responses.

"""
Outlet management routes.

/api/locations is the location-picker view of the same table: active
outlets only, and a quick-add that needs just a name.
"""
from flask import Blueprint, request, jsonify, current_app
from ..extensions import db
from ..models import Outlet
from ..serializers import from_api, to_api
from ..services import outlet_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_object,
    ValidationError,
    NotFoundError,
    ConflictError,
)

OUTLET_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "address", "active"},
    required_on_create={"name", "code"},
    ignored_fields={"id", "created_at"},
)

outlets_bp = Blueprint("outlets", __name__, url_prefix="/api")


@outlets_bp.get("/outlets")
def list_outlets():
    try:
        outlets = outlet_service.list_outlets()
        return jsonify(to_api([o.to_dict() for o in outlets])), 200
    except Exception:
        current_app.logger.exception("Failed to list outlets")
        return jsonify({"error": "Internal server error"}), 500


@outlets_bp.post("/outlets")
def create_outlet():
    """
    Create an outlet.

    Request body:
    {
        "name": str,
        "code": str,
        "address": str (optional)
    }
    """
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=Outlet, payload=data, policy=OUTLET_POLICY, partial=False)
        outlet = outlet_service.create_outlet(patch=patch)
        db.session.commit()
        return jsonify(to_api(outlet.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create outlet")
        return jsonify({"error": "Internal server error"}), 500


@outlets_bp.put("/outlets/<int:outlet_id>")
def update_outlet(outlet_id: int):
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=Outlet, payload=data, policy=OUTLET_POLICY, partial=True)
        outlet = outlet_service.update_outlet(outlet_id, patch=patch)
        db.session.commit()
        return jsonify(to_api(outlet.to_dict())), 200

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
        current_app.logger.exception("Failed to update outlet")
        return jsonify({"error": "Internal server error"}), 500


@outlets_bp.delete("/outlets/<int:outlet_id>")
def delete_outlet(outlet_id: int):
    try:
        outlet_service.delete_outlet(outlet_id)
        db.session.commit()
        return jsonify({"ok": True}), 200

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete outlet")
        return jsonify({"error": "Internal server error"}), 500


@outlets_bp.get("/locations")
def list_locations():
    try:
        outlets = outlet_service.list_locations()
        return jsonify([{"id": o.id, "name": o.name} for o in outlets]), 200
    except Exception:
        current_app.logger.exception("Failed to list locations")
        return jsonify({"error": "Internal server error"}), 500


@outlets_bp.post("/locations")
def add_location():
    """Create an outlet from just a name; the code is generated (OUT-nnn)."""
    data = request.get_json(silent=True) or {}

    try:
        require_object(data)
        outlet = outlet_service.add_location(data.get("name"))
        db.session.commit()
        return jsonify({"id": outlet.id, "name": outlet.name}), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to add location")
        return jsonify({"error": "Internal server error"}), 500
