# Overview: Flask API routes for schools, booklists and option items; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app
from ..extensions import db
from ..models import Booklist, OptionItem
from ..serializers import from_api, to_api
from ..services import catalogue_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_object,
    ValidationError,
    NotFoundError,
    ConflictError,
)

BOOKLIST_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "grade", "total_amount_cents"},
    required_on_create={"code", "name", "grade"},
    ignored_fields={"id", "created_at"},
)

OPTION_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "key", "enabled", "default_checked"},
    required_on_create={"name", "key"},
    ignored_fields={"id", "created_at"},
)

catalogue_bp = Blueprint("catalogue", __name__, url_prefix="/api")


# =============================================================================
# Schools
# =============================================================================

@catalogue_bp.get("/schools")
def list_schools():
    try:
        schools = catalogue_service.list_schools()
        return jsonify(to_api([s.to_dict() for s in schools])), 200
    except Exception:
        current_app.logger.exception("Failed to list schools")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.post("/schools")
def create_school():
    data = request.get_json(silent=True) or {}

    try:
        require_object(data)
        school = catalogue_service.create_school(data.get("name"))
        db.session.commit()
        return jsonify(to_api(school.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create school")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# Booklists
# =============================================================================

@catalogue_bp.get("/booklists")
def list_booklists():
    """List booklists ordered by grade, each with its items."""
    try:
        booklists = catalogue_service.list_booklists()
        return jsonify(to_api([b.to_dict() for b in booklists])), 200
    except Exception:
        current_app.logger.exception("Failed to list booklists")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.get("/booklists/<int:booklist_id>")
def get_booklist(booklist_id: int):
    try:
        booklist = catalogue_service.get_booklist(booklist_id)
        return jsonify(to_api(booklist.to_dict())), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load booklist")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.post("/booklists")
def create_booklist():
    """
    Create a booklist with items.

    Request body:
    {
        "code": str,
        "name": str,
        "grade": str,
        "totalAmountCents": int (optional, defaults to the item sum),
        "items": [{"name": str, "quantity": int, "rateCents": int}, ...]
    }
    """
    data = from_api(request.get_json(silent=True) or {})

    try:
        items = require_object(data).pop("items", None)
        patch = validate_payload(model=Booklist, payload=data, policy=BOOKLIST_POLICY, partial=False)
        booklist = catalogue_service.create_booklist(patch=patch, items=items)
        db.session.commit()
        return jsonify(to_api(booklist.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create booklist")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.put("/booklists/<int:booklist_id>")
def update_booklist(booklist_id: int):
    """Update a booklist; an ``items`` array replaces all existing items."""
    data = from_api(request.get_json(silent=True) or {})

    try:
        items = require_object(data).pop("items", None)
        patch = validate_payload(model=Booklist, payload=data, policy=BOOKLIST_POLICY, partial=True)
        booklist = catalogue_service.update_booklist(booklist_id, patch=patch, items=items)
        db.session.commit()
        return jsonify(to_api(booklist.to_dict())), 200

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update booklist")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.delete("/booklists/<int:booklist_id>")
def delete_booklist(booklist_id: int):
    try:
        catalogue_service.delete_booklist(booklist_id)
        db.session.commit()
        return jsonify({"ok": True}), 200

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete booklist")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# Option items
# =============================================================================

@catalogue_bp.get("/option-items")
def list_option_items():
    try:
        items = catalogue_service.list_option_items()
        return jsonify(to_api([i.to_dict() for i in items])), 200
    except Exception:
        current_app.logger.exception("Failed to list option items")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.post("/option-items")
def create_option_item():
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=OptionItem, payload=data, policy=OPTION_ITEM_POLICY, partial=False)
        item = catalogue_service.create_option_item(patch=patch)
        db.session.commit()
        return jsonify(to_api(item.to_dict())), 201

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to create option item")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.put("/option-items/<int:item_id>")
def update_option_item(item_id: int):
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=OptionItem, payload=data, policy=OPTION_ITEM_POLICY, partial=True)
        item = catalogue_service.update_option_item(item_id, patch=patch)
        db.session.commit()
        return jsonify(to_api(item.to_dict())), 200

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
        current_app.logger.exception("Failed to update option item")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.post("/option-items/<int:item_id>/toggle")
def toggle_option_item(item_id: int):
    try:
        item = catalogue_service.toggle_option_item(item_id)
        db.session.commit()
        return jsonify(to_api(item.to_dict())), 200

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to toggle option item")
        return jsonify({"error": "Internal server error"}), 500


@catalogue_bp.delete("/option-items/<int:item_id>")
def delete_option_item(item_id: int):
    try:
        catalogue_service.delete_option_item(item_id)
        db.session.commit()
        return jsonify({"ok": True}), 200

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete option item")
        return jsonify({"error": "Internal server error"}), 500
