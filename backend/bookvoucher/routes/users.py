# Overview: Flask API routes for users and staff; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app
from ..extensions import db
from ..models import User
from ..serializers import from_api, to_api
from ..services import user_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_object,
    ValidationError,
    NotFoundError,
    ConflictError,
)

USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "name", "role", "outlet_id", "active"},
    required_on_create={"username", "name", "role"},
    ignored_fields={"id", "password", "outlet_name", "created_at"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api")


@users_bp.get("/users")
def list_users():
    """List all users (newest first) with their outlet name."""
    try:
        users = user_service.list_users()
        return jsonify(to_api([u.to_dict() for u in users])), 200
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/users")
def create_user():
    """
    Create a user.

    Request body:
    {
        "username": str,
        "password": str,
        "name": str,
        "role": "admin" | "staff",
        "outletId": int (optional)
    }

    Returns:
        201: User created
        400: Invalid request
        404: Outlet not found
        409: Username taken
    """
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=User, payload=data, policy=USER_POLICY, partial=False)
        user = user_service.create_user(patch=patch, password=data.get("password"))
        db.session.commit()
        return jsonify(to_api(user.to_dict())), 201

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
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.put("/users/<int:user_id>")
def update_user(user_id: int):
    """Partial update; a non-empty password is rehashed."""
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        patch = validate_payload(model=User, payload=data, policy=USER_POLICY, partial=True)
        user = user_service.update_user(user_id, patch=patch, password=data.get("password"))
        db.session.commit()
        return jsonify(to_api(user.to_dict())), 200

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
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/users/<int:user_id>")
def delete_user(user_id: int):
    try:
        user_service.delete_user(user_id)
        db.session.commit()
        return jsonify({"ok": True}), 200

    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/staff")
def list_staff():
    """Active staff users, for 'served by' and 'counted by' pickers."""
    try:
        staff = user_service.list_staff()
        return jsonify(to_api([
            {
                "id": s.id,
                "name": s.name,
                "username": s.username,
                "outlet_id": s.outlet_id,
                "outlet_name": s.outlet.name if s.outlet else None,
            }
            for s in staff
        ])), 200
    except Exception:
        current_app.logger.exception("Failed to list staff")
        return jsonify({"error": "Internal server error"}), 500
