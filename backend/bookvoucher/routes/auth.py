# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/bookvoucher/routes/auth.py
"""
Login API route.

Staff pick the outlet they are working at on the login screen; admins
log in without one. The client keeps the returned user/outlet pair.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..serializers import from_api, to_api
from ..validation import ValidationError, require_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user.

    Request body:
    {
        "username": str,
        "password": str,
        "outletId": int  // required for staff
    }

    Returns:
        200: {"user": {...}, "outlet": {...} | null}
        400: Missing fields or invalid outlet
        401: Invalid credentials
    """
    try:
        data = from_api(request.get_json(silent=True) or {})
        require_object(data)
        username = data.get("username")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "Username and password are required"}), 400

        user = auth_service.authenticate(username, password)
        if not user:
            current_app.logger.info("Failed login for %s", username)
            return jsonify({"error": "Invalid credentials"}), 401

        outlet = auth_service.resolve_login_outlet(user, data.get("outlet_id"))

        return jsonify(to_api({
            "user": user.to_dict(),
            "outlet": outlet.to_dict() if outlet else None,
        })), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500
