# backend/bookvoucher/routes/stock.py
"""
Voucher stock ledger API routes.

Grade labels come from the GRADE_CATALOGUE config setting.
"""
from flask import Blueprint, request, jsonify, current_app
from ..extensions import db
from ..serializers import from_api, to_api
from ..services import stock_service
from ..validation import ValidationError, NotFoundError, ConflictError, require_object


stock_bp = Blueprint("stock", __name__, url_prefix="/api")


def _grades() -> list[str]:
    return list(current_app.config["GRADE_CATALOGUE"])


def _require_args(*names: str) -> dict:
    values = {name: request.args.get(name) for name in names}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValidationError(f"Missing required query parameter(s): {', '.join(missing)}")
    return values


@stock_bp.get("/grades")
def list_grades():
    return jsonify(_grades()), 200


@stock_bp.get("/stock")
def list_stock():
    """
    List stock ledger rows, newest date first.

    Query parameters:
        location: Outlet name (optional)
        date: YYYY-MM-DD (optional)
        grade: Grade label (optional)
    """
    try:
        entries = stock_service.list_stock(
            location=request.args.get("location"),
            date=request.args.get("date"),
            grade=request.args.get("grade"),
        )
        return jsonify(to_api([e.to_dict() for e in entries])), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.post("/stock")
def record_stock():
    """
    Record a day's stock movement for one grade at one outlet.

    Request body:
    {
        "grade": str,
        "location": str,
        "date": "YYYY-MM-DD",
        "openingStock": int,
        "received": int (optional, default 0),
        "redeemed": int (optional, default 0),
        "closingStock": int (optional, must match the computed value),
        "voucherId": str (optional),
        "notes": str (optional)
    }

    Returns:
        201: Entry created
        400: Missing/invalid fields
        404: Unknown grade or location
        409: Entry already exists for grade/location/date
    """
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        entry = stock_service.record_movement(
            grade=data.get("grade"),
            location=data.get("location"),
            date=data.get("date"),
            opening=data.get("opening_stock"),
            received=data.get("received"),
            redeemed=data.get("redeemed"),
            notes=data.get("notes"),
            voucher_id=data.get("voucher_id"),
            closing=data.get("closing_stock"),
            grades=_grades(),
        )
        db.session.commit()
        return jsonify(to_api(entry.to_dict())), 201

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
        current_app.logger.exception("Failed to record stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.put("/stock/<int:entry_id>")
def update_stock(entry_id: int):
    """Correct opening/received/redeemed/notes on an entry; closing is recomputed."""
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        entry = stock_service.update_movement(entry_id, patch=data)
        db.session.commit()
        return jsonify(to_api(entry.to_dict())), 200

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to update stock entry")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.post("/stock/<int:entry_id>/override")
def override_stock(entry_id: int):
    """
    Set a physically counted closing stock on an entry.

    Request body:
    {
        "closingStock": int,
        "notes": str (optional)
    }
    """
    data = from_api(request.get_json(silent=True) or {})

    try:
        require_object(data)
        if "closing_stock" not in data:
            raise ValidationError("closing_stock is required")
        entry = stock_service.override_closing(
            entry_id,
            closing_stock=data["closing_stock"],
            notes=data.get("notes"),
        )
        db.session.commit()
        current_app.logger.info(
            "Closing stock overridden on entry %s to %s", entry.id, entry.closing_stock
        )
        return jsonify(to_api(entry.to_dict())), 200

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to override closing stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/stock/current")
def get_current_stock():
    """Query parameters: grade, location, asOf (optional, default today)."""
    try:
        args = _require_args("grade", "location")
        quantity = stock_service.current_stock(
            args["grade"], args["location"], request.args.get("asOf")
        )
        return jsonify(to_api({
            "grade": args["grade"],
            "location": args["location"],
            "current_stock": quantity,
        })), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to read current stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/stock/previous-closing")
def get_previous_closing():
    """Query parameters: grade, location, before (YYYY-MM-DD)."""
    try:
        args = _require_args("grade", "location", "before")
        quantity = stock_service.previous_closing(args["grade"], args["location"], args["before"])
        return jsonify(to_api({
            "grade": args["grade"],
            "location": args["location"],
            "before": args["before"],
            "closing_stock": quantity,
        })), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to read previous closing stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/stock/opening")
def get_opening_stock():
    """Query parameters: grade, location, date (YYYY-MM-DD)."""
    try:
        args = _require_args("grade", "location", "date")
        quantity = stock_service.opening_stock_for_date(args["grade"], args["location"], args["date"])
        return jsonify(to_api({
            "grade": args["grade"],
            "location": args["location"],
            "date": args["date"],
            "opening_stock": quantity,
        })), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to read opening stock")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/stock/summary")
def get_stock_summary():
    """Current stock for every tracked grade at an outlet, keyed by grade label."""
    try:
        args = _require_args("location")
        summary = stock_service.stock_summary(
            args["location"], _grades(), request.args.get("asOf")
        )
        return jsonify(to_api({
            "location": args["location"],
            "stock": summary,
        }, passthrough={"stock"})), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to build stock summary")
        return jsonify({"error": "Internal server error"}), 500
