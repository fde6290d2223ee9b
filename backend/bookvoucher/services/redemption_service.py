# Overview: Service-layer operations for voucher redemptions; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Redemption
from ..models.redemptions import CUSTOMIZATION_TYPES, DELIVERY_STATUSES
from ..validation import NotFoundError, enforce_choice, enforce_rules_non_negative
from .catalogue_service import get_booklist
from .outlet_service import require_location
from .user_service import get_user

REDEMPTION_MUTABLE_FIELDS = {
    "voucher_id", "staff_id", "date", "location",
    "parent_name", "contact_no", "student_name", "school", "student_class",
    "booklist_id", "single_ruled", "double_ruled", "square_ruled",
    "additional_items", "has_textbooks", "has_stationary", "lens", "no_name",
    "cellophane", "customization", "comments",
    "delivery_date", "collection_date", "delivery_status",
}

EXTRA_BOOK_FIELDS = ("single_ruled", "double_ruled", "square_ruled")


def _enforce_rules(patch: dict) -> None:
    enforce_choice(patch, "customization", CUSTOMIZATION_TYPES)
    enforce_choice(patch, "delivery_status", DELIVERY_STATUSES)
    enforce_rules_non_negative(patch, *EXTRA_BOOK_FIELDS)

    if patch.get("booklist_id") is not None:
        get_booklist(patch["booklist_id"])
    if patch.get("staff_id") is not None:
        get_user(patch["staff_id"])
    if "location" in patch:
        patch["location"] = require_location(patch["location"]).name


def list_redemptions(location: str | None = None, date: str | None = None) -> list[Redemption]:
    query = db.session.query(Redemption)
    if location:
        query = query.filter(Redemption.location == location)
    if date:
        query = query.filter(Redemption.date == date)
    return query.order_by(Redemption.created_at.desc(), Redemption.id.desc()).all()


def get_redemption(redemption_id: int) -> Redemption:
    redemption = db.session.get(Redemption, redemption_id)
    if redemption is None:
        raise NotFoundError(f"Redemption {redemption_id} not found")
    return redemption


def create_redemption(*, patch: dict) -> Redemption:
    """
    Record a voucher redemption from a validated patch.

    Raises:
        ValidationError: bad enumeration value or negative extra-book count
        NotFoundError: unknown booklist, staff member or location
    """
    _enforce_rules(patch)
    redemption = Redemption(**patch)
    db.session.add(redemption)
    db.session.flush()
    return redemption


def update_redemption(redemption_id: int, *, patch: dict) -> Redemption:
    redemption = get_redemption(redemption_id)
    _enforce_rules(patch)
    for k, v in patch.items():
        if k in REDEMPTION_MUTABLE_FIELDS:
            setattr(redemption, k, v)
    db.session.flush()
    return redemption


def delete_redemption(redemption_id: int) -> None:
    redemption = get_redemption(redemption_id)
    db.session.delete(redemption)
    db.session.flush()
