# Overview: Service-layer operations for outlets; encapsulates business logic and database work.

"""
Outlet Service

Outlets double as "locations": every stock row, redemption and day-end
report stores the outlet *name* in its ``location`` column. Lookups by
location therefore go through ``require_location``.
"""
from __future__ import annotations

from ..extensions import db
from ..models import DayEndReport, DayEndStockLine, Outlet, Redemption, VoucherStock
from ..validation import ConflictError, NotFoundError, ValidationError

OUTLET_MUTABLE_FIELDS = {"name", "code", "address", "active"}

# Tables that store the outlet name in their location column.
LOCATION_MODELS = (VoucherStock, Redemption, DayEndReport, DayEndStockLine)


def list_outlets() -> list[Outlet]:
    return db.session.query(Outlet).order_by(Outlet.name.asc()).all()


def list_locations() -> list[Outlet]:
    """Active outlets only, as offered in location pickers."""
    return (
        db.session.query(Outlet)
        .filter(Outlet.active.is_(True))
        .order_by(Outlet.name.asc())
        .all()
    )


def get_outlet(outlet_id: int) -> Outlet:
    outlet = db.session.get(Outlet, outlet_id)
    if outlet is None:
        raise NotFoundError(f"Outlet {outlet_id} not found")
    return outlet


def require_location(location: str | None) -> Outlet:
    """
    Resolve a location string to an active outlet.

    Raises:
        ValidationError: location missing
        NotFoundError: no active outlet with that name
    """
    if location is None or str(location).strip() == "":
        raise ValidationError("location is required")
    outlet = (
        db.session.query(Outlet)
        .filter(Outlet.name == str(location).strip(), Outlet.active.is_(True))
        .first()
    )
    if outlet is None:
        raise NotFoundError(f"Location not found: {location}")
    return outlet


def _ensure_unique(name: str | None, code: str | None, exclude_id: int | None = None) -> None:
    query = db.session.query(Outlet)
    if exclude_id is not None:
        query = query.filter(Outlet.id != exclude_id)
    if name is not None and query.filter(Outlet.name == name).first():
        raise ConflictError(f"Outlet name already exists: {name}")
    if code is not None and query.filter(Outlet.code == code).first():
        raise ConflictError(f"Outlet code already exists: {code}")


def create_outlet(*, patch: dict) -> Outlet:
    _ensure_unique(patch.get("name"), patch.get("code"))
    outlet = Outlet(**patch)
    db.session.add(outlet)
    db.session.flush()
    return outlet


def update_outlet(outlet_id: int, *, patch: dict) -> Outlet:
    """
    Apply a partial update. A rename is carried over to every ledger,
    redemption and day-end row filed under the old name so stock history
    stays attached to the outlet.
    """
    outlet = get_outlet(outlet_id)
    _ensure_unique(patch.get("name"), patch.get("code"), exclude_id=outlet.id)
    old_name = outlet.name
    for k, v in patch.items():
        if k in OUTLET_MUTABLE_FIELDS:
            setattr(outlet, k, v)
    if outlet.name != old_name:
        _rename_location(old_name, outlet.name)
    db.session.flush()
    return outlet


def _rename_location(old_name: str, new_name: str) -> None:
    for model in LOCATION_MODELS:
        db.session.query(model).filter(model.location == old_name).update(
            {model.location: new_name}, synchronize_session="fetch"
        )


def delete_outlet(outlet_id: int) -> None:
    outlet = get_outlet(outlet_id)
    db.session.delete(outlet)
    db.session.flush()


def next_outlet_code() -> str:
    """Generate the next free OUT-nnn code."""
    n = db.session.query(Outlet).count() + 1
    while True:
        code = f"OUT-{str(n).zfill(3)}"
        if not db.session.query(Outlet).filter_by(code=code).first():
            return code
        n += 1


def add_location(name: str | None) -> Outlet:
    """Quick-add an outlet from a location picker (name only)."""
    if name is None or str(name).strip() == "":
        raise ValidationError("name is required")
    return create_outlet(patch={"name": str(name).strip(), "code": next_outlet_code(), "active": True})
