# Overview: Service-layer operations for the voucher stock ledger; encapsulates business logic and database work.

"""
Voucher stock ledger.

WHY: Each outlet tracks, per grade and per day, how many vouchers it
opened with, received and redeemed. Closing stock feeds the next day's
opening stock. That link is derived on read (latest row strictly before
the target date) rather than stored, so editing an older row is enough
to change what later days see as their opening.

DUPLICATES: A (grade, location, date) key holds at most one row.
Recording a second movement for an existing key raises ConflictError;
corrections go through update_movement.

Dates are compared as strings. This is only order-preserving because every
date is normalized to zero-padded YYYY-MM-DD before it is stored or queried.
"""
from __future__ import annotations

from ..extensions import db
from ..models import VoucherStock
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_date,
    require_non_negative,
    require_text,
)
from .outlet_service import require_location
from bookvoucher.time_utils import today_iso

STOCK_QUANTITY_FIELDS = ("opening_stock", "received", "redeemed")


def default_voucher_id(grade: str) -> str:
    return f"VCH-{grade}"


def compute_closing(opening: int, received: int, redeemed: int) -> int:
    return opening + received - redeemed


def require_grade(grade, grades: list[str] | None) -> str:
    """
    Validate a grade label against the tracked catalogue.

    Raises:
        ValidationError: grade missing
        NotFoundError: grade not in the catalogue (when one is given)
    """
    grade = require_text("grade", grade)
    if grades is not None and grade not in grades:
        raise NotFoundError(f"Grade not found: {grade}")
    return grade


def _latest_entry(grade: str, location: str, *, before: str | None = None, on_or_before: str | None = None):
    query = db.session.query(VoucherStock).filter(
        VoucherStock.grade == grade,
        VoucherStock.location == location,
    )
    if before is not None:
        query = query.filter(VoucherStock.date < before)
    if on_or_before is not None:
        query = query.filter(VoucherStock.date <= on_or_before)
    return query.order_by(VoucherStock.date.desc(), VoucherStock.id.desc()).first()


def find_entry(grade: str, location: str, date: str) -> VoucherStock | None:
    return (
        db.session.query(VoucherStock)
        .filter_by(grade=grade, location=location, date=date)
        .first()
    )


def get_entry(entry_id: int) -> VoucherStock:
    entry = db.session.get(VoucherStock, entry_id)
    if entry is None:
        raise NotFoundError(f"Stock entry {entry_id} not found")
    return entry


def record_movement(
    *,
    grade,
    location,
    date,
    opening,
    received=0,
    redeemed=0,
    notes: str | None = None,
    voucher_id: str | None = None,
    closing=None,
    grades: list[str] | None = None,
) -> VoucherStock:
    """
    Record one day's stock movement for a grade at an outlet.

    closing_stock is always computed as opening + received - redeemed.
    A caller-supplied ``closing`` is accepted only as a cross-check.

    Args:
        grade: Grade label (validated against ``grades`` when given)
        location: Outlet name
        date: Calendar day, YYYY-MM-DD
        opening: Opening stock (>= 0)
        received: Vouchers received that day (>= 0)
        redeemed: Vouchers redeemed that day (>= 0)
        notes: Free text
        voucher_id: Voucher batch reference (defaults to VCH-<grade>)
        closing: Optional client-computed closing stock to cross-check
        grades: Tracked grade catalogue

    Returns:
        VoucherStock: The new ledger row (flushed, not committed)

    Raises:
        ValidationError: missing/invalid fields, negative quantities, closing mismatch
        NotFoundError: unknown grade or location
        ConflictError: a row already exists for (grade, location, date)
    """
    grade = require_grade(grade, grades)
    day = coerce_date("date", date)
    outlet = require_location(location)

    opening = require_non_negative("opening_stock", opening)
    received = require_non_negative("received", 0 if received is None else received)
    redeemed = require_non_negative("redeemed", 0 if redeemed is None else redeemed)
    closing_stock = compute_closing(opening, received, redeemed)

    if closing is not None and closing != "":
        if require_non_negative("closing_stock", closing) != closing_stock:
            raise ValidationError(
                f"closing_stock must equal opening_stock + received - redeemed ({closing_stock})"
            )

    if find_entry(grade, outlet.name, day) is not None:
        raise ConflictError(
            f"Stock already recorded for grade {grade} at {outlet.name} on {day}"
        )

    entry = VoucherStock(
        voucher_id=(voucher_id or "").strip() or default_voucher_id(grade),
        grade=grade,
        opening_stock=opening,
        received=received,
        redeemed=redeemed,
        closing_stock=closing_stock,
        date=day,
        location=outlet.name,
        notes=notes or None,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def update_movement(entry_id: int, *, patch: dict) -> VoucherStock:
    """
    Correct quantities or notes on an existing row and recompute closing.

    Key fields (grade, location, date) are immutable. A patch that only
    touches notes or voucher_id keeps an overridden closing as it is.
    """
    entry = get_entry(entry_id)

    for key in ("grade", "location", "date"):
        if key in patch and patch[key] not in (None, getattr(entry, key)):
            raise ValidationError(f"{key} cannot be changed on an existing stock entry")

    quantities = {
        field: require_non_negative(field, patch[field])
        for field in STOCK_QUANTITY_FIELDS
        if field in patch and patch[field] is not None
    }
    for field, value in quantities.items():
        setattr(entry, field, value)

    if "notes" in patch:
        entry.notes = patch["notes"] or None
    if patch.get("voucher_id"):
        entry.voucher_id = str(patch["voucher_id"]).strip()

    if quantities:
        entry.closing_stock = compute_closing(entry.opening_stock, entry.received, entry.redeemed)
        entry.closing_overridden = False
    db.session.flush()
    return entry


def override_closing(entry_id: int, *, closing_stock, notes: str | None = None) -> VoucherStock:
    """
    Replace a row's closing stock with a physically counted value.

    This is the only path on which closing_stock may differ from
    opening + received - redeemed; the row is flagged closing_overridden.
    """
    entry = get_entry(entry_id)
    entry.closing_stock = require_non_negative("closing_stock", closing_stock)
    entry.closing_overridden = True
    if notes:
        entry.notes = notes
    db.session.flush()
    return entry


def current_stock(grade: str, location: str, as_of: str | None = None) -> int:
    """Closing stock of the latest row dated on or before ``as_of`` (default today); 0 if none."""
    as_of = coerce_date("as_of", as_of) if as_of else today_iso()
    entry = _latest_entry(grade, location, on_or_before=as_of)
    return entry.closing_stock if entry else 0


def previous_closing(grade: str, location: str, before: str) -> int:
    """Closing stock of the latest row dated strictly before ``before``; 0 if none."""
    before = coerce_date("before", before)
    entry = _latest_entry(grade, location, before=before)
    return entry.closing_stock if entry else 0


def opening_stock_for_date(grade: str, location: str, date: str) -> int:
    """
    Opening stock for a day: that day's own row if one exists (its opening
    already reflects the day's received stock), else the previous closing.
    """
    day = coerce_date("date", date)
    entry = find_entry(grade, location, day)
    if entry is not None:
        return entry.opening_stock
    return previous_closing(grade, location, day)


def list_stock(
    location: str | None = None,
    date: str | None = None,
    grade: str | None = None,
) -> list[VoucherStock]:
    query = db.session.query(VoucherStock)
    if location:
        query = query.filter(VoucherStock.location == location)
    if date:
        query = query.filter(VoucherStock.date == coerce_date("date", date))
    if grade:
        query = query.filter(VoucherStock.grade == grade)
    return query.order_by(VoucherStock.date.desc(), VoucherStock.grade.asc()).all()


def stock_summary(location: str, grades: list[str], as_of: str | None = None) -> dict[str, int]:
    """Current stock for every tracked grade at an outlet."""
    outlet = require_location(location)
    return {grade: current_stock(grade, outlet.name, as_of) for grade in grades}
