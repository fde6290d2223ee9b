# Overview: Service-layer operations for day-end reports; encapsulates business logic and database work.

"""
Day-end stock reconciliation.

LIFECYCLE (one report per date + outlet):
1. Pending: create_report snapshots opening stock for every tracked grade
   and copies it into the closing snapshot as a placeholder
2. Counted: complete_stock_count records the physical count, stores the
   non-zero discrepancies and stamps who counted and when (terminal)

Expected stock for the count is the report's own opening snapshot, not a
fresh ledger read, so the count is compared against what the report saw
when it was created.
"""
from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import (
    Booklist,
    DayEndReport,
    DayEndStockLine,
    Redemption,
    StockDiscrepancy,
)
from ..models.stock import SNAPSHOT_CLOSING, SNAPSHOT_OPENING
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_date,
    coerce_int,
)
from . import stock_service
from .outlet_service import require_location
from .user_service import get_user
from bookvoucher.time_utils import utcnow


def get_report(report_id: int) -> DayEndReport:
    report = db.session.get(DayEndReport, report_id)
    if report is None:
        raise NotFoundError(f"Day-end report {report_id} not found")
    return report


def find_report(date: str, location: str) -> DayEndReport | None:
    day = coerce_date("date", date)
    return (
        db.session.query(DayEndReport)
        .filter_by(date=day, location=location)
        .first()
    )


def list_reports(location: str | None = None, date: str | None = None) -> list[DayEndReport]:
    query = db.session.query(DayEndReport)
    if location:
        query = query.filter(DayEndReport.location == location)
    if date:
        query = query.filter(DayEndReport.date == coerce_date("date", date))
    return query.order_by(DayEndReport.date.desc(), DayEndReport.location.asc()).all()


def redemption_totals(date: str, location: str) -> tuple[int, int]:
    """
    Number of redemptions for the day and their value in cents.

    Value is the sum of the redeemed booklists' bundle prices.
    """
    rows = (
        db.session.query(Redemption.id, Booklist.total_amount_cents)
        .outerjoin(Booklist, Booklist.id == Redemption.booklist_id)
        .filter(Redemption.date == date, Redemption.location == location)
        .all()
    )
    return len(rows), sum(amount or 0 for _, amount in rows)


def _opening_line(grade: str, location: str, date: str) -> DayEndStockLine:
    today_entry = stock_service.find_entry(grade, location, date)
    if today_entry is not None:
        # Today's row already carries received stock in its opening
        opening = today_entry.opening_stock
        received = today_entry.received
        redeemed = today_entry.redeemed
        voucher_id = today_entry.voucher_id
    else:
        opening = stock_service.previous_closing(grade, location, date)
        received = 0
        redeemed = 0
        voucher_id = stock_service.default_voucher_id(grade)

    return DayEndStockLine(
        kind=SNAPSHOT_OPENING,
        voucher_id=voucher_id,
        grade=grade,
        opening_stock=opening,
        received=received,
        redeemed=redeemed,
        closing_stock=opening,
        date=date,
        location=location,
    )


def _copy_line(line: DayEndStockLine, kind: str) -> DayEndStockLine:
    return DayEndStockLine(
        kind=kind,
        voucher_id=line.voucher_id,
        grade=line.grade,
        opening_stock=line.opening_stock,
        received=line.received,
        redeemed=line.redeemed,
        closing_stock=line.closing_stock,
        date=line.date,
        location=line.location,
    )


def create_report(
    *,
    date,
    location,
    staff_id,
    grades: list[str],
    notes: str | None = None,
) -> DayEndReport:
    """
    Open the day-end report for an outlet.

    Args:
        date: Calendar day, YYYY-MM-DD
        location: Outlet name
        staff_id: User creating the report
        grades: Tracked grade catalogue to snapshot
        notes: Optional free text

    Returns:
        DayEndReport: Pending report with opening/closing snapshots

    Raises:
        ValidationError: missing date/location/staff or empty grade list
        NotFoundError: unknown location or staff
        ConflictError: a report already exists for (date, location)
    """
    day = coerce_date("date", date)
    outlet = require_location(location)
    if staff_id in (None, ""):
        raise ValidationError("staff_id is required")
    staff = get_user(coerce_int("staff_id", staff_id))
    if not grades:
        raise ValidationError("At least one grade must be tracked")

    if find_report(day, outlet.name) is not None:
        current_app.logger.warning(
            "Rejected duplicate day-end report for %s on %s", outlet.name, day
        )
        raise ConflictError(f"Day-end report already exists for {outlet.name} on {day}")

    total_redemptions, total_value_cents = redemption_totals(day, outlet.name)

    report = DayEndReport(
        date=day,
        location=outlet.name,
        staff_id=staff.id,
        total_redemptions=total_redemptions,
        total_value_cents=total_value_cents,
        stock_counted=False,
        notes=notes or None,
    )

    opening_lines = [_opening_line(grade, outlet.name, day) for grade in grades]
    report.stock_lines.extend(opening_lines)
    report.stock_lines.extend(_copy_line(line, SNAPSHOT_CLOSING) for line in opening_lines)

    db.session.add(report)
    db.session.flush()

    current_app.logger.info(
        "Created day-end report %s for %s on %s (%d redemptions)",
        report.id, outlet.name, day, total_redemptions,
    )
    return report


def _normalize_counts(actual_counts, grades: list[str]) -> dict[str, int]:
    if not isinstance(actual_counts, dict):
        raise ValidationError("actual_counts must be an object keyed by grade")

    unknown = sorted(set(actual_counts) - set(grades))
    if unknown:
        raise NotFoundError(f"Grade not found: {', '.join(unknown)}")

    missing = [grade for grade in grades if actual_counts.get(grade) in (None, "")]
    if missing:
        raise ValidationError(f"Missing counts for grades: {', '.join(missing)}")

    counts = {}
    for grade in grades:
        value = coerce_int(f"actual_counts[{grade}]", actual_counts[grade])
        if value < 0:
            raise ValidationError(f"actual_counts[{grade}] must be >= 0")
        counts[grade] = value
    return counts


def complete_stock_count(
    report_id: int,
    *,
    actual_counts,
    counted_by,
    grades: list[str],
) -> DayEndReport:
    """
    Record the physical stock count for a pending report.

    Counts are required for every grade in the catalogue and for every
    grade in the report's opening snapshot, so a grade dropped from the
    catalogue after the report was opened is still reconciled. For each
    of those grades the difference (actual - expected) is computed
    against the report's opening snapshot; each non-zero difference is
    stored as a StockDiscrepancy and the closing snapshot takes the counted
    value.

    Raises:
        NotFoundError: report, counting user, or a counted grade does not exist
        ConflictError: report has already been counted
        ValidationError: missing, negative or non-integer counts
    """
    report = get_report(report_id)
    if report.stock_counted:
        raise ConflictError(f"Stock count already completed for report {report_id}")

    if counted_by in (None, ""):
        raise ValidationError("counted_by is required")
    counter = get_user(coerce_int("counted_by", counted_by))

    opening = {line.grade: line for line in report.snapshot(SNAPSHOT_OPENING)}
    closing = {line.grade: line for line in report.snapshot(SNAPSHOT_CLOSING)}

    tracked = list(grades) + [grade for grade in opening if grade not in grades]
    counts = _normalize_counts(actual_counts, tracked)

    for grade in tracked:
        expected_line = opening.get(grade)
        expected = expected_line.opening_stock if expected_line else 0
        actual = counts[grade]
        difference = actual - expected

        closing_line = closing.get(grade)
        if closing_line is None:
            # Grade added to the catalogue after the report was opened
            closing_line = DayEndStockLine(
                kind=SNAPSHOT_CLOSING,
                voucher_id=stock_service.default_voucher_id(grade),
                grade=grade,
                opening_stock=expected,
                received=0,
                redeemed=0,
                closing_stock=actual,
                date=report.date,
                location=report.location,
            )
            report.stock_lines.append(closing_line)
        closing_line.closing_stock = actual

        if difference != 0:
            report.discrepancies.append(StockDiscrepancy(
                voucher_id=expected_line.voucher_id if expected_line else closing_line.voucher_id,
                grade=grade,
                expected_stock=expected,
                actual_stock=actual,
                difference=difference,
            ))

    now = utcnow()
    report.stock_counted = True
    report.stock_counted_by = counter.id
    report.stock_count_date = now
    report.completed_at = now
    db.session.flush()

    current_app.logger.info(
        "Completed stock count for report %s (%d discrepancies)",
        report.id, len(report.discrepancies),
    )
    return report
