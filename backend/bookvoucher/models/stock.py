from __future__ import annotations

from ..extensions import db
from bookvoucher.time_utils import to_utc_z

SNAPSHOT_OPENING = "OPENING"
SNAPSHOT_CLOSING = "CLOSING"


class VoucherStock(db.Model):
    """
    Stock ledger row: one grade's vouchers at one outlet on one day.

    closing_stock = opening_stock + received - redeemed, except after an
    explicit physical-count override.

    There is no link to the previous day's row. The next day's opening is
    derived by querying the latest row with date < target, which relies on
    ``date`` being zero-padded YYYY-MM-DD so string order is date order.
    """
    __tablename__ = "voucher_stock"
    __table_args__ = (
        db.UniqueConstraint("grade", "location", "date", name="uq_voucher_stock_grade_location_date"),
        db.Index("ix_voucher_stock_date_location", "date", "location"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    voucher_id = db.Column(db.String(64), nullable=False)
    grade = db.Column(db.String(32), nullable=False)
    opening_stock = db.Column(db.Integer, nullable=False)
    received = db.Column(db.Integer, nullable=False, default=0)
    redeemed = db.Column(db.Integer, nullable=False, default=0)
    closing_stock = db.Column(db.Integer, nullable=False)
    date = db.Column(db.String(10), nullable=False)
    location = db.Column(db.String(120), nullable=False)
    notes = db.Column(db.Text, nullable=True)

    # Set when closing_stock was replaced by a physical count
    closing_overridden = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return (
            f"<VoucherStock id={self.id} grade={self.grade!r} "
            f"location={self.location!r} date={self.date} closing={self.closing_stock}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_id": self.voucher_id,
            "grade": self.grade,
            "opening_stock": self.opening_stock,
            "received": self.received,
            "redeemed": self.redeemed,
            "closing_stock": self.closing_stock,
            "date": self.date,
            "location": self.location,
            "notes": self.notes,
            "closing_overridden": self.closing_overridden,
            "created_at": to_utc_z(self.created_at),
        }


class DayEndReport(db.Model):
    """
    Daily reconciliation for one outlet.

    LIFECYCLE:
    1. Pending: created with an opening snapshot; closing mirrors opening
    2. Counted: physical count entered, discrepancies attached (terminal)

    Snapshots are copies of ledger values taken at creation and at count
    time, so later ledger edits never alter a closed report.
    """
    __tablename__ = "day_end_reports"
    __table_args__ = (
        db.UniqueConstraint("date", "location", name="uq_day_end_reports_date_location"),
        db.Index("ix_day_end_reports_date_location", "date", "location"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.String(10), nullable=False)
    location = db.Column(db.String(120), nullable=False)
    staff_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    total_redemptions = db.Column(db.Integer, nullable=False, default=0)
    total_value_cents = db.Column(db.Integer, nullable=False, default=0)

    stock_counted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    stock_count_date = db.Column(db.DateTime(timezone=True), nullable=True)
    stock_counted_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    staff = db.relationship("User", foreign_keys=[staff_id])
    counted_by = db.relationship("User", foreign_keys=[stock_counted_by])
    stock_lines = db.relationship(
        "DayEndStockLine",
        backref="report",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="DayEndStockLine.id",
    )
    discrepancies = db.relationship(
        "StockDiscrepancy",
        backref="report",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="StockDiscrepancy.id",
    )

    def __repr__(self) -> str:
        return f"<DayEndReport id={self.id} date={self.date} location={self.location!r} counted={self.stock_counted}>"

    def snapshot(self, kind: str) -> list["DayEndStockLine"]:
        return [line for line in self.stock_lines if line.kind == kind]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "location": self.location,
            "staff_id": self.staff_id,
            "opening_stock": [line.to_dict() for line in self.snapshot(SNAPSHOT_OPENING)],
            "closing_stock": [line.to_dict() for line in self.snapshot(SNAPSHOT_CLOSING)],
            "total_redemptions": self.total_redemptions,
            "total_value_cents": self.total_value_cents,
            "stock_counted": self.stock_counted,
            "stock_count_date": to_utc_z(self.stock_count_date) if self.stock_count_date else None,
            "stock_counted_by": self.stock_counted_by,
            "discrepancies": [d.to_dict() for d in self.discrepancies] if self.stock_counted else None,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
        }


class DayEndStockLine(db.Model):
    """
    One grade's row in a report's opening or closing snapshot.
    Mirrors the VoucherStock columns; copied, never joined back.
    """
    __tablename__ = "day_end_stock_lines"
    __table_args__ = (
        db.UniqueConstraint("report_id", "kind", "grade", name="uq_day_end_stock_lines_report_kind_grade"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(
        db.Integer,
        db.ForeignKey("day_end_reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # OPENING or CLOSING
    kind = db.Column(db.String(16), nullable=False)

    voucher_id = db.Column(db.String(64), nullable=False)
    grade = db.Column(db.String(32), nullable=False)
    opening_stock = db.Column(db.Integer, nullable=False)
    received = db.Column(db.Integer, nullable=False, default=0)
    redeemed = db.Column(db.Integer, nullable=False, default=0)
    closing_stock = db.Column(db.Integer, nullable=False)
    date = db.Column(db.String(10), nullable=False)
    location = db.Column(db.String(120), nullable=False)

    def to_dict(self) -> dict:
        return {
            "voucher_id": self.voucher_id,
            "grade": self.grade,
            "opening_stock": self.opening_stock,
            "received": self.received,
            "redeemed": self.redeemed,
            "closing_stock": self.closing_stock,
            "date": self.date,
            "location": self.location,
        }


class StockDiscrepancy(db.Model):
    """
    Signed difference between expected and counted stock for one grade.

    WHY: Only non-zero differences are stored; an empty set means the
    count matched the report's opening snapshot exactly.
    """
    __tablename__ = "stock_discrepancies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    report_id = db.Column(
        db.Integer,
        db.ForeignKey("day_end_reports.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    voucher_id = db.Column(db.String(64), nullable=False)
    grade = db.Column(db.String(32), nullable=False)
    expected_stock = db.Column(db.Integer, nullable=False)
    actual_stock = db.Column(db.Integer, nullable=False)
    # actual_stock - expected_stock
    difference = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "voucher_id": self.voucher_id,
            "grade": self.grade,
            "expected_stock": self.expected_stock,
            "actual_stock": self.actual_stock,
            "difference": self.difference,
            "notes": self.notes,
        }
