# Overview: Service-layer operations for dashboard stats and data export.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import (
    Booklist,
    BooklistItem,
    DayEndReport,
    OptionItem,
    Outlet,
    Redemption,
    School,
    User,
    VoucherStock,
)
from ..models.redemptions import OPEN_DELIVERY_STATUSES
from bookvoucher.time_utils import to_utc_z, today_iso, utcnow


def get_stats(today: str | None = None) -> dict:
    """
    Dashboard counters.

    - total_redemptions: all redemptions on record
    - pending_deliveries: redemptions still pending or being wrapped
    - delivered_today: delivered with a delivery date of today
    - total_value_cents: sum of the redeemed booklists' bundle prices
    """
    today = today or today_iso()

    total = db.session.query(func.count(Redemption.id)).scalar() or 0
    pending = (
        db.session.query(func.count(Redemption.id))
        .filter(Redemption.delivery_status.in_(OPEN_DELIVERY_STATUSES))
        .scalar()
    ) or 0
    delivered_today = (
        db.session.query(func.count(Redemption.id))
        .filter(Redemption.delivery_status == "delivered", Redemption.delivery_date == today)
        .scalar()
    ) or 0
    total_value = (
        db.session.query(func.coalesce(func.sum(Booklist.total_amount_cents), 0))
        .select_from(Redemption)
        .join(Booklist, Booklist.id == Redemption.booklist_id)
        .scalar()
    ) or 0

    return {
        "total_redemptions": total,
        "pending_deliveries": pending,
        "delivered_today": delivered_today,
        "total_value_cents": int(total_value),
    }


def export_snapshot() -> dict:
    """Full JSON backup of the back-office data (password hashes excluded)."""
    return {
        "users": [u.to_dict() for u in db.session.query(User).order_by(User.id).all()],
        "outlets": [o.to_dict() for o in db.session.query(Outlet).order_by(Outlet.id).all()],
        "schools": [s.to_dict() for s in db.session.query(School).order_by(School.id).all()],
        "booklists": [
            b.to_dict(include_items=False)
            for b in db.session.query(Booklist).order_by(Booklist.id).all()
        ],
        "booklist_items": [
            i.to_dict() for i in db.session.query(BooklistItem).order_by(BooklistItem.id).all()
        ],
        "redemptions": [r.to_dict() for r in db.session.query(Redemption).order_by(Redemption.id).all()],
        "stock": [s.to_dict() for s in db.session.query(VoucherStock).order_by(VoucherStock.id).all()],
        "option_items": [o.to_dict() for o in db.session.query(OptionItem).order_by(OptionItem.id).all()],
        "day_end_reports": [
            r.to_dict() for r in db.session.query(DayEndReport).order_by(DayEndReport.id).all()
        ],
        "exported_at": to_utc_z(utcnow()),
    }


def export_filename() -> str:
    return f"booklist-backup-{today_iso()}.json"
