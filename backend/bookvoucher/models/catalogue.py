from __future__ import annotations

from ..extensions import db
from bookvoucher.time_utils import to_utc_z


class School(db.Model):
    __tablename__ = "schools"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Booklist(db.Model):
    """
    A graded stationery bundle redeemed against a voucher.

    Amounts are stored in cents. total_amount_cents is the fixed bundle
    price and is not required to equal the sum of item amounts.
    """
    __tablename__ = "booklists"
    __table_args__ = (
        db.Index("ix_booklists_grade", "grade"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    grade = db.Column(db.String(32), nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "BooklistItem",
        backref="booklist",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="BooklistItem.id",
    )

    def __repr__(self) -> str:
        return f"<Booklist id={self.id} code={self.code!r} grade={self.grade!r}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "grade": self.grade,
            "total_amount_cents": self.total_amount_cents,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class BooklistItem(db.Model):
    __tablename__ = "booklist_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    booklist_id = db.Column(
        db.Integer,
        db.ForeignKey("booklists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    rate_cents = db.Column(db.Integer, nullable=False)
    # quantity * rate_cents, computed on write
    amount_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "booklist_id": self.booklist_id,
            "name": self.name,
            "quantity": self.quantity,
            "rate_cents": self.rate_cents,
            "amount_cents": self.amount_cents,
        }


class OptionItem(db.Model):
    """
    Toggleable checkbox shown on the redemption form. ``key`` names the
    redemption form field it drives (e.g. "hasTextbooks").
    """
    __tablename__ = "option_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    key = db.Column(db.String(64), nullable=False, unique=True)
    enabled = db.Column(db.Boolean, nullable=False, default=True)
    default_checked = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "key": self.key,
            "enabled": self.enabled,
            "default_checked": self.default_checked,
        }
