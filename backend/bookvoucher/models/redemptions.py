from __future__ import annotations

from ..extensions import db
from bookvoucher.time_utils import to_utc_z

DELIVERY_STATUSES = frozenset({"pending", "wrapping", "delivered", "collected"})
OPEN_DELIVERY_STATUSES = frozenset({"pending", "wrapping"})

CUSTOMIZATION_TYPES = frozenset({
    "standard",
    "customized_design",
    "cellophane_only",
    "text_book",
    "customized_design_text_book",
})


class Redemption(db.Model):
    """
    A voucher exchanged for a booklist bundle at an outlet.

    ``date`` is the redemption day (YYYY-MM-DD) and, together with
    ``location``, is what the day-end report aggregates on.
    """
    __tablename__ = "redemptions"
    __table_args__ = (
        db.Index("ix_redemptions_date", "date"),
        db.Index("ix_redemptions_location", "location"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    voucher_id = db.Column(db.String(64), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    date = db.Column(db.String(10), nullable=False)
    location = db.Column(db.String(120), nullable=False)

    parent_name = db.Column(db.String(255), nullable=False)
    contact_no = db.Column(db.String(32), nullable=False)
    student_name = db.Column(db.String(255), nullable=False)
    school = db.Column(db.String(255), nullable=False)
    student_class = db.Column(db.String(64), nullable=True)

    booklist_id = db.Column(db.Integer, db.ForeignKey("booklists.id"), nullable=False, index=True)

    # Extra exercise books on top of the bundle
    single_ruled = db.Column(db.Integer, nullable=False, default=0)
    double_ruled = db.Column(db.Integer, nullable=False, default=0)
    square_ruled = db.Column(db.Integer, nullable=False, default=0)
    additional_items = db.Column(db.Text, nullable=True)

    has_textbooks = db.Column(db.Boolean, nullable=False, default=False)
    has_stationary = db.Column(db.Boolean, nullable=False, default=False)
    lens = db.Column(db.Boolean, nullable=False, default=False)
    no_name = db.Column(db.Boolean, nullable=False, default=False)
    cellophane = db.Column(db.Boolean, nullable=False, default=False)

    customization = db.Column(db.String(32), nullable=False, default="standard")
    comments = db.Column(db.Text, nullable=True)

    delivery_date = db.Column(db.String(10), nullable=True)
    collection_date = db.Column(db.String(10), nullable=True)
    delivery_status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    staff = db.relationship("User")
    booklist = db.relationship("Booklist")

    def __repr__(self) -> str:
        return f"<Redemption id={self.id} voucher_id={self.voucher_id!r} date={self.date}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "voucher_id": self.voucher_id,
            "staff_id": self.staff_id,
            "date": self.date,
            "location": self.location,
            "parent_name": self.parent_name,
            "contact_no": self.contact_no,
            "student_name": self.student_name,
            "school": self.school,
            "student_class": self.student_class,
            "booklist_id": self.booklist_id,
            "single_ruled": self.single_ruled,
            "double_ruled": self.double_ruled,
            "square_ruled": self.square_ruled,
            "additional_items": self.additional_items,
            "has_textbooks": self.has_textbooks,
            "has_stationary": self.has_stationary,
            "lens": self.lens,
            "no_name": self.no_name,
            "cellophane": self.cellophane,
            "customization": self.customization,
            "comments": self.comments,
            "delivery_date": self.delivery_date,
            "collection_date": self.collection_date,
            "delivery_status": self.delivery_status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
