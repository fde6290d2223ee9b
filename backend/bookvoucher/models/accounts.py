from __future__ import annotations

from ..extensions import db
from bookvoucher.time_utils import to_utc_z

USER_ROLES = frozenset({"admin", "staff"})


class Outlet(db.Model):
    """
    Retail outlet (a.k.a. location).

    Stock, redemptions and day-end reports refer to an outlet by its
    name through their ``location`` column, mirroring what the counter
    staff select on screen.
    """
    __tablename__ = "outlets"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    address = db.Column(db.String(255), nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Outlet id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "address": self.address,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
        }


class User(db.Model):
    """
    Back-office accounts. Admins manage the catalogue and outlets; staff
    work the counter of one outlet and pick it at login.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="staff")
    outlet_id = db.Column(db.Integer, db.ForeignKey("outlets.id", ondelete="SET NULL"), nullable=True, index=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    outlet = db.relationship("Outlet", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        # password_hash never leaves the server
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "outlet_id": self.outlet_id,
            "outlet_name": self.outlet.name if self.outlet else None,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
        }
