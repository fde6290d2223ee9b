# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Uses bcrypt for password hashing. Staff accounts must choose the outlet
they are working at when they log in; admins work across outlets.
"""

import bcrypt
from flask import current_app
from ..extensions import db
from ..models import User, Outlet
from ..validation import ValidationError

DEFAULT_BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    if not password:
        raise ValidationError("password is required")
    rounds = current_app.config.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate an active user by username and password.

    Returns User if credentials valid, None otherwise.
    """
    user = (
        db.session.query(User)
        .filter(User.username == username, User.active.is_(True))
        .first()
    )
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def resolve_login_outlet(user: User, outlet_id) -> Outlet | None:
    """
    Outlet the session works at.

    Staff must select an active outlet; admins never get one.

    Raises:
        ValidationError: staff without a valid active outlet
    """
    if user.role != "staff":
        return None
    if outlet_id in (None, ""):
        raise ValidationError("Outlet selection required for staff")
    try:
        outlet_id = int(outlet_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid outlet")
    outlet = (
        db.session.query(Outlet)
        .filter(Outlet.id == outlet_id, Outlet.active.is_(True))
        .first()
    )
    if outlet is None:
        raise ValidationError("Invalid outlet")
    return outlet
