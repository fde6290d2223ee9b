# Overview: Service-layer operations for users and staff; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..models.accounts import USER_ROLES
from ..validation import ConflictError, NotFoundError, ValidationError
from .auth_service import hash_password
from .outlet_service import get_outlet

USER_MUTABLE_FIELDS = {"username", "name", "role", "outlet_id", "active"}


def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def list_staff() -> list[User]:
    """Active counter staff, as offered in 'served by' / 'counted by' pickers."""
    return (
        db.session.query(User)
        .filter(User.role == "staff", User.active.is_(True))
        .order_by(User.name.asc())
        .all()
    )


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def _validate_role_and_outlet(patch: dict) -> None:
    role = patch.get("role")
    if role is not None and role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(USER_ROLES))}")
    if patch.get("outlet_id") is not None:
        get_outlet(patch["outlet_id"])


def create_user(*, patch: dict, password: str | None) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        ValidationError: bad role or missing password
        NotFoundError: outlet_id does not exist
        ConflictError: username taken
    """
    _validate_role_and_outlet(patch)

    if db.session.query(User).filter_by(username=patch["username"]).first():
        raise ConflictError(f"Username already exists: {patch['username']}")

    user = User(password_hash=hash_password(password), **patch)
    db.session.add(user)
    db.session.flush()
    return user


def update_user(user_id: int, *, patch: dict, password: str | None = None) -> User:
    user = get_user(user_id)
    _validate_role_and_outlet(patch)

    username = patch.get("username")
    if username and username != user.username:
        if db.session.query(User).filter(User.username == username, User.id != user.id).first():
            raise ConflictError(f"Username already exists: {username}")

    for k, v in patch.items():
        if k in USER_MUTABLE_FIELDS:
            setattr(user, k, v)

    if password:
        user.password_hash = hash_password(password)

    db.session.flush()
    return user


def delete_user(user_id: int) -> None:
    user = get_user(user_id)
    db.session.delete(user)
    db.session.flush()
