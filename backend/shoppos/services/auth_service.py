# Overview: Service-layer operations for staff accounts; password hashing and user management.

"""
Authentication and user management

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters
- Session tokens managed separately (see session_service.py)
- Inactive users cannot authenticate; deactivating or resetting a password
  revokes the user's open sessions
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import User, Sale, Expense
from ..models.auth import ROLES, ROLE_USER, USER_STATUSES, STATUS_ACTIVE, STATUS_INACTIVE
from shoppos.time_utils import utcnow
from .permission_service import AuthContext, require_admin
from . import session_service

MIN_PASSWORD_LENGTH = 6


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserNotFoundError(Exception):
    """Raised when a user is not found."""
    pass


class UserValidationError(Exception):
    """Raised when user data fails validation."""
    pass


def validate_password_strength(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Validate, then hash with bcrypt cost 12. Stored as a str."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise UserValidationError("Email is required")
    return email


def authenticate(email: str, password: str) -> User | None:
    """
    Return the user when the credentials match an active account, else None.
    """
    user = db.session.query(User).filter_by(email=(email or "").strip().lower()).first()
    if not user:
        return None
    if not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def _validate_role_and_status(role: str | None, status: str | None) -> None:
    if role is not None and role not in ROLES:
        raise UserValidationError("Invalid role. Must be 'admin' or 'user'")
    if status is not None and status not in USER_STATUSES:
        raise UserValidationError("Invalid status. Must be 'active' or 'inactive'")


def _ensure_email_free(email: str, exclude_user_id: int | None = None) -> None:
    query = db.session.query(User).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    if query.first():
        raise UserValidationError("Email is already taken by another user")


def create_user(
    *,
    email: str,
    password: str,
    name: str | None = None,
    role: str = ROLE_USER,
    status: str = STATUS_ACTIVE,
) -> User:
    """
    Create a staff account.

    Raises:
        UserValidationError: bad role/status or duplicate email
        PasswordValidationError: password too short
    """
    email = _normalize_email(email)
    _validate_role_and_status(role, status)
    _ensure_email_free(email)

    user = User(
        email=email,
        name=(name or "").strip() or None,
        password_hash=hash_password(password),
        role=role,
        status=status,
    )
    db.session.add(user)
    db.session.commit()
    return user


def list_users() -> list[tuple[User, int, int]]:
    """All users with their sale and expense counts, newest first."""
    sale_counts = dict(
        db.session.query(Sale.user_id, func.count(Sale.id)).group_by(Sale.user_id).all()
    )
    expense_counts = dict(
        db.session.query(Expense.user_id, func.count(Expense.id)).group_by(Expense.user_id).all()
    )
    users = db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return [(u, sale_counts.get(u.id, 0), expense_counts.get(u.id, 0)) for u in users]


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise UserNotFoundError("User not found")
    return user


def user_activity_counts(user_id: int) -> dict:
    return {
        "sales": db.session.query(func.count(Sale.id)).filter(Sale.user_id == user_id).scalar() or 0,
        "expenses": db.session.query(func.count(Expense.id)).filter(Expense.user_id == user_id).scalar() or 0,
    }


def update_user(
    auth: AuthContext,
    user_id: int,
    *,
    name: str | None,
    email: str,
    password: str | None = None,
    role: str | None = None,
    status: str | None = None,
) -> User:
    """
    Replace a user's profile. Omitted role/status fall back to user/active.
    A new password is hashed; deactivation revokes open sessions.
    """
    require_admin(auth, "update users")
    user = get_user(user_id)

    if not name or not str(name).strip():
        raise UserValidationError("Name and email are required")
    email = _normalize_email(email)
    _validate_role_and_status(role, status)
    _ensure_email_free(email, exclude_user_id=user_id)

    user.name = str(name).strip()
    user.email = email
    user.role = role or ROLE_USER
    user.status = status or STATUS_ACTIVE
    if password:
        user.password_hash = hash_password(password)

    if user.status == STATUS_INACTIVE:
        session_service.revoke_all_user_sessions(user.id, reason="User deactivated", commit=False)

    db.session.commit()
    current_app.logger.info("User %s updated by %s", user.id, auth.user_id)
    return user


def reset_password(auth: AuthContext, user_id: int, password: str) -> User:
    require_admin(auth, "reset passwords")
    user = get_user(user_id)
    user.password_hash = hash_password(password)
    user.updated_at = utcnow()
    session_service.revoke_all_user_sessions(user.id, reason="Password reset", commit=False)
    db.session.commit()
    current_app.logger.info("Password reset for user %s by %s", user.id, auth.user_id)
    return user


def delete_user(auth: AuthContext, user_id: int) -> User:
    """
    Delete a user who has never sold or spent anything.

    Raises:
        UserValidationError: deleting yourself, or the user has sales/expenses
        UserNotFoundError: unknown id
    """
    require_admin(auth, "delete users")
    if auth.user_id == user_id:
        raise UserValidationError("Cannot delete your own account")

    user = get_user(user_id)
    counts = user_activity_counts(user_id)
    if counts["sales"] > 0 or counts["expenses"] > 0:
        raise UserValidationError(
            "Cannot delete user with associated sales or expenses. "
            "Please reassign or delete the associated records first."
        )

    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("User %s deleted by %s", user_id, auth.user_id)
    return user
