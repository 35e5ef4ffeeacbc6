# Overview: Service-layer operations for auth; password hashing, user creation and credential checks.

"""
Authentication Service

Every batch, sale and stock report is attributed to a user, so every
request runs as one. Passwords are hashed with bcrypt; the cost factor is
BCRYPT_ROUNDS (12 in production, lowered in tests).

SECURITY NOTES:
- Minimum 8 characters, with upper, lower, digit and special character
- Session tokens are managed separately (see session_service.py)
- Deactivated users cannot authenticate
"""

import re

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import User, USER_ROLES
from bakehouse.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(name: str, email: str, password: str, role: str = "sales_rep") -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValueError: unknown role, missing name, or email already taken
        PasswordValidationError: weak password
    """
    if role not in USER_ROLES:
        raise ValueError(f"Role must be one of: {', '.join(USER_ROLES)}")

    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email:
        raise ValueError("Name and email are required")

    existing = db.session.query(User).filter(User.email == email).first()
    if existing:
        raise ValueError("Email already exists")

    user = User(
        name=name,
        email=email,
        role=role,
        password_hash=hash_password(password),
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Return the user if the credentials are valid, None otherwise.

    Updates last_login_at on success.
    """
    email = (email or "").strip().lower()
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def list_users(*, include_inactive: bool = False) -> list[User]:
    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.role.asc(), User.name.asc()).all()
