# Overview: Service-layer operations for staff accounts and login.

"""
Authentication Service

WHY: Every order, shift and adjustment must be attributable to a person.
Uses bcrypt for password hashing and validates password strength on creation.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper, lower, digit and special character
- Session tokens are issued separately (see session_service.py)
"""

import re

import bcrypt
from sqlalchemy import func

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import User, ROLES


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


MIN_PASSWORD_LENGTH = 8

# (pattern, what is missing)
PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^A-Za-z0-9\s]"), "a special character"),
)


def validate_password_strength(password: str) -> None:
    """Raise PasswordValidationError naming the first rule password breaks."""
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    for pattern, label in PASSWORD_RULES:
        if not pattern.search(password):
            raise PasswordValidationError(f"Password must contain {label}")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (cost 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_user(name: str, email: str, password: str, role: str = "CASHIER") -> User:
    """
    Create a staff account.

    Raises:
        ValidationError: unknown role or blank name/email
        PasswordValidationError: weak password
        ConflictError: email already registered
    """
    name = (name or "").strip()
    email = (email or "").strip().lower()
    role = (role or "").strip().upper()

    if not name or not email:
        raise ValidationError("name and email are required")
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")

    existing = db.session.query(User).filter(func.lower(User.email) == email).first()
    if existing:
        raise ConflictError("Email already registered")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate by email and password.

    Returns the User if credentials are valid, None otherwise. The caller
    gets no hint about which half was wrong.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
    if user is None:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
