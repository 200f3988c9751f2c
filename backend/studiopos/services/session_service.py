# Overview: Service-layer operations for session tokens.

"""
Session Token Service

WHY: Every protected action needs "who is calling and with which role".
Tokens are stateless, signed payloads so verification needs no session table.

SECURITY FEATURES:
- Payload {user_id, name, role, expires} signed with SECRET_KEY (HMAC via itsdangerous)
- 24-hour absolute timeout (SESSION_MAX_AGE_SECONDS), enforced on every load
- Delivered as an HTTP-only cookie; Authorization: Bearer is accepted for API clients
- Role is re-read from the users table on validation so demotions apply immediately
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..extensions import db
from ..models import User
from ..time_utils import utcnow, to_utc_z, parse_iso_datetime


TOKEN_SALT = "studiopos-session"


@dataclass
class SessionContext:
    """Caller identity handed to every service action."""
    user_id: int
    name: str
    role: str
    expires: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "role": self.role,
            "expires": to_utc_z(self.expires),
        }


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def _max_age() -> int:
    return int(current_app.config.get("SESSION_MAX_AGE_SECONDS", 24 * 60 * 60))


def context_for_user(user: User) -> SessionContext:
    return SessionContext(user_id=user.id, name=user.name, role=user.role)


def create_session(user: User) -> tuple[SessionContext, str]:
    """
    Issue a signed token for user.

    Returns (context, token). The token is what goes into the cookie.
    """
    expires = utcnow() + timedelta(seconds=_max_age())
    context = SessionContext(user_id=user.id, name=user.name, role=user.role, expires=expires)
    token = _serializer().dumps({
        "user_id": user.id,
        "name": user.name,
        "role": user.role,
        "expires": to_utc_z(expires),
    })
    return context, token


def validate_session(token: str | None) -> SessionContext | None:
    """
    Verify signature and age of token.

    Returns None for missing, tampered, expired or orphaned tokens.
    """
    if not token:
        return None

    try:
        payload = _serializer().loads(token, max_age=_max_age())
    except SignatureExpired:
        current_app.logger.info("Rejected expired session token")
        return None
    except BadSignature:
        current_app.logger.warning("Rejected session token with bad signature")
        return None

    user_id = payload.get("user_id") if isinstance(payload, dict) else None
    if not isinstance(user_id, int):
        return None

    user = db.session.get(User, user_id)
    if user is None:
        return None

    try:
        expires = parse_iso_datetime(payload.get("expires"))
    except (AttributeError, TypeError, ValueError):
        expires = None

    return SessionContext(user_id=user.id, name=user.name, role=user.role, expires=expires)
