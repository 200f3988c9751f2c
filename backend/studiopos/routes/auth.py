# Overview: Flask API routes for login, logout and the current session.

# backend/studiopos/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- bcrypt password verification
- Signed session token delivered as an HTTP-only cookie (24h)
- The same token is returned in the body for Bearer-token API clients
- Staff accounts are created by admins via the CLI; there is no self-registration
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _set_session_cookie(response, token: str):
    response.set_cookie(
        current_app.config.get("SESSION_COOKIE_NAME", "session"),
        token,
        max_age=int(current_app.config.get("SESSION_MAX_AGE_SECONDS", 24 * 60 * 60)),
        httponly=True,
        secure=bool(current_app.config.get("SESSION_COOKIE_SECURE", False)),
        samesite="Lax",
        path="/",
    )
    return response


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by email and password and start a session.

    Request body:
    {
        "email": "cashier@example.com",
        "password": "..."
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            current_app.logger.info("Failed login for %s", email)
            return jsonify({"error": "Invalid credentials"}), 401

        context, token = session_service.create_session(user)
        current_app.logger.info("User %s logged in", user.id)

        response = jsonify({
            "user": user.to_dict(),
            "session": context.to_dict(),
            "token": token,
        })
        return _set_session_cookie(response, token)

    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Clear the session cookie. Tokens are stateless and simply expire."""
    response = jsonify({"message": "Logged out"})
    response.delete_cookie(current_app.config.get("SESSION_COOKIE_NAME", "session"), path="/")
    return response


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"session": g.session_context.to_dict()})
