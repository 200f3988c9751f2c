# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service, permission_service


def _extract_token() -> str | None:
    """Explicit Authorization: Bearer wins; otherwise the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token

    return request.cookies.get(current_app.config.get("SESSION_COOKIE_NAME", "session")) or None


def require_auth(f):
    """
    Require a valid session.

    Sets the following Flask g attributes:
    - g.session_context: SessionContext (user_id, name, role, expires)
    - g.current_user_id: shortcut for g.session_context.user_id

    Returns 401 JSON when the token is missing, tampered, expired or
    belongs to a user that no longer exists. The API has no login page to
    redirect to.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _extract_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired session"}), 401

        g.session_context = context
        g.current_user_id = context.user_id

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require one of roles. Must be stacked below @require_auth.

    Services re-check roles for their own actions; this only rejects early.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            context = getattr(g, "session_context", None)
            if context is None:
                return jsonify({"error": "Authentication required"}), 401

            if context.role not in roles:
                current_app.logger.info(
                    "Role check failed for user %s on %s %s (role=%s)",
                    context.user_id, request.method, request.path, context.role,
                )
                return jsonify({
                    "error": "Not authorized",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def require_admin(f):
    return require_role(*permission_service.ADMIN_ROLES)(f)
