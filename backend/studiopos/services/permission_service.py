# Overview: Role checks for service-layer actions.

"""
Role-based access checks.

Roles are a single enum on the user: CASHIER, ADMIN, SUPERADMIN.
Back-office actions (catalog, orders, expenses) require ADMIN or SUPERADMIN;
checkout, shifts, stock adjustment and read-only listings accept any role.

Checks are performed per action by the service, so the same rule applies
whether the call comes from a route, the CLI or a test.
"""

from __future__ import annotations

from ..errors import AuthorizationError
from ..models import ADMIN_ROLES


def require_role(actor, *roles: str, message: str = "Not authorized"):
    """Raise AuthorizationError unless the actor holds one of roles."""
    if actor is None or getattr(actor, "role", None) not in roles:
        raise AuthorizationError(message, details={"required_roles": list(roles)})
    return actor


def require_admin(actor, message: str = "Not authorized"):
    return require_role(actor, *ADMIN_ROLES, message=message)
