"""
HTTP authorization tests.

Verifies:
- Unauthenticated requests return 401 JSON
- Cashier role denied back-office operations (403)
- Admin role can perform privileged operations
- The HTTP-only login cookie authenticates on its own
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/shifts/current"),
            ("POST", "/api/shifts/open"),
            ("POST", "/api/shifts/close"),
            ("GET", "/api/pos/data"),
            ("POST", "/api/pos/checkout"),
            ("GET", "/api/inventory/products"),
            ("POST", "/api/inventory/adjust-stock"),
            ("GET", "/api/orders"),
            ("GET", "/api/expenses"),
            ("GET", "/api/reports/financial"),
            ("GET", "/api/reports/audit-logs"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["error"] == "Authentication required"

    def test_invalid_token_is_rejected(self, client, db_session):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer forged.token.value"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired session"

    def test_health_is_public(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["checks"]["database"]["details"]["shift_open"] is False


# =============================================================================
# CASHIER DENIED BACK-OFFICE OPERATIONS (403)
# =============================================================================


class TestCashierDeniedBackOffice:
    """Cashier role cannot manage the catalog, orders or expenses."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/shifts"),
            ("GET", "/api/shifts/1/summary"),
            ("GET", "/api/inventory/menu-items"),
            ("GET", "/api/inventory/categories"),
            ("POST", "/api/inventory/products"),
            ("PATCH", "/api/inventory/products/1"),
            ("DELETE", "/api/inventory/products/1"),
            ("POST", "/api/inventory/products/1/archive"),
            ("GET", "/api/inventory/adjustments"),
            ("GET", "/api/orders"),
            ("GET", "/api/orders/1"),
            ("POST", "/api/orders/1/void"),
            ("DELETE", "/api/orders/1"),
        ],
    )
    def test_admin_routes_forbidden(self, client, cashier_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=cashier_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert "ADMIN" in resp.json["required_roles"]

    def test_cannot_add_expense(self, client, cashier_headers):
        resp = client.post(
            "/api/expenses",
            json={"description": "Ice", "amount_cents": 1000, "category": "SUPPLIES", "date": "2026-10-19"},
            headers=cashier_headers,
        )
        assert resp.status_code == 403
        assert resp.json["error"] == "Only admins can add expenses"

    def test_can_adjust_stock(self, client, cashier_headers, product):
        resp = client.post(
            "/api/inventory/adjust-stock",
            json={"product_id": product.id, "change": 2, "type": "IN"},
            headers=cashier_headers,
        )
        assert resp.status_code == 201
        assert resp.json["adjustment"]["change"] == 2

    def test_can_read_products_and_expenses(self, client, cashier_headers, product):
        assert client.get("/api/inventory/products", headers=cashier_headers).status_code == 200
        assert client.get("/api/expenses", headers=cashier_headers).status_code == 200


# =============================================================================
# ADMIN ACCESS
# =============================================================================


class TestAdminAccess:
    def test_can_add_product(self, client, admin_headers, category):
        resp = client.post(
            "/api/inventory/products",
            json={"category_id": category.id, "name": "Photo Print 4R", "price_cents": 25000},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["product"]["name"] == "Photo Print 4R"

    def test_can_list_orders(self, client, admin_headers):
        resp = client.get("/api/orders", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 0

    def test_can_add_expense(self, client, admin_headers):
        resp = client.post(
            "/api/expenses",
            json={"description": "Ice", "amount_cents": 1000, "category": "SUPPLIES", "date": "2026-10-19"},
            headers=admin_headers,
        )
        assert resp.status_code == 201

    def test_missing_order_is_404(self, client, admin_headers):
        resp = client.post("/api/orders/999/void", headers=admin_headers)
        assert resp.status_code == 404


# =============================================================================
# SESSION COOKIE
# =============================================================================


class TestSessionCookie:
    def test_login_sets_http_only_cookie(self, client, cashier_user):
        resp = client.post("/api/auth/login", json={"email": cashier_user.email, "password": "Password123!"})

        assert resp.status_code == 200
        cookie = resp.headers.get("Set-Cookie")
        assert cookie.startswith("session=")
        assert "HttpOnly" in cookie
        assert resp.json["session"]["role"] == "CASHIER"

    def test_cookie_alone_authenticates(self, client, cashier_user):
        client.post("/api/auth/login", json={"email": cashier_user.email, "password": "Password123!"})

        resp = client.get("/api/auth/me")

        assert resp.status_code == 200
        assert resp.json["session"]["user_id"] == cashier_user.id

    def test_logout_clears_cookie(self, client, cashier_user):
        client.post("/api/auth/login", json={"email": cashier_user.email, "password": "Password123!"})
        client.post("/api/auth/logout")

        assert client.get("/api/auth/me").status_code == 401

    def test_wrong_password(self, client, cashier_user):
        resp = client.post("/api/auth/login", json={"email": cashier_user.email, "password": "Nope1234!"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid credentials"
