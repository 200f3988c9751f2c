"""
Pytest fixtures for Studio POS backend tests.

Provides test database setup, users, catalog fixtures and test client.
"""

import pytest
from studiopos import create_app
from studiopos.extensions import db
from studiopos.models import Category, Product, User
from studiopos.services import shift_service
from studiopos.services.auth_service import hash_password
from studiopos.services.session_service import context_for_user


TEST_PASSWORD = "Password123!"

# bcrypt at cost 12 is slow; hash once for the whole run
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(db_session, name: str, email: str, role: str) -> User:
    user = User(name=name, email=email, password_hash=TEST_PASSWORD_HASH, role=role)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session):
    return _make_user(db_session, "Admin", "admin@studio.test", "ADMIN")


@pytest.fixture(scope='function')
def cashier_user(db_session):
    return _make_user(db_session, "Cashier", "cashier@studio.test", "CASHIER")


@pytest.fixture(scope='function')
def admin(admin_user):
    """SessionContext for the admin user."""
    return context_for_user(admin_user)


@pytest.fixture(scope='function')
def cashier(cashier_user):
    """SessionContext for the cashier user."""
    return context_for_user(cashier_user)


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Food & Beverage", type="FB")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def product(db_session, category):
    """Iced latte: price 10000, cost 6000, stock 5."""
    product = Product(
        category_id=category.id,
        sku="FB-LATTE",
        name="Iced Latte",
        price_cents=10000,
        cost_price_cents=6000,
        stock=5,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def second_product(db_session, category):
    """Croissant: price 4000, cost 1500, stock 10."""
    product = Product(
        category_id=category.id,
        sku="FB-CROISSANT",
        name="Croissant",
        price_cents=4000,
        cost_price_cents=1500,
        stock=10,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def open_shift(cashier):
    return shift_service.open_shift(cashier, 50000)


def get_auth_token(client, email: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, cashier_user.email))
