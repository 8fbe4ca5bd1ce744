"""
Pytest fixtures for shop POS backend tests.

Provides the in-memory app, a clean database per test, staff accounts with
bearer headers, and small catalog factories.
"""

import pytest
from shoppos import create_app
from shoppos.extensions import db
from shoppos.models import Category, Product
from shoppos.models.auth import ROLE_ADMIN, ROLE_USER
from shoppos.services.auth_service import create_user
from shoppos.services import session_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SHOP_NAME': 'TEST SHOP',
        'CURRENCY_SYMBOL': '$',
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


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user(email="admin@shop.test", password="admin123", name="Admin", role=ROLE_ADMIN)


@pytest.fixture(scope='function')
def regular_user(db_session):
    return create_user(email="clerk@shop.test", password="clerk123", name="Clerk", role=ROLE_USER)


def _headers_for(user) -> dict:
    _, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return _headers_for(admin_user)


@pytest.fixture(scope='function')
def user_headers(regular_user):
    return _headers_for(regular_user)


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Snacks", description="Crisps and bars")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name, selling, stock, purchase=0, category=None)."""
    def _make(name, selling_price_cents, stock, purchase_price_cents=0, category=None, barcode=None):
        product = Product(
            name=name,
            selling_price_cents=selling_price_cents,
            purchase_price_cents=purchase_price_cents,
            initial_stock=stock,
            stock=stock,
            category_id=category.id if category else None,
            barcode=barcode,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


def stock_of(product_id: int) -> int:
    """Current stock read from the database, bypassing the identity map."""
    db.session.expire_all()
    return db.session.get(Product, product_id).stock


def get_auth_token(client, email: str, password: str) -> str:
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
