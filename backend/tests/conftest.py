"""
Pytest fixtures for orderdesk backend tests.

Provides the test database, two tenants for isolation checks, users with
bearer sessions, webhook configs, and payload builders.
"""

import copy

import pytest
from sqlalchemy.exc import OperationalError

from orderdesk import create_app
from orderdesk.extensions import db
from orderdesk.models import Tenant
from orderdesk.services import auth_service, session_service, webhook_service


EXAMPLE_PAYLOAD = {
    "paymentMethod": "cash",
    "clientName": "Mona Adel",
    "phone": "01000000000",
    "deliveryMethod": "courier",
    "address": "12 Nile St",
    "governorate": "Cairo",
    "shippingCost": 30,
    "deposit": 20,
    "items": [
        {
            "productType": "Frame",
            "size": "20x30",
            "quantity": 2,
            "cost": 50,
            "price": 100,
            "itemDiscount": 10,
        }
    ],
}

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DB_RETRY_ATTEMPTS': 2,
        'ORDER_PROFIT_POLICY': 'net_of_shipping',
        'SERIAL_SCAN_FALLBACK': True,
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
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def tenant_a(db_session):
    """First tenant."""
    tenant = Tenant(name="Tenant A - Nile Prints", code="NILE", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant_b(db_session):
    """Second tenant."""
    tenant = Tenant(name="Tenant B - Delta Frames", code="DELTA", is_active=True)
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope='function')
def user_a(tenant_a):
    return auth_service.create_user(tenant_a.id, "owner@nile.test", PASSWORD, display_name="Owner A")


@pytest.fixture(scope='function')
def user_b(tenant_b):
    return auth_service.create_user(tenant_b.id, "owner@delta.test", PASSWORD, display_name="Owner B")


@pytest.fixture(scope='function')
def headers_a(user_a):
    _, token = session_service.create_session(user_a.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def headers_b(user_b):
    _, token = session_service.create_session(user_b.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def webhook_a(tenant_a):
    return webhook_service.get_or_create_config(tenant_a.id)


@pytest.fixture(scope='function')
def webhook_b(tenant_b):
    return webhook_service.get_or_create_config(tenant_b.id)


@pytest.fixture
def payload():
    """Fresh copy of the reference order payload (camelCase, no key)."""
    return copy.deepcopy(EXAMPLE_PAYLOAD)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def store_error():
    """A transient store error as the DBAPI layer would raise it."""
    return OperationalError("simulated statement", {}, Exception("database is locked"))
