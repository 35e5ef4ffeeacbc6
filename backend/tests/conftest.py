"""
Pytest fixtures for bakehouse backend tests.

Provides test database setup, one user per role, a bread type, and test client.
"""

import pytest
from bakehouse import create_app
from bakehouse.extensions import db
from bakehouse.models import BreadType
from bakehouse.services.auth_service import create_user


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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
def owner(db_session):
    return create_user(name="Olu Owner", email="owner@bakehouse.test", password=PASSWORD, role="owner")


@pytest.fixture(scope='function')
def manager(db_session):
    return create_user(name="Mary Manager", email="manager@bakehouse.test", password=PASSWORD, role="manager")


@pytest.fixture(scope='function')
def sales_rep(db_session):
    return create_user(name="Sam Rep", email="rep@bakehouse.test", password=PASSWORD, role="sales_rep")


@pytest.fixture(scope='function')
def bread_type(db_session):
    bt = BreadType(name="Family Loaf", size="large", unit_price=1500)
    db_session.add(bt)
    db_session.commit()
    return bt


@pytest.fixture(scope='function')
def other_bread_type(db_session):
    bt = BreadType(name="Mini Loaf", size="small", unit_price=500)
    db_session.add(bt)
    db_session.commit()
    return bt


def get_auth_token(client, email: str, password: str = PASSWORD, shift: str = "morning") -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
        'shift': shift,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner_headers(client, owner):
    return auth_headers(get_auth_token(client, owner.email))


@pytest.fixture(scope='function')
def manager_headers(client, manager):
    return auth_headers(get_auth_token(client, manager.email))


@pytest.fixture(scope='function')
def rep_headers(client, sales_rep):
    return auth_headers(get_auth_token(client, sales_rep.email))
