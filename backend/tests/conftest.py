"""
Pytest fixtures for the uniform tracker backend tests.

Provides the test application, a clean database per test, and a small
directory of stores, roles, staff and uniform items.
"""

from datetime import datetime

import pytest
from uniforms import create_app
from uniforms.config import TestingConfig
from uniforms.extensions import db
from uniforms.models import Store, Role, Staff, UniformItem, UniformRequest, UniformRequestItem
from uniforms.services import staff_service
from uniforms.validation import RequestLine


# Fixed clock for time-dependent tests
NOW = datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
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
def roles(db_session):
    """Default roles: MANAGER (limit 5) and CASUAL (limit 2)."""
    staff_service.ensure_default_roles()
    return {role.name: role for role in db_session.query(Role).all()}


@pytest.fixture(scope='function')
def store(db_session):
    store = Store(name="Sydney CBD")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def other_store(db_session):
    store = Store(name="Parramatta")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def manager(db_session, store, roles):
    staff = Staff(name="Morgan Manager", store_id=store.id, role_id=roles["MANAGER"].id)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def casual(db_session, store, roles):
    staff = Staff(name="Casey Casual", store_id=store.id, role_id=roles["CASUAL"].id)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def polo(db_session):
    item = UniformItem(sku="9300001", size="M", item_name="Polo Shirt", stock_on_hand=10)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def jacket(db_session):
    item = UniformItem(sku="9300002", size="L", item_name="Winter Jacket", stock_on_hand=5)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def cap(db_session):
    item = UniformItem(sku="9300003", size="ONE", item_name="Cap", stock_on_hand=3)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def make_request(db_session):
    """
    Insert a request directly, without validation or stock movement.

    Useful for arranging history (allowance usage, cooldown anchors).
    """
    def _make(staff, lines, *, requested_at=NOW, status="REQUESTED", collected_at=None):
        request = UniformRequest(
            staff_id=staff.id,
            status=status,
            requested_at=requested_at,
            collected_at=collected_at,
        )
        db_session.add(request)
        db_session.flush()
        for item, quantity in lines:
            db_session.add(UniformRequestItem(request_id=request.id, uniform_item_id=item.id, quantity=quantity))
        db_session.commit()
        return request

    return _make


def line(item, quantity: int) -> RequestLine:
    """Shorthand for a typed request line."""
    return RequestLine(uniform_item_id=item.id, quantity=quantity)
