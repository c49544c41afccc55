"""
Pytest fixtures for port operations backend tests.

Provides test database setup, operator profiles per role, zone and goods
factories, and the test client.
"""

from decimal import Decimal

import pytest

from portops import create_app
from portops.extensions import db
from portops.models import GoodsLanding, Profile, Zone
from portops.models.auth import ROLE_ADMIN, ROLE_LANDING_CLERK, ROLE_MANAGER, ROLE_YARD_OPERATOR
from portops.models.yard import GOODS_STATUS_LANDED, ZONE_STATUS_ACTIVE, ZONE_TYPE_GENERAL
from portops.services import placement_service


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'CORS_ALLOWED_ORIGINS': {'http://localhost:5173'},
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

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


def _profile(db_session, email, role):
    profile = Profile(email=email, full_name=email.split("@")[0].title(), role=role, is_active=True)
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture(scope='function')
def admin(db_session):
    return _profile(db_session, "admin@port.test", ROLE_ADMIN)


@pytest.fixture(scope='function')
def manager(db_session):
    return _profile(db_session, "manager@port.test", ROLE_MANAGER)


@pytest.fixture(scope='function')
def operator(db_session):
    return _profile(db_session, "operator@port.test", ROLE_YARD_OPERATOR)


@pytest.fixture(scope='function')
def clerk(db_session):
    return _profile(db_session, "clerk@port.test", ROLE_LANDING_CLERK)


def headers_for(profile) -> dict:
    """Helper to create operator identification headers."""
    return {'X-Operator-Id': str(profile.id)}


@pytest.fixture(scope='function')
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture(scope='function')
def manager_headers(manager):
    return headers_for(manager)


@pytest.fixture(scope='function')
def operator_headers(operator):
    return headers_for(operator)


@pytest.fixture(scope='function')
def clerk_headers(clerk):
    return headers_for(clerk)


@pytest.fixture(scope='function')
def make_zone(db_session):
    """Factory for zones; occupancy is written directly to set up scenarios."""
    counter = {"n": 0}

    def _make(capacity, occupancy=0, zone_type=ZONE_TYPE_GENERAL, status=ZONE_STATUS_ACTIVE, code=None):
        counter["n"] += 1
        zone = Zone(
            zone_code=code or f"Z{counter['n']}",
            description="",
            capacity=Decimal(str(capacity)),
            current_occupancy=Decimal(str(occupancy)),
            zone_type=zone_type,
            status=status,
        )
        db_session.add(zone)
        db_session.commit()
        return zone

    return _make


@pytest.fixture(scope='function')
def make_goods(db_session):
    """Factory for landed goods."""
    counter = {"n": 0}

    def _make(quantity, unit_type="container", goods_type="General cargo", status=GOODS_STATUS_LANDED):
        counter["n"] += 1
        goods = GoodsLanding(
            goods_id=f"CONT{counter['n']:06d}",
            origin="Rotterdam",
            transport_mode="ship",
            vessel_name="MV TEST",
            quantity=Decimal(str(quantity)),
            unit_type=unit_type,
            goods_type=goods_type,
            status=status,
        )
        db_session.add(goods)
        db_session.commit()
        return goods

    return _make


@pytest.fixture(scope='function')
def make_placed_goods(db_session, make_goods):
    """Factory for goods placed through the placement engine."""
    def _make(zone, quantity, rack="R-01", operator_id=None):
        goods = make_goods(quantity)
        placement = placement_service.place_goods(goods.id, zone.id, rack, operator_id=operator_id)
        db_session.commit()
        return placement

    return _make
