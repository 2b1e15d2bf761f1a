"""
Pytest configuration and fixtures for the workflow and command tests
"""
import os
from datetime import datetime, timedelta

# Console-only logging for tests
os.environ["EQUIPTRACK_LOG_DIR"] = ""
os.environ.setdefault("EQUIPTRACK_CONSOLE_LOG_LEVEL", "WARNING")

import pytest
from flask import g

from equiptrack import create_app
from equiptrack import db as _db
from equiptrack.buisness.command_pipeline import CommandPipeline
from equiptrack.data.core.tenant import Tenant
from equiptrack.data.core.user import User, UserRole
from equiptrack.data.equipment.equipment import Equipment

TEST_CONFIG = {
    'SECRET_KEY': 'test-secret-key',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'TESTING': True,
    'ENABLE_HTTPS': False,
    'FORCE_HTTPS_REDIRECT': False,
    'SESSION_COOKIE_SECURE': False,
    'RATELIMIT_ENABLED': False,
}


class FrozenClock:
    """Controllable clock; call it for the current time."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 3, 1, 9, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def app():
    """Flask application with a fresh in-memory database"""
    app = create_app(dict(TEST_CONFIG))

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def pipeline(app, clock):
    """Command pipeline on the frozen clock, installed on the app for route tests"""
    pipeline = CommandPipeline.from_config(app.config, clock=clock)
    app.extensions['equiptrack'] = pipeline
    return pipeline


@pytest.fixture
def make_tenant(db):
    def factory(name='Lincoln High School', is_active=True):
        tenant = Tenant(name=name, is_active=is_active)
        db.session.add(tenant)
        db.session.commit()
        return tenant
    return factory


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def factory(tenant, role=UserRole.STAFF, username=None, first_name='Casey', last_name='Coach'):
        counter['n'] += 1
        username = username or f"user{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@example.org",
            first_name=first_name,
            last_name=last_name,
            tenant_id=tenant.id,
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return factory


@pytest.fixture
def make_equipment(db):
    def factory(tenant, name, code, status='AVAILABLE', **fields):
        equipment = Equipment(tenant_id=tenant.id, name=name, code=code, status=status, **fields)
        db.session.add(equipment)
        db.session.commit()
        return equipment
    return factory


@pytest.fixture
def tenant(make_tenant):
    return make_tenant()


@pytest.fixture
def staff(make_user, tenant):
    return make_user(tenant, role=UserRole.STAFF, username='coach')


@pytest.fixture
def admin(make_user, tenant):
    return make_user(tenant, role=UserRole.ADMIN, username='admin', first_name='Ada', last_name='Admin')


@pytest.fixture
def client(app, pipeline):
    """Flask test client (anonymous)"""
    return app.test_client()


@pytest.fixture
def login(client):
    """Log a user into the test client by writing the Flask-Login session keys"""
    def do_login(user):
        with client.session_transaction() as session:
            session["_user_id"] = str(user.id)
            session["_fresh"] = True
        # The app fixture holds one app context open, so Flask-Login's per-context
        # user cache would otherwise survive across requests; drop it on login.
        g.pop('_login_user', None)
        return client
    return do_login
