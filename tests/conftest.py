"""
Test configuration for the shopfront auth core.
"""
from datetime import datetime, timedelta

import pytest

from app import create_app
from config import Config
from models import db as _db
from models.account import Account, Role
from models.audit_log import AuditLog
from security.accounts import register, provision_account

STRONG_PASSWORD = "Str0ng!Pass"


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = "DEBUG"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_account(app):
    """Create an account; password age is backdated so it can be changed immediately."""
    def _make(username="alice", password=STRONG_PASSWORD, role=Role.CUSTOMER, password_age_hours=48):
        if role is Role.CUSTOMER:
            account = register(username, password, password, ip="127.0.0.1")
        else:
            account = provision_account(None, username, password, password, role, ip="127.0.0.1")
        if password_age_hours:
            account.last_password_change = datetime.utcnow() - timedelta(hours=password_age_hours)
            _db.session.commit()
        return account
    return _make


@pytest.fixture
def audit_rows(app):
    def _rows(**filters):
        return AuditLog.query.filter_by(**filters).order_by(AuditLog.id).all()
    return _rows


def reload(account) -> Account:
    _db.session.expire_all()
    return _db.session.get(Account, account.id)


def csrf_headers(client) -> dict:
    cookie = client.get_cookie("csrf_token")
    return {"X-CSRF-Token": cookie.value if cookie else ""}


def login(client, username="alice", password=STRONG_PASSWORD):
    return client.post("/auth/login", json={"username": username, "password": password})
