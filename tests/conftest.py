"""Pytest configuration and fixtures for the Real Estate API tests."""

import os

# Set test environment variables BEFORE any app imports:
# models.storage binds its engine to DATABASE_URL at import time.
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest

from api import create_app
from models import storage
from models.refresh_token import RefreshToken
from models.user import User
from utils.security import hash_password

TEST_EMAIL = "a@b.com"
TEST_PASSWORD = "secret1"


@pytest.fixture
def app():
    """Flask app on a fresh in-memory schema."""
    storage.drop_all()
    storage.reload()
    app = create_app("testing")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Insert a user directly and return its id."""

    def _make(email=TEST_EMAIL, password=TEST_PASSWORD, user_name="alice", password_hash=None):
        with app.app_context():
            user = User(
                user_name=user_name,
                email=email,
                password_hash=password_hash if password_hash is not None else hash_password(password),
            )
            storage.new(user)
            storage.save()
            return user.id

    return _make


@pytest.fixture
def user_id(make_user):
    return make_user()


@pytest.fixture
def logged_in(client, user_id):
    """Client holding the cookies of a successful login."""
    response = client.post("/auth/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def refresh_record_count(app):
    def _count(user_id=None):
        with app.app_context():
            query = storage.get_session().query(RefreshToken)
            if user_id:
                query = query.filter(RefreshToken.user_id == user_id)
            return query.count()

    return _count
