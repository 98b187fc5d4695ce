"""Tests for configuration selection and startup validation."""

import pytest

from api import create_app
from api.config import (
    DEV_JWT_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
)
from tests.conftest import TEST_EMAIL, TEST_PASSWORD


class TestGetConfig:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("prod", ProductionConfig),
            ("Production", ProductionConfig),
            ("testing", TestingConfig),
            ("dev", DevelopmentConfig),
            ("development", DevelopmentConfig),
        ],
    )
    def test_by_name(self, name, expected):
        assert get_config(name) is expected

    def test_falls_back_to_app_env(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        assert get_config(None) is ProductionConfig

    @pytest.mark.parametrize("name", ["staging", "prd", ""])
    def test_unknown_name_is_rejected(self, name, monkeypatch):
        monkeypatch.setenv("APP_ENV", name)
        with pytest.raises(ValueError, match="Unknown APP_ENV"):
            get_config(name or None)


class TestStartupValidation:
    def test_production_without_secret_fails_fast(self, app, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "JWT_SECRET", None)
        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            create_app("production")

    def test_production_with_secret_starts(self, app, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "JWT_SECRET", "a-real-production-secret-of-32-bytes")
        prod = create_app("production")
        assert prod.config["COOKIE_SECURE"] is True

    def test_unknown_environment_does_not_start(self, app):
        with pytest.raises(ValueError):
            create_app("staging")

    def test_development_has_a_default_secret(self, app):
        dev = create_app("dev")
        assert dev.config["JWT_SECRET"]
        assert dev.config["COOKIE_SECURE"] is False

    def test_production_cookies_are_secure(self, app, user_id, monkeypatch):
        monkeypatch.setattr(ProductionConfig, "JWT_SECRET", "a-real-production-secret-of-32-bytes")
        prod = create_app("production")

        response = prod.test_client().post(
            "/auth/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        cookies = response.headers.getlist("Set-Cookie")
        assert len(cookies) == 2
        assert all("Secure" in c for c in cookies)


def test_dev_secret_is_not_used_in_tests(app):
    assert app.config["JWT_SECRET"] != DEV_JWT_SECRET
