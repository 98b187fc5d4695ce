"""
Environment-aware configuration.
Signing key, token lifetimes, cookie flags, CORS and logging.
The database URL is read by DBStorage (models/db_storage.py) from DATABASE_URL.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-secret-change-me"


def _seconds(name: str, default: int) -> timedelta:
    return timedelta(seconds=int(os.getenv(name, str(default))))


def _origins(raw: str):
    if raw.strip() == "*":
        return "*"
    return [o.strip() for o in raw.split(",") if o.strip()]


class BaseConfig:
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # CORS: comma-separated allow-list; credentials are sent, so '*' only makes sense in dev
    CORS_ORIGINS = _origins(os.getenv("CORS_ORIGINS", "http://localhost:5173"))
    # No fallback here: only dev/testing get a default signing key
    JWT_SECRET = os.getenv("JWT_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "real-estate-api")
    ACCESS_TOKEN_EXPIRES = _seconds("ACCESS_TOKEN_EXPIRES_SECONDS", 15 * 60)
    REFRESH_TOKEN_EXPIRES = _seconds("REFRESH_TOKEN_EXPIRES_SECONDS", 7 * 24 * 60 * 60)
    ACCESS_COOKIE_NAME = "accessToken"
    REFRESH_COOKIE_NAME = "refreshToken"
    COOKIE_SAMESITE = "Lax"
    COOKIE_SECURE = False


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)


class TestingConfig(DevelopmentConfig):
    DEBUG = False
    TESTING = True
    JWT_SECRET = "testing-secret-key-with-at-least-32-bytes"


class ProductionConfig(BaseConfig):
    DEBUG = False
    COOKIE_SECURE = True


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    Unknown names raise ValueError: only an explicit dev name gets the dev signing key.
    """
    env = (name or os.getenv("APP_ENV", "dev")).strip().lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    if env in ["dev", "development"]:
        return DevelopmentConfig
    raise ValueError(f"Unknown APP_ENV {env!r}; expected dev, testing or production")


def check_config(config) -> None:
    """Fail fast on settings that must never reach a running server."""
    if not config.get("JWT_SECRET"):
        raise RuntimeError(
            "JWT_SECRET is not set. Configure a strong signing key for this environment."
        )
