"""
security helpers:
- Argon2 password and refresh-token hashing via argon2-cffi
- JWT creation/verification via PyJWT
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from flask import current_app

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Raised when a JWT cannot be accepted (bad signature, expired, wrong type)."""


class ExpiredTokenError(TokenError):
    pass


def hash_secret(secret: str) -> str:
    """Hash a plaintext password or refresh token using Argon2 (salted per call)
    """
    return ph.hash(secret)


def verify_secret(secret: str, secret_hash: str | None) -> bool:
    """Verify a plaintext value against an Argon2 hash in constant time.

    A missing or malformed hash never matches.
    """
    if not secret_hash:
        return False
    try:
        return ph.verify(secret_hash, secret)
    except (VerificationError, InvalidHashError):
        return False


hash_password = hash_secret
verify_password = verify_secret


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_token(subject: str, token_type: str, expires_delta: timedelta | None = None) -> str:
    """Sign a JWT for `subject`; lifetime defaults to the configured one for `token_type`."""
    if expires_delta is None:
        key = "ACCESS_TOKEN_EXPIRES" if token_type == ACCESS else "REFRESH_TOKEN_EXPIRES"
        expires_delta = current_app.config[key]
    now = _now()
    payload = {
        "iss": current_app.config.get("JWT_ISSUER", "real-estate-api"),
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "type": token_type,
        "jti": generate_jti(),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"])


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    return create_token(subject, ACCESS, expires_delta)


def create_refresh_token(subject: str, expires_delta: timedelta | None = None) -> str:
    return create_token(subject, REFRESH, expires_delta)


def decode_token(token: str, expected_type: str = ACCESS, verify_exp: bool = True) -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises TokenError on invalid signature/expired jwt.
    expected_type must be "access" or "refresh".
    """
    try:
        decoded = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"verify_exp": verify_exp, "require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredTokenError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError(f"Invalid token: {exc}") from exc

    if decoded.get("type") != expected_type:
        raise TokenError("Wrong token type")
    return decoded
