"""
Session tokens: issue, refresh (with rotation), revoke.

Every login produces an access/refresh JWT pair. Only an argon2 hash of the
refresh token is stored, one RefreshToken row per session. Because the hash is
salted per row, a presented token is matched by verifying it against each of
its owner's rows rather than by lookup.
"""
from __future__ import annotations

import logging
from datetime import datetime

from flask import current_app

from models import storage
from models.base_model import utcnow
from models.refresh_token import RefreshToken
from utils.security import (
    REFRESH,
    ExpiredTokenError,
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_secret,
    verify_secret,
)
from api.errors import InvalidRefreshToken, RefreshExpired, RefreshRequired

logger = logging.getLogger(__name__)


def issue_tokens(user_id: str) -> tuple[str, str]:
    """Mint an access/refresh pair and persist the hashed refresh token."""
    purge_expired(user_id)

    access_token = create_access_token(user_id)
    refresh_token = create_refresh_token(user_id)

    record = RefreshToken(
        user_id=str(user_id),
        token_hash=hash_secret(refresh_token),
        expires_at=utcnow() + current_app.config["REFRESH_TOKEN_EXPIRES"],
    )
    storage.new(record)
    storage.save()
    return access_token, refresh_token


def purge_expired(user_id: str, now: datetime | None = None) -> int:
    """Drop the user's session records whose expiry has passed."""
    session = storage.get_session()
    return session.query(RefreshToken).filter(
        RefreshToken.user_id == str(user_id),
        RefreshToken.expires_at <= (now or utcnow()),
    ).delete(synchronize_session=False)


def find_refresh_record(user_id: str, refresh_token: str) -> RefreshToken | None:
    session = storage.get_session()
    records = session.query(RefreshToken).filter(RefreshToken.user_id == str(user_id)).all()
    for record in records:
        if verify_secret(refresh_token, record.token_hash):
            return record
    return None


def refresh_session(refresh_token: str | None, now: datetime | None = None) -> tuple[str, str]:
    """
    Exchange a refresh token for a new access/refresh pair.

    The presented token is single-use: its record is deleted and a new one is
    written for the replacement token.
    """
    if not refresh_token:
        raise RefreshRequired()

    try:
        decoded = decode_token(refresh_token, expected_type=REFRESH)
    except ExpiredTokenError as exc:
        _expire_session(refresh_token)
        raise RefreshExpired() from exc
    except TokenError as exc:
        raise InvalidRefreshToken() from exc

    user_id = decoded["sub"]
    record = find_refresh_record(user_id, refresh_token)
    if record is None:
        logger.info("Refresh rejected for user %s: no matching session", user_id)
        raise InvalidRefreshToken()

    now = now or utcnow()
    if record.is_expired(now):
        storage.delete(record)
        storage.save()
        logger.info("Refresh rejected for user %s: session expired", user_id)
        raise RefreshExpired()

    storage.delete(record)
    storage.save()
    return issue_tokens(user_id)


def _expire_session(refresh_token: str) -> None:
    """Delete the record behind a refresh JWT whose own exp has passed."""
    try:
        decoded = decode_token(refresh_token, expected_type=REFRESH, verify_exp=False)
    except TokenError as exc:
        raise InvalidRefreshToken() from exc
    record = find_refresh_record(decoded["sub"], refresh_token)
    if record is not None:
        storage.delete(record)
        storage.save()
    logger.info("Refresh rejected for user %s: token expired", decoded["sub"])


def revoke_refresh_token(refresh_token: str | None) -> bool:
    """
    Delete the session record behind `refresh_token`.

    Best effort: returns False instead of raising when nothing could be revoked.
    """
    if not refresh_token:
        return False
    try:
        # Expired sessions still get cleaned up; the signature is still checked.
        decoded = decode_token(refresh_token, expected_type=REFRESH, verify_exp=False)
        record = find_refresh_record(decoded["sub"], refresh_token)
        if record is None:
            return False
        storage.delete(record)
        storage.save()
        return True
    except Exception as exc:
        logger.warning("Refresh token revocation failed: %s", exc)
        return False


def revoke_all(user_id: str) -> int:
    """Delete every session record of a user; returns how many were removed."""
    session = storage.get_session()
    count = session.query(RefreshToken).filter(RefreshToken.user_id == str(user_id)).delete(
        synchronize_session=False
    )
    storage.save()
    return count


def set_auth_cookies(response, access_token: str, refresh_token: str | None = None):
    config = current_app.config
    common = {
        "httponly": True,
        "samesite": config["COOKIE_SAMESITE"],
        "secure": config["COOKIE_SECURE"],
    }
    response.set_cookie(
        config["ACCESS_COOKIE_NAME"],
        access_token,
        max_age=int(config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
        **common,
    )
    if refresh_token is not None:
        response.set_cookie(
            config["REFRESH_COOKIE_NAME"],
            refresh_token,
            max_age=int(config["REFRESH_TOKEN_EXPIRES"].total_seconds()),
            **common,
        )
    return response


def clear_auth_cookies(response):
    config = current_app.config
    for name in (config["ACCESS_COOKIE_NAME"], config["REFRESH_COOKIE_NAME"]):
        response.delete_cookie(
            name,
            httponly=True,
            samesite=config["COOKIE_SAMESITE"],
            secure=config["COOKIE_SECURE"],
        )
    return response
