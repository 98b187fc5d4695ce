"""
Authentication blueprint:
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256)
- Delivers both as HttpOnly cookies; nothing is returned in the body
- Stores argon2 hashes of refresh tokens so sessions can be revoked and rotated
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, current_app

from models import storage
from models.user import User
from models.schemas.user import UserOutSchema, UserLoginSchema
from utils.security import verify_password
from api.errors import InvalidCredentials
from api.sessions import (
    issue_tokens,
    refresh_session,
    revoke_refresh_token,
    set_auth_cookies,
    clear_auth_cookies,
)

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()


def verify_credentials(email: str, password: str) -> User:
    """Return the user owning `email` if `password` matches its stored hash."""
    session = storage.get_session()
    user = session.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt for %s", email)
        raise InvalidCredentials()
    return user


@bp.post("/login")
def login():
    """
    Login: body {email, password}; sets accessToken and refreshToken cookies.
    200 {user} | 400 validation error | 401 invalid credentials
    """
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    user = verify_credentials(payload["email"], payload["password"])

    access_token, refresh_token = issue_tokens(user.id)
    response = jsonify({"user": user_out_schema.dump(user)})
    return set_auth_cookies(response, access_token, refresh_token), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange the refreshToken cookie for a new token pair (rotation).
    200 {message} | 401 when the cookie is missing, invalid, revoked or expired
    """
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    access_token, refresh_token = refresh_session(token)
    response = jsonify({"message": "Token refreshed"})
    return set_auth_cookies(response, access_token, refresh_token), 200


@bp.post("/logout")
def logout():
    """
    Revoke the current session (best effort) and clear both cookies.
    Always 200.
    """
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    revoke_refresh_token(token)
    response = jsonify({"message": "Logged out successfully"})
    return clear_auth_cookies(response), 200
