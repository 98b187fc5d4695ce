from __future__ import annotations
from functools import wraps
from flask import request, g, current_app
from utils.security import decode_token, TokenError, ACCESS
from models import storage
from models.user import User
from api.errors import Unauthenticated, InvalidToken


def get_access_token() -> str | None:
    """Access token from its cookie, or from an `Authorization: Bearer` header."""
    token = request.cookies.get(current_app.config["ACCESS_COOKIE_NAME"])
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def authenticate(token: str | None) -> str:
    """Resolve an access token to the user id it was issued for."""
    if not token:
        raise Unauthenticated()
    try:
        decoded = decode_token(token, expected_type=ACCESS)
    except TokenError as exc:
        raise InvalidToken() from exc
    return decoded["sub"]


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user_id = authenticate(get_access_token())

            user = storage.get(User, user_id)
            if not user:
                raise InvalidToken("User no longer exists")
            g.current_user = user
            g.current_user_id = user.id
            return fn(*args, **kwargs)

        return wrapper

    return decorator
