from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserUpdateSchema, UserOutSchema
from utils.decorators import jwt_required
from utils.security import hash_password
from api.errors import Conflict, Forbidden, NotFound
from api.sessions import revoke_all, clear_auth_cookies

bp = Blueprint("users", __name__, url_prefix="/users")

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def _get_user_or_404(user_id: str) -> User:
    user = storage.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def _ensure_email_free(email: str, exclude_id: str | None = None):
    session = storage.get_session()
    query = session.query(User).filter(User.email == email)
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise Conflict("Email already registered")


def _ensure_self(user_id: str):
    if g.current_user_id != user_id:
        raise Forbidden("You can only modify your own account")


@bp.get("")
def list_users():
    """List all users."""
    session = storage.get_session()
    rows = session.query(User).order_by(User.created_at.asc()).all()
    return jsonify({"users": user_list_out_schema.dump(rows)}), 200


@bp.post("")
def create_user():
    """
    Sign up: body {user_name, email, password, image?}.
    201 {user} | 400 validation error | 409 email taken
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    _ensure_email_free(data["email"])

    user = User(
        user_name=data["user_name"],
        email=data["email"],
        password_hash=hash_password(data["password"]),
        image=data.get("image"),
    )
    storage.new(user)
    storage.save()
    return jsonify({"user": user_out_schema.dump(user)}), 201


@bp.get("/me")
@jwt_required()
def me():
    """Current user, resolved from the access token."""
    return jsonify({"user": user_out_schema.dump(g.current_user)}), 200


@bp.get("/<user_id>")
def get_user(user_id: str):
    user = _get_user_or_404(user_id)
    return jsonify({"user": user_out_schema.dump(user)}), 200


@bp.put("/<user_id>")
@jwt_required()
def update_user(user_id: str):
    """
    Partial update of the caller's own account; a new password is re-hashed.
    200 {user} | 403 not your account | 404 | 409 email taken
    """
    _ensure_self(user_id)
    user = _get_user_or_404(user_id)
    data = user_update_schema.load(request.get_json(silent=True) or {})

    if "email" in data and data["email"] != user.email:
        _ensure_email_free(data["email"], exclude_id=user.id)
    if "password" in data:
        user.password_hash = hash_password(data.pop("password"))
    for field in ("user_name", "email", "image"):
        if field in data:
            setattr(user, field, data[field])

    storage.new(user)
    storage.save()
    return jsonify({"message": "User updated successfully", "user": user_out_schema.dump(user)}), 200


@bp.delete("/<user_id>")
@jwt_required()
def delete_user(user_id: str):
    """Delete the caller's own account and every session it holds."""
    _ensure_self(user_id)
    user = _get_user_or_404(user_id)
    out = user_out_schema.dump(user)

    revoke_all(user.id)
    storage.delete(user)
    storage.save()

    response = jsonify({"message": "User deleted successfully", "user": out})
    return clear_auth_cookies(response), 200
