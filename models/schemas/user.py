from marshmallow import Schema, fields, pre_load, validate

from models.schemas.common import normalize_email, strip_string, not_blank

USER_NAME_LENGTH = validate.Length(min=2, max=50, error="user_name must be between 2 and 50 characters.")
PASSWORD_LENGTH = validate.Length(min=6, error="Password must be at least 6 characters long.")


class _UserInputSchema(Schema):
    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = normalize_email(data["email"])
            if "user_name" in data:
                data["user_name"] = strip_string(data["user_name"])
        return data


class UserCreateSchema(_UserInputSchema):
    user_name = fields.String(required=True, validate=USER_NAME_LENGTH)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True, validate=[PASSWORD_LENGTH, not_blank])
    image = fields.String(allow_none=True, validate=not_blank)


class UserUpdateSchema(_UserInputSchema):
    user_name = fields.String(validate=USER_NAME_LENGTH)
    email = fields.Email()
    password = fields.String(load_only=True, validate=[PASSWORD_LENGTH, not_blank])
    image = fields.String(allow_none=True, validate=not_blank)


class UserLoginSchema(Schema):
    email = fields.String(required=True, validate=not_blank)
    # Passwords are compared verbatim; whitespace is significant
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=normalize_email(data["email"]))
        return data


class UserOutSchema(Schema):
    id = fields.String()
    user_name = fields.String()
    email = fields.String()
    image = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
