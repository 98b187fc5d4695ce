from marshmallow import ValidationError


def normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


def strip_string(value):
    return value.strip() if isinstance(value, str) else value


def not_blank(value: str) -> None:
    if not value or not value.strip():
        raise ValidationError("Field cannot be empty.")
