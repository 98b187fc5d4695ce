from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base for errors raised on purpose by handlers and services.

    Subclasses pin the HTTP status, the machine-readable code and a default message.
    """

    status = 500
    error = "INTERNAL_ERROR"
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class AuthError(APIError):
    status = 401
    error = "UNAUTHORIZED"
    message = "Unauthorized"


class InvalidCredentials(AuthError):
    error = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class Unauthenticated(AuthError):
    error = "UNAUTHENTICATED"
    message = "Authentication required"


class InvalidToken(AuthError):
    error = "INVALID_TOKEN"
    message = "Invalid or expired token"


class RefreshRequired(AuthError):
    error = "REFRESH_REQUIRED"
    message = "Refresh token required"


class InvalidRefreshToken(AuthError):
    error = "INVALID_REFRESH_TOKEN"
    message = "Invalid refresh token"


class RefreshExpired(AuthError):
    error = "REFRESH_EXPIRED"
    message = "Refresh token expired, please log in again"


class Forbidden(APIError):
    status = 403
    error = "FORBIDDEN"
    message = "Forbidden"


class NotFound(APIError):
    status = 404
    error = "NOT_FOUND"
    message = "Resource not found"


class Conflict(APIError):
    status = 409
    error = "CONFLICT"
    message = "Conflict"


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Errors raised on purpose (auth failures, missing resources, ownership)
    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        if err.status >= 500:
            logger.error("API error: %s", err.message)
        return error_response(err.error, err.message, err.status, details=err.details)

    # 404 Not Found (unknown routes)
    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", 404)

    # 405 Method Not Allowed
    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("METHOD_NOT_ALLOWED", "Method not allowed", 405)

    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        if current_app and current_app.debug:
            logger.debug("Validation failed: %s", err.messages)
        return error_response("VALIDATION_ERROR", "Invalid input", 400, details=err.messages)

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        logger.warning("Integrity error: %s", message)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key constraint" in lower_msg or "foreign key mismatch" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        if "check constraint" in lower_msg or "constraint failed" in lower_msg:
            return error_response("BAD_REQUEST", "Check constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        code = err.code or 400
        error = (err.name or "Bad Request").upper().replace(" ", "_")
        return error_response(error, err.description, code)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
