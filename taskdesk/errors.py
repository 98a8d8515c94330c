# PURPOSE: error taxonomy raised by services and rendered by api/errors.py.

from __future__ import annotations


class AppError(Exception):
    """Base for all expected failures; carries an HTTP status and a message."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidStatusError(ValidationError):
    default_message = "Invalid status"


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Not authorized. Try login again."


class AccountDeactivatedError(AuthenticationError):
    default_message = "User account has been deactivated, contact the administrator"


class PermissionDeniedError(AppError):
    status_code = 403
    default_message = "Not authorized as admin"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class AuthorizationError(NotFoundError):
    """Resource exists but belongs to someone else.

    Rendered exactly like NotFoundError so callers cannot discover other users' ids.
    """


class ConflictError(AppError):
    status_code = 409
    default_message = "Already exists"


class UnexpectedError(AppError):
    status_code = 500
