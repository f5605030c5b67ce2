from abc import ABC
from enum import StrEnum


class ErrorKind(StrEnum):
    """Machine-readable error categories, mapped to HTTP status codes by the web layer."""

    VALIDATION = "validation"
    INVALID_CREDENTIALS = "invalid_credentials"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    STORAGE = "storage"


class AppError(Exception):
    """Base class for all errors raised by the application core."""

    kind: ErrorKind


class UserError(ABC, AppError):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class ValidationError(UserError):
    """Raised when user input fails validation."""

    kind = ErrorKind.VALIDATION


class InvalidCredentialsError(UserError):
    """Raised when login fails, whatever the reason."""

    kind = ErrorKind.INVALID_CREDENTIALS

    def __init__(self, message: str = "invalid email or password") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when a bearer credential or session cannot be accepted."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""

    kind = ErrorKind.FORBIDDEN


class ConflictError(UserError):
    """Raised when a unique field is already taken."""

    kind = ErrorKind.CONFLICT

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"user with this {field} already exists")


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class StorageError(AppError):
    """Raised when the document store fails or times out. The message is never shown to the user."""

    kind = ErrorKind.STORAGE

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message)
