"""
MarkSync Backend — Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception carries a user-safe message and an optional context dict.
       Global exception handlers (registered in main.py) translate them into
       structured JSON responses with the right HTTP status code.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    MarkSyncError (base)
    ├── ValidationError             → 400 Bad Request
    │   ├── InvalidPayloadError     → 400 (malformed sync payload)
    │   ├── DuplicateFieldError     → 400 (username/email taken)
    │   └── AuthenticationError     → 400 (bad login or password)
    ├── DatabaseError               → 500 Internal Server Error
    │   └── StoreFailureError       → 500 (sync rolled back)
    └── RateLimitExceededError      → 429 Too Many Requests

    The 400 for credential failures mirrors what the browser extension
    client already handles.
"""

from typing import Any, Dict, Optional


class MarkSyncError(Exception):
    """
    Base exception for all MarkSync application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MarkSyncError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request
    """

    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidPayloadError(ValidationError):
    """
    Raised when a sync request is malformed.

    When:  userId missing or not a positive integer, bookmarks not a list,
           or a bookmark without a non-empty title/url.
    Guarantee: raised before any store interaction, so nothing was mutated.
    """

    error_code = "invalid_payload"

    def __init__(
        self,
        message: str = "Invalid payload",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field=field, context=context)


class DuplicateFieldError(ValidationError):
    """Raised when registration collides with an existing username or email."""

    error_code = "duplicate_field"

    MESSAGES = {
        "username": "Username already taken",
        "email": "Email already registered",
    }

    def __init__(self, field: str, context: Optional[Dict[str, Any]] = None):
        message = self.MESSAGES.get(field, f"{field} already in use")
        super().__init__(message=message, field=field, context=context)


class AuthenticationError(ValidationError):
    """
    Raised on a failed login.

    The message is identical for unknown users and wrong passwords so the
    response does not reveal which accounts exist.
    """

    error_code = "invalid_credentials"

    def __init__(
        self,
        message: str = "Invalid login or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(MarkSyncError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. SQL text,
        constraint names and driver errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "Database error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreFailureError(DatabaseError):
    """
    Raised when a bookmark sync fails inside its transaction.

    The transaction has been rolled back: the user's bookmarks are exactly
    what they were before the call. Resubmitting the same sync is safe.
    """

    def __init__(
        self,
        message: str = "Database error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(MarkSyncError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
