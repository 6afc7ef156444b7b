"""
BlogSpace Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for each error category of the API.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and auth dependencies; caught by global handlers.

Exception Hierarchy:
    BlogSpaceError (base)
    ├── ValidationError          → 400 Bad Request (field-level errors)
    ├── UnauthenticatedError     → 401 Unauthorized
    │   ├── InvalidTokenError    → 401 (bad signature / malformed token)
    │   └── TokenExpiredError    → 401 (past its exp claim)
    ├── ForbiddenError           → 403 Forbidden (not the owner / not admin)
    ├── NotFoundError            → 404 Not Found (absent or concealed)
    ├── ConflictError            → 409 Conflict (duplicate unique field)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional, Sequence


class BlogSpaceError(Exception):
    """
    Base exception for all BlogSpace application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client
                  for 5xx errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BlogSpaceError):
    """
    Raised when client input fails validation.

    HTTP:    400 Bad Request

    `errors` holds one {"field", "message"} entry per violated constraint.
    A single-field error can be raised with `field=` instead.

    Example response:
        {
            "error": "validation_error",
            "message": "Validation failed",
            "errors": [{"field": "title", "message": "Title must be between 5 and 200 characters"}]
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field
        self.errors = errors or ([{"field": field, "message": message}] if field else [])

    @classmethod
    def from_pydantic(cls, errors: Sequence[Dict[str, Any]]) -> "ValidationError":
        """
        Build from pydantic/FastAPI error dicts (exc.errors()).

        The field is the error location without its source prefix
        ("body", "query", "path"); the message is the validator's own
        ValueError text when there is one.
        """
        field_errors = []
        for err in errors:
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
            ctx_error = (err.get("ctx") or {}).get("error")
            message = str(ctx_error) if isinstance(ctx_error, Exception) else err.get("msg", "Invalid value")
            field_errors.append({"field": ".".join(loc) or "body", "message": message})
        return cls(message="Validation failed", errors=field_errors)


class UnauthenticatedError(BlogSpaceError):
    """
    Raised when a request carries no usable identity.

    When:    No bearer token, a revoked token, or bad login credentials.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    error_code = "unauthenticated"

    def __init__(
        self,
        message: str = "Authentication required. No token provided.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidTokenError(UnauthenticatedError):
    """Token failed signature verification or is missing required claims."""

    error_code = "invalid_token"

    def __init__(
        self,
        message: str = "Invalid token.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TokenExpiredError(UnauthenticatedError):
    """Token signature is valid but its exp claim is in the past."""

    error_code = "token_expired"

    def __init__(
        self,
        message: str = "Token expired. Please log in again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(BlogSpaceError):
    """
    Raised when an authenticated caller may not act on a resource.

    When:    Updating/deleting another author's post, admin-only routes.
    HTTP:    403 Forbidden

    Not used for reads of unpublished posts: those raise NotFoundError so
    that the post's existence is not revealed.
    """

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BlogSpaceError):
    """
    Raised when a requested resource does not exist, or exists but is
    hidden from the caller (draft post viewed by a non-owner).

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        # Same message whether the row is missing or hidden
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(BlogSpaceError):
    """
    Raised when a unique field (username, email) is already taken.

    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class FileStorageError(BlogSpaceError):
    """
    Raised when media store operations fail (disk full, permission denied).

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BlogSpaceError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; context
    (query details, driver error type) is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(BlogSpaceError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
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
