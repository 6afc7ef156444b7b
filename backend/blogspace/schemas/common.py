"""
BlogSpace Backend — Shared Pydantic Schemas
=============================================

What:  Base model and the response shapes shared by every resource.
How:   Resource schemas subclass CamelModel so the JSON contract is camelCase
       (fullName, likeCount, totalPages) while Python code stays snake_case.
       FastAPI serializes response_model output by alias.
Who:   Imported by schemas.user, schemas.blog, routes, and the client SDK.

Design Decision:
    Schemas are separate from SQLAlchemy models because:
    1. API contracts change independently of database schema (computed
       fields such as likeCount, isLiked, placeholder avatars)
    2. We control exactly what data is exposed (password_hash never leaves
       the ORM layer)
    3. The client SDK parses responses with these same classes, so client
       and server agree on exactly one contract
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for contract models: camelCase on the wire, snake_case in Python."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class MediaAsset(CamelModel):
    """
    What:  A file held by the media store.
    Who:   Returned by the /media upload endpoints; stored as a user's avatar.

    publicId is the store-relative path; it is what DELETE /media/{publicId}
    takes and what update/delete of a post uses to clean up replaced media.
    """
    url: str
    public_id: Optional[str] = None
    format: Optional[str] = None
    size: Optional[int] = None
    type: Optional[str] = None


class MessageResponse(CamelModel):
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models — Consistent error format across all endpoints
# ══════════════════════════════════════════════════════════════════════════


class FieldError(BaseModel):
    field: str = Field(description="Request field that failed validation")
    message: str = Field(description="Human-readable constraint violation")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description, shown by the client as-is
        details: Optional extra context
        errors: One entry per violated constraint (validation failures only)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "validation_error",
            "message": "Validation failed",
            "errors": [{"field": "excerpt", "message": "Excerpt must be between 10 and 300 characters"}],
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict] = Field(default=None, description="Additional error context")
    errors: Optional[List[FieldError]] = Field(default=None, description="Field-level errors")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
