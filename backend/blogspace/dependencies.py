"""
BlogSpace Backend — Authentication Dependencies
=================================================

What:  FastAPI dependencies that resolve the caller's identity from the
       `Authorization: Bearer <token>` header.
Who:   Declared by route handlers via Depends().

Variants:
    - get_current_user:  protected routes; any failure propagates (401/404)
    - get_optional_user: optional-auth routes; no header or any failure
                         leaves the caller anonymous (None)
    - require_admin:     protected + role == "admin", else 403
    - get_token_claims:  protected; returns the verified claims (logout)

All variants share the request's database session with the route handler
(FastAPI caches get_db_session per request).
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.database import get_db_session
from blogspace.exceptions import BlogSpaceError, ForbiddenError, UnauthenticatedError
from blogspace.models.user import User
from blogspace.services.auth_service import auth_service

logger = logging.getLogger(__name__)


def extract_bearer_token(request: Request) -> Optional[str]:
    """Returns the bearer token, or None if the header is absent or not Bearer."""
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = extract_bearer_token(request)
    if token is None:
        raise UnauthenticatedError()
    user, claims = await auth_service.authenticate(db, token)
    request.state.token_claims = claims
    request.state.user_id = str(user.id)
    return user


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    token = extract_bearer_token(request)
    if token is None:
        return None
    try:
        user, _ = await auth_service.authenticate(db, token)
    except BlogSpaceError as e:
        logger.debug("Optional auth ignored token: %s", e.message)
        return None
    request.state.user_id = str(user.id)
    return user


async def get_token_claims(
    request: Request,
    user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    return request.state.token_claims


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise ForbiddenError(message="Admin access required")
    return user
