"""
BlogSpace Backend — User Route Handlers
=========================================

What:  Account, profile and follow endpoints under /users.
How:   Extracts request data, resolves the caller, delegates to UserService.

Endpoints:
    POST /users/signup | /users/register   create account (201)
    POST /users/login                      sign in
    POST /users/logout          (auth)     revoke the presented token
    GET  /users/me              (auth)     caller's profile
    PUT  /users/profile         (auth)     partial profile update, JSON or multipart
    POST /users/follow/{id}     (auth)
    POST /users/unfollow/{id}   (auth)
    GET  /users                 (admin)    paginated user listing
    GET  /users/{username}                 public profile
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

import pydantic
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from blogspace.database import get_db_session
from blogspace.dependencies import get_current_user, get_token_claims, require_admin
from blogspace.exceptions import ValidationError
from blogspace.models.user import User
from blogspace.schemas.common import ErrorResponse, MessageResponse
from blogspace.schemas.user import (
    AuthResponse,
    FollowResponse,
    LoginRequest,
    ProfileUpdate,
    PublicProfile,
    SignupRequest,
    UserPage,
    UserProfile,
)
from blogspace.services.pagination import normalize_pagination
from blogspace.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

AUTH_ERRORS = {
    401: {"description": "Missing, invalid, expired or revoked token", "model": ErrorResponse},
}


@router.post(
    "/signup",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid signup data", "model": ErrorResponse},
        409: {"description": "Username or email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
@router.post(
    "/register",
    status_code=201,
    response_model=AuthResponse,
    include_in_schema=False,
)
async def signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await user_service.signup(db, data)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Sign in with email and password",
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await user_service.login(db, data)


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses=AUTH_ERRORS,
    summary="Revoke the presented token",
)
async def logout(
    claims: Dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """
    The token stays rejected until its original expiry, on every server
    instance, even though its signature is still valid.
    """
    return await user_service.logout(db, claims)


@router.get(
    "/me",
    response_model=UserProfile,
    responses=AUTH_ERRORS,
    summary="Current user's profile",
)
async def get_me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    return await user_service.get_profile(db, user)


async def _read_profile_update(request: Request) -> Tuple[Dict[str, Any], Optional[Tuple[str, bytes, Optional[int]]]]:
    """Returns (fields, avatar upload) from a JSON or multipart request body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        fields = {
            key: form.get(key)
            for key in ("fullName", "bio")
            if isinstance(form.get(key), str)
        }
        avatar = form.get("avatar")
        if isinstance(avatar, UploadFile) and avatar.filename:
            content = await avatar.read()
            return fields, (avatar.filename, content, avatar.size)
        return fields, None

    body = await request.body()
    if not body:
        return {}, None
    try:
        payload = json.loads(body)
    except ValueError:
        raise ValidationError(message="Request body must be valid JSON", field="body")
    if not isinstance(payload, dict):
        raise ValidationError(message="Request body must be a JSON object", field="body")
    return payload, None


@router.put(
    "/profile",
    response_model=UserProfile,
    responses={
        **AUTH_ERRORS,
        400: {"description": "Invalid profile data or avatar file", "model": ErrorResponse},
    },
    summary="Update the current user's profile",
    description=(
        "Partial update of fullName, bio and avatar. Accepts application/json, "
        "or multipart/form-data with an optional 'avatar' image file."
    ),
)
async def update_profile(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserProfile:
    fields, avatar_upload = await _read_profile_update(request)
    try:
        data = ProfileUpdate.model_validate(fields)
    except pydantic.ValidationError as e:
        raise ValidationError.from_pydantic(e.errors())
    return await user_service.update_profile(db, user, data, avatar_upload=avatar_upload)


@router.post(
    "/follow/{user_id}",
    response_model=FollowResponse,
    responses={
        **AUTH_ERRORS,
        400: {"description": "Cannot follow yourself", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Follow a user",
)
async def follow(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowResponse:
    return await user_service.follow(db, user, user_id)


@router.post(
    "/unfollow/{user_id}",
    response_model=FollowResponse,
    responses={
        **AUTH_ERRORS,
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Unfollow a user",
)
async def unfollow(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FollowResponse:
    return await user_service.unfollow(db, user, user_id)


@router.get(
    "",
    response_model=UserPage,
    responses={
        **AUTH_ERRORS,
        403: {"description": "Admin access required", "model": ErrorResponse},
    },
    summary="List all users (admin only)",
)
async def list_users(
    page: Optional[str] = Query(default=None, description="Page number (>= 1)"),
    limit: Optional[str] = Query(default=None, description="Items per page (1-100)"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> UserPage:
    page_num, limit_num = normalize_pagination(page, limit)
    return await user_service.list_users(db, page_num, limit_num)


@router.get(
    "/{username}",
    response_model=PublicProfile,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Public profile by username",
)
async def get_public_profile(
    username: str,
    db: AsyncSession = Depends(get_db_session),
) -> PublicProfile:
    return await user_service.get_public_profile(db, username)
