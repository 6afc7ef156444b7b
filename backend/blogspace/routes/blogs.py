"""
BlogSpace Backend — Blog Route Handlers
=========================================

What:  Post, like and comment endpoints under /blogs.
How:   Thin handlers: resolve the caller, normalize query parameters,
       delegate to BlogService. All ownership/visibility rules live there.

Endpoints:
    GET    /blogs                                 listing (optional auth)
    GET    /blogs/my-posts                (auth)  caller's posts, any status
    GET    /blogs/user/{userId}                   one author's published posts
    GET    /blogs/{id}                            detail (optional auth)
    POST   /blogs                         (auth)  create (201)
    PUT    /blogs/{id}                    (auth)  partial update, author only
    DELETE /blogs/{id}                    (auth)  delete, author only
    POST   /blogs/{id}/like               (auth)  toggle like
    POST   /blogs/{id}/comments           (auth)  add comment (201)
    DELETE /blogs/{id}/comments/{cid}     (auth)  delete comment
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.database import get_db_session
from blogspace.dependencies import get_current_user, get_optional_user
from blogspace.models.user import User
from blogspace.schemas.blog import (
    BlogCreate,
    BlogDetailResponse,
    BlogPage,
    BlogResponse,
    BlogUpdate,
    CommentCreate,
    CommentResponse,
    LikeResponse,
)
from blogspace.schemas.common import ErrorResponse, MessageResponse
from blogspace.services.blog_service import blog_service
from blogspace.services.pagination import normalize_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blogs", tags=["Blogs"])

AUTH_ERRORS = {
    401: {"description": "Missing, invalid, expired or revoked token", "model": ErrorResponse},
}
NOT_FOUND = {404: {"description": "Blog not found", "model": ErrorResponse}}
FORBIDDEN = {403: {"description": "Caller is not the author", "model": ErrorResponse}}


def _is_true(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in ("true", "1")


@router.get(
    "",
    response_model=BlogPage,
    summary="List posts",
    description=(
        "Offset-paginated listing. Out-of-range page/limit values are clamped, "
        "never rejected. myPosts=true scopes the list to the caller's own posts "
        "(any status) when authenticated; otherwise only published posts are listed."
    ),
)
async def list_blogs(
    page: Optional[str] = Query(default=None, description="Page number (>= 1, default 1)"),
    limit: Optional[str] = Query(default=None, description="Items per page (1-100, default 10)"),
    category: Optional[str] = Query(default=None, description="Exact category, or 'all'"),
    search: Optional[str] = Query(default=None, description="Substring of title, excerpt, content or tags"),
    sort: Optional[str] = Query(default=None, description="newest | oldest | popular | trending"),
    my_posts: Optional[str] = Query(default=None, alias="myPosts"),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogPage:
    page_num, limit_num = normalize_pagination(page, limit)
    return await blog_service.list_blogs(
        db,
        user=user,
        page=page_num,
        limit=limit_num,
        category=category,
        search=search,
        sort=sort,
        my_posts=_is_true(my_posts),
    )


@router.get(
    "/my-posts",
    response_model=BlogPage,
    responses=AUTH_ERRORS,
    summary="Caller's own posts, drafts included",
)
async def list_my_posts(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogPage:
    page_num, limit_num = normalize_pagination(page, limit)
    return await blog_service.list_blogs(
        db,
        user=user,
        page=page_num,
        limit=limit_num,
        category=category,
        search=search,
        sort=sort,
        my_posts=True,
    )


@router.get(
    "/user/{user_id}",
    response_model=BlogPage,
    summary="One author's published posts",
)
async def list_user_blogs(
    user_id: UUID,
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogPage:
    page_num, limit_num = normalize_pagination(page, limit)
    return await blog_service.list_blogs(
        db,
        user=viewer,
        page=page_num,
        limit=limit_num,
        author_id=user_id,
    )


@router.get(
    "/{blog_id}",
    response_model=BlogDetailResponse,
    responses=NOT_FOUND,
    summary="Post detail with comments",
    description=(
        "Drafts are only visible to their author; for anyone else a draft is "
        "reported as not found. Each read of a published post by someone other "
        "than its author increments its view counter."
    ),
)
async def get_blog(
    blog_id: UUID,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogDetailResponse:
    return await blog_service.get_blog(db, blog_id, user)


@router.post(
    "",
    status_code=201,
    response_model=BlogResponse,
    responses={
        **AUTH_ERRORS,
        400: {"description": "Invalid post data", "model": ErrorResponse},
    },
    summary="Create a post",
)
async def create_blog(
    data: BlogCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogResponse:
    return await blog_service.create_blog(db, user, data)


@router.put(
    "/{blog_id}",
    response_model=BlogResponse,
    responses={**AUTH_ERRORS, **FORBIDDEN, **NOT_FOUND},
    summary="Update a post (author only)",
)
async def update_blog(
    blog_id: UUID,
    data: BlogUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BlogResponse:
    return await blog_service.update_blog(db, user, blog_id, data)


@router.delete(
    "/{blog_id}",
    response_model=MessageResponse,
    responses={**AUTH_ERRORS, **FORBIDDEN, **NOT_FOUND},
    summary="Delete a post (author only)",
)
async def delete_blog(
    blog_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await blog_service.delete_blog(db, user, blog_id)


@router.post(
    "/{blog_id}/like",
    response_model=LikeResponse,
    responses={**AUTH_ERRORS, **NOT_FOUND},
    summary="Toggle the caller's like",
)
async def toggle_like(
    blog_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> LikeResponse:
    return await blog_service.toggle_like(db, user, blog_id)


@router.post(
    "/{blog_id}/comments",
    status_code=201,
    response_model=CommentResponse,
    responses={**AUTH_ERRORS, **NOT_FOUND},
    summary="Comment on a published post",
)
async def add_comment(
    blog_id: UUID,
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await blog_service.add_comment(db, user, blog_id, data)


@router.delete(
    "/{blog_id}/comments/{comment_id}",
    response_model=MessageResponse,
    responses={
        **AUTH_ERRORS,
        403: {"description": "Caller owns neither the comment nor the post", "model": ErrorResponse},
        404: {"description": "Blog or comment not found", "model": ErrorResponse},
    },
    summary="Delete a comment",
)
async def delete_comment(
    blog_id: UUID,
    comment_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await blog_service.delete_comment(db, user, blog_id, comment_id)
