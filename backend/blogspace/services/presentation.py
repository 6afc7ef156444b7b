"""
BlogSpace Backend — Response Builders
=======================================

What:  Turns ORM rows plus computed counts into response schemas.
How:   Pure functions; no database access. Placeholder backfill happens here
       so every endpoint returning a post or user applies it the same way.
Who:   Called by BlogService and UserService.

Placeholder Rules:
    - Missing avatar (or one without a url) → generated avatar URL keyed by
      the user's display name (fullName, else username, else "U")
    - Missing post media → settings.media_placeholder_url
    Clients never receive null for either field.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from blogspace.config import settings
from blogspace.models.blog import Blog, Comment
from blogspace.models.user import User
from blogspace.schemas.blog import BlogDetailResponse, BlogResponse, CommentResponse, GalleryItem, MediaItem
from blogspace.schemas.common import MediaAsset
from blogspace.schemas.user import AuthorSummary, PublicProfile, UserListItem, UserProfile


def avatar_placeholder_url(display_name: str) -> str:
    query = urlencode({"name": display_name or "U", "background": "random", "color": "fff"})
    return f"{settings.avatar_placeholder_url}?{query}"


def avatar_for(user: User) -> MediaAsset:
    avatar = user.avatar or {}
    if avatar.get("url"):
        return MediaAsset.model_validate(avatar)
    return MediaAsset(
        url=avatar_placeholder_url(user.display_name),
        public_id="default-avatar",
        format="jpg",
    )


def media_or_placeholder(media: Optional[Dict[str, Any]]) -> MediaItem:
    if media and media.get("url"):
        return MediaItem.model_validate(media)
    return MediaItem(type="image", url=settings.media_placeholder_url, public_id="placeholder")


def author_summary(user: User) -> AuthorSummary:
    return AuthorSummary(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar=avatar_for(user),
    )


def public_profile(user: User, followers_count: int, following_count: int) -> PublicProfile:
    return PublicProfile(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar=avatar_for(user),
        bio=user.bio,
        followers_count=followers_count,
        following_count=following_count,
        created_at=user.created_at,
    )


def user_list_item(user: User, followers_count: int, following_count: int) -> UserListItem:
    return UserListItem(
        **public_profile(user, followers_count, following_count).model_dump(),
        email=user.email,
        role=user.role,
    )


def user_profile(user: User, followers: List[Any], following: List[Any]) -> UserProfile:
    return UserProfile(
        **user_list_item(user, len(followers), len(following)).model_dump(),
        followers=followers,
        following=following,
    )


def comment_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        user=author_summary(comment.user),
        created_at=comment.created_at,
    )


def _blog_fields(blog: Blog, like_count: int, comment_count: int, is_liked: bool) -> Dict[str, Any]:
    return {
        "id": blog.id,
        "title": blog.title,
        "content": blog.content,
        "excerpt": blog.excerpt,
        "category": blog.category,
        "tags": list(blog.tags or []),
        "status": blog.status,
        "media": media_or_placeholder(blog.media),
        "media_gallery": [GalleryItem.model_validate(item) for item in blog.media_gallery or []],
        "author": author_summary(blog.author),
        "like_count": like_count,
        "comment_count": comment_count,
        "is_liked": is_liked,
        "views": blog.views,
        "read_time": blog.read_time,
        "published_at": blog.published_at,
        "created_at": blog.created_at,
        "updated_at": blog.updated_at,
    }


def blog_response(
    blog: Blog,
    like_count: int = 0,
    comment_count: int = 0,
    is_liked: bool = False,
) -> BlogResponse:
    return BlogResponse(**_blog_fields(blog, like_count, comment_count, is_liked))


def blog_detail_response(
    blog: Blog,
    comments: List[Comment],
    like_count: int,
    is_liked: bool,
) -> BlogDetailResponse:
    return BlogDetailResponse(
        **_blog_fields(blog, like_count, len(comments), is_liked),
        comments=[comment_response(comment) for comment in comments],
    )
