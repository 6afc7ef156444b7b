"""
BlogSpace Client — HTTP API Client
====================================

What:  Async client for the BlogSpace REST API, one method per endpoint.
How:   httpx.AsyncClient against ClientSettings.api_url. Responses are
       parsed into the same pydantic schemas the server declares, so the
       client consumes exactly one documented shape per endpoint (BlogPage
       for every listing) with no fallback parsing.
Who:   Used directly by scripts and by AuthSession, LikeToggle, FeedLoader.

Errors:
    Any non-2xx response raises ApiError(status, message, errors), where
    message is the server's "message" field and errors its field-level
    list for 400 responses. Callers surface `message` to the user as-is.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from blogspace.client.config import ClientSettings
from blogspace.schemas.blog import (
    BlogDetailResponse,
    BlogPage,
    BlogResponse,
    CommentResponse,
    LikeResponse,
)
from blogspace.schemas.common import MediaAsset, MessageResponse
from blogspace.schemas.user import AuthResponse, FollowResponse, PublicProfile, UserPage, UserProfile

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A non-2xx API response."""

    def __init__(self, status: int, message: str, errors: Optional[List[Dict[str, str]]] = None):
        self.status = status
        self.message = message
        self.errors = errors or []
        super().__init__(f"{status}: {message}")

    @property
    def is_unauthenticated(self) -> bool:
        return self.status == 401


def _clean_params(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None and v != ""}


class BlogSpaceClient:
    """
    Usage:
        async with BlogSpaceClient() as client:
            auth = await client.login("a@example.com", "secret1")
            page = await client.list_blogs(search="python", token=auth.token)
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or ClientSettings()
        self._http = httpx.AsyncClient(
            base_url=base_url or self.settings.api_url,
            timeout=self.settings.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BlogSpaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        headers = kwargs.pop("headers", {})
        if token:
            headers["Authorization"] = f"Bearer {token}"

        response = await self._http.request(method, path, headers=headers, **kwargs)
        logger.debug("%s %s → %d", method, path, response.status_code)

        if response.is_success:
            return response.json() if response.content else None

        try:
            body = response.json()
        except ValueError:
            raise ApiError(response.status_code, f"Server error: {response.status_code}")
        if not isinstance(body, dict):
            raise ApiError(response.status_code, "Something went wrong")
        raise ApiError(
            response.status_code,
            body.get("message") or "Something went wrong",
            body.get("errors"),
        )

    # ── Users ─────────────────────────────────────────────────────────────

    async def signup(
        self,
        username: str,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> AuthResponse:
        payload = _clean_params(
            {"username": username, "email": email, "password": password, "fullName": full_name}
        )
        return AuthResponse.model_validate(await self._request("POST", "/users/signup", json=payload))

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._request("POST", "/users/login", json={"email": email, "password": password})
        return AuthResponse.model_validate(data)

    async def logout(self, token: str) -> MessageResponse:
        return MessageResponse.model_validate(await self._request("POST", "/users/logout", token=token))

    async def me(self, token: str) -> UserProfile:
        return UserProfile.model_validate(await self._request("GET", "/users/me", token=token))

    async def update_profile(
        self,
        token: str,
        full_name: Optional[str] = None,
        bio: Optional[str] = None,
        avatar: Optional[tuple] = None,
    ) -> UserProfile:
        """
        Args:
            avatar: optional (filename, bytes) to upload as the new avatar;
                    the request is sent as multipart when given
        """
        fields = _clean_params({"fullName": full_name, "bio": bio})
        if avatar is not None:
            data = await self._request(
                "PUT", "/users/profile", token=token, data=fields, files={"avatar": avatar}
            )
        else:
            data = await self._request("PUT", "/users/profile", token=token, json=fields)
        return UserProfile.model_validate(data)

    async def follow(self, user_id: UUID, token: str) -> FollowResponse:
        data = await self._request("POST", f"/users/follow/{user_id}", token=token)
        return FollowResponse.model_validate(data)

    async def unfollow(self, user_id: UUID, token: str) -> FollowResponse:
        data = await self._request("POST", f"/users/unfollow/{user_id}", token=token)
        return FollowResponse.model_validate(data)

    async def public_profile(self, username: str) -> PublicProfile:
        return PublicProfile.model_validate(await self._request("GET", f"/users/{username}"))

    async def list_users(self, token: str, page: int = 1, limit: int = 10) -> UserPage:
        data = await self._request("GET", "/users", token=token, params={"page": page, "limit": limit})
        return UserPage.model_validate(data)

    # ── Blogs ─────────────────────────────────────────────────────────────

    async def list_blogs(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        my_posts: bool = False,
        token: Optional[str] = None,
    ) -> BlogPage:
        params = _clean_params(
            {
                "page": page,
                "limit": limit,
                "category": category,
                "search": search,
                "sort": sort,
                "myPosts": "true" if my_posts else None,
            }
        )
        return BlogPage.model_validate(await self._request("GET", "/blogs", token=token, params=params))

    async def my_posts(self, token: str, page: int = 1, limit: int = 10) -> BlogPage:
        data = await self._request("GET", "/blogs/my-posts", token=token, params={"page": page, "limit": limit})
        return BlogPage.model_validate(data)

    async def user_blogs(self, user_id: UUID, page: int = 1, limit: int = 10) -> BlogPage:
        data = await self._request("GET", f"/blogs/user/{user_id}", params={"page": page, "limit": limit})
        return BlogPage.model_validate(data)

    async def get_blog(self, blog_id: UUID, token: Optional[str] = None) -> BlogDetailResponse:
        return BlogDetailResponse.model_validate(await self._request("GET", f"/blogs/{blog_id}", token=token))

    async def create_blog(self, token: str, payload: Dict[str, Any]) -> BlogResponse:
        return BlogResponse.model_validate(await self._request("POST", "/blogs", token=token, json=payload))

    async def update_blog(self, blog_id: UUID, token: str, changes: Dict[str, Any]) -> BlogResponse:
        data = await self._request("PUT", f"/blogs/{blog_id}", token=token, json=changes)
        return BlogResponse.model_validate(data)

    async def delete_blog(self, blog_id: UUID, token: str) -> MessageResponse:
        return MessageResponse.model_validate(await self._request("DELETE", f"/blogs/{blog_id}", token=token))

    async def toggle_like(self, blog_id: UUID, token: str) -> LikeResponse:
        return LikeResponse.model_validate(await self._request("POST", f"/blogs/{blog_id}/like", token=token))

    async def add_comment(self, blog_id: UUID, token: str, content: str) -> CommentResponse:
        data = await self._request("POST", f"/blogs/{blog_id}/comments", token=token, json={"content": content})
        return CommentResponse.model_validate(data)

    async def delete_comment(self, blog_id: UUID, comment_id: UUID, token: str) -> MessageResponse:
        data = await self._request("DELETE", f"/blogs/{blog_id}/comments/{comment_id}", token=token)
        return MessageResponse.model_validate(data)

    # ── Media ─────────────────────────────────────────────────────────────

    async def _upload(self, endpoint: str, token: str, filename: str, content: bytes) -> MediaAsset:
        data = await self._request("POST", f"/media/{endpoint}", token=token, files={"file": (filename, content)})
        return MediaAsset.model_validate(data)

    async def upload_image(self, token: str, filename: str, content: bytes) -> MediaAsset:
        return await self._upload("upload-image", token, filename, content)

    async def upload_avatar(self, token: str, filename: str, content: bytes) -> MediaAsset:
        return await self._upload("upload-avatar", token, filename, content)

    async def upload_video(self, token: str, filename: str, content: bytes) -> MediaAsset:
        return await self._upload("upload-video", token, filename, content)

    async def delete_media(self, public_id: str, token: str) -> MessageResponse:
        return MessageResponse.model_validate(await self._request("DELETE", f"/media/{public_id}", token=token))
