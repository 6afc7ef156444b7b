"""
BlogSpace Backend — User Service
==================================

What:  Account lifecycle (signup, login, logout), profiles, and the follower
       graph.
How:   Composes AuthService (hashing/tokens) and MediaService (avatar files)
       with database operations on users and the follows table.
Who:   Called by routes.users.

Follow Semantics:
    Following is set membership in the follows table. follow() of an
    already-followed user and unfollow() of a user not followed are no-ops
    that still return the current state, so retries are safe.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blogspace.exceptions import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from blogspace.models.user import User, follows
from blogspace.schemas.common import MessageResponse
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
from blogspace.services import presentation
from blogspace.services.auth_service import auth_service
from blogspace.services.media_service import KIND_IMAGE, media_service
from blogspace.services.pagination import total_pages

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for accounts and profiles.

    Responsibilities:
        - signup() / login() / logout()
        - get_profile(): the caller's own profile with follower ids
        - update_profile(): partial profile edit, optional avatar upload
        - follow() / unfollow()
        - get_public_profile(): profile by username
        - list_users(): admin listing
    """

    # ── Follower graph queries ────────────────────────────────────────────

    async def _follow_ids(self, db: AsyncSession, user_id: uuid.UUID) -> Tuple[List[uuid.UUID], List[uuid.UUID]]:
        """Returns (follower ids, followed ids) for one user."""
        followers = await db.execute(
            select(follows.c.follower_id)
            .where(follows.c.followed_id == user_id)
            .order_by(follows.c.created_at)
        )
        following = await db.execute(
            select(follows.c.followed_id)
            .where(follows.c.follower_id == user_id)
            .order_by(follows.c.created_at)
        )
        return list(followers.scalars().all()), list(following.scalars().all())

    async def _follow_counts(
        self, db: AsyncSession, user_ids: List[uuid.UUID]
    ) -> Dict[uuid.UUID, Tuple[int, int]]:
        """Returns {user id: (followers count, following count)} for many users."""
        counts: Dict[uuid.UUID, Tuple[int, int]] = {uid: (0, 0) for uid in user_ids}
        if not user_ids:
            return counts

        followers = await db.execute(
            select(follows.c.followed_id, func.count())
            .where(follows.c.followed_id.in_(user_ids))
            .group_by(follows.c.followed_id)
        )
        for uid, n in followers.all():
            counts[uid] = (n, counts[uid][1])

        following = await db.execute(
            select(follows.c.follower_id, func.count())
            .where(follows.c.follower_id.in_(user_ids))
            .group_by(follows.c.follower_id)
        )
        for uid, n in following.all():
            counts[uid] = (counts[uid][0], n)
        return counts

    async def _followers_count(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count()).select_from(follows).where(follows.c.followed_id == user_id)
        )
        return result.scalar_one()

    async def _get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    # ── Accounts ──────────────────────────────────────────────────────────

    async def _auth_response(self, db: AsyncSession, user: User) -> AuthResponse:
        token, expires_at = auth_service.issue_token(user)
        return AuthResponse(
            token=token,
            expires_at=expires_at,
            user=await self.get_profile(db, user),
        )

    async def signup(self, db: AsyncSession, data: SignupRequest) -> AuthResponse:
        """
        Create an account and sign the new user in.

        Raises:
            ConflictError: username or email already registered (→ 409)
        """
        existing = await db.execute(
            select(User.username, User.email).where(
                or_(
                    func.lower(User.username) == data.username.lower(),
                    User.email == data.email,
                )
            )
        )
        for username, email in existing.all():
            if email == data.email:
                raise ConflictError(message="Email is already registered", field="email")
            raise ConflictError(message="Username is already taken", field="username")

        user = User(
            username=data.username,
            email=data.email,
            password_hash=auth_service.hash_password(data.password),
            full_name=data.full_name,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same name/email
            raise ConflictError(message="Username or email is already registered")

        logger.info("User registered: %s (%s)", user.username, user.id)
        return await self._auth_response(db, user)

    async def login(self, db: AsyncSession, data: LoginRequest) -> AuthResponse:
        """
        Raises:
            UnauthenticatedError: unknown email or wrong password. The two
                                  cases are indistinguishable to the caller.
        """
        result = await db.execute(select(User).where(User.email == data.email))
        user = result.scalar_one_or_none()
        if user is None or not auth_service.verify_password(data.password, user.password_hash):
            logger.info("Failed login attempt for %s", data.email)
            raise UnauthenticatedError(message="Invalid credentials")

        logger.info("User logged in: %s", user.id)
        return await self._auth_response(db, user)

    async def logout(self, db: AsyncSession, claims: Dict[str, Any]) -> MessageResponse:
        await auth_service.revoke_token(db, claims)
        return MessageResponse(message="Logged out successfully")

    # ── Profiles ──────────────────────────────────────────────────────────

    async def get_profile(self, db: AsyncSession, user: User) -> UserProfile:
        followers, following = await self._follow_ids(db, user.id)
        return presentation.user_profile(user, followers, following)

    async def update_profile(
        self,
        db: AsyncSession,
        user: User,
        data: ProfileUpdate,
        avatar_upload: Optional[Tuple[str, bytes, Optional[int]]] = None,
    ) -> UserProfile:
        """
        Apply a partial profile update.

        Args:
            data: fields present in the request; None values are ignored
            avatar_upload: (filename, content, content_length) of an uploaded
                           avatar file, which takes precedence over data.avatar

        The previous stored avatar is removed best-effort after the new one
        is committed, and only if this user uploaded it.
        """
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        old_avatar_id = (user.avatar or {}).get("publicId")

        if "full_name" in changes:
            user.full_name = changes["full_name"] or None
        if "bio" in changes:
            user.bio = changes["bio"]

        new_avatar = None
        if avatar_upload is not None:
            filename, content, content_length = avatar_upload
            new_avatar = await media_service.upload(
                filename=filename,
                content=content,
                owner_id=user.id,
                kind=KIND_IMAGE,
                content_length=content_length,
            )
        elif data.avatar is not None:
            new_avatar = data.avatar

        if new_avatar is not None:
            user.avatar = new_avatar.model_dump(by_alias=True, exclude_none=True)

        await db.flush()

        if new_avatar is not None and old_avatar_id and old_avatar_id != new_avatar.public_id:
            # The old file goes only once the new avatar is committed
            await db.commit()
            await media_service.delete_quietly(old_avatar_id, owner_id=user.id)

        logger.info("Profile updated: %s (fields=%s)", user.id, sorted(changes))
        return await self.get_profile(db, user)

    async def get_public_profile(self, db: AsyncSession, username: str) -> PublicProfile:
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=username)
        followers, following = (await self._follow_counts(db, [user.id]))[user.id]
        return presentation.public_profile(user, followers, following)

    async def list_users(self, db: AsyncSession, page: int, limit: int) -> UserPage:
        total = (await db.execute(select(func.count()).select_from(User))).scalar_one()
        result = await db.execute(
            select(User)
            .order_by(User.created_at.desc(), User.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        users = list(result.scalars().all())
        counts = await self._follow_counts(db, [u.id for u in users])
        return UserPage(
            items=[presentation.user_list_item(u, *counts[u.id]) for u in users],
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit),
        )

    # ── Follower graph mutations ──────────────────────────────────────────

    async def follow(self, db: AsyncSession, user: User, target_id: uuid.UUID) -> FollowResponse:
        """
        Raises:
            ValidationError: following yourself (→ 400)
            NotFoundError: unknown target (→ 404)
        """
        if target_id == user.id:
            raise ValidationError(message="You cannot follow yourself", field="id")
        target = await self._get_user(db, target_id)

        exists = await db.execute(
            select(follows.c.follower_id).where(
                follows.c.follower_id == user.id,
                follows.c.followed_id == target.id,
            )
        )
        if exists.first() is None:
            await db.execute(insert(follows).values(follower_id=user.id, followed_id=target.id))
            logger.info("User %s followed %s", user.id, target.id)

        return FollowResponse(
            message=f"You are now following {target.username}",
            following=True,
            followers_count=await self._followers_count(db, target.id),
        )

    async def unfollow(self, db: AsyncSession, user: User, target_id: uuid.UUID) -> FollowResponse:
        if target_id == user.id:
            raise ValidationError(message="You cannot unfollow yourself", field="id")
        target = await self._get_user(db, target_id)

        result = await db.execute(
            delete(follows).where(
                follows.c.follower_id == user.id,
                follows.c.followed_id == target.id,
            )
        )
        if result.rowcount:
            logger.info("User %s unfollowed %s", user.id, target.id)

        return FollowResponse(
            message=f"You have unfollowed {target.username}",
            following=False,
            followers_count=await self._followers_count(db, target.id),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
