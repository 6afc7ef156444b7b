"""
BlogSpace Backend — Blog Service (Posts, Likes, Comments)
===========================================================

What:  All post operations: listing, detail, create/update/delete, like
       toggle, and comments.
How:   Async SQLAlchemy queries against blogs, blog_likes and comments;
       ownership and visibility rules enforced here, not in routes.
Who:   Called by routes.blogs.

Visibility & Ownership:
    - Non-owners only ever see published posts. A draft requested by a
      non-owner raises NotFoundError, exactly as for a nonexistent id.
    - Only the author may update or delete a post (ForbiddenError).
    - Likes and comments are only accepted on published posts.
    - views increments once per detail read by a non-owner of a published
      post, as a single UPDATE ... SET views = views + 1.

Derived Fields:
    - read_time = ceil(word_count / 200), recomputed when content changes
    - published_at set on creation as published or on draft → published,
      cleared on published → draft
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from blogspace.exceptions import ForbiddenError, NotFoundError
from blogspace.models.blog import STATUS_DRAFT, STATUS_PUBLISHED, Blog, Comment, blog_likes
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
from blogspace.schemas.common import MessageResponse
from blogspace.services import presentation
from blogspace.services.media_service import media_service
from blogspace.services.pagination import total_pages

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200

SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"
SORT_POPULAR = "popular"
SORT_TRENDING = "trending"

# Every order ends in Blog.id so pages never overlap or skip rows
SORT_ORDERS = {
    SORT_NEWEST: (Blog.published_at.desc().nulls_last(), Blog.created_at.desc(), Blog.id),
    SORT_OLDEST: (Blog.published_at.asc().nulls_last(), Blog.created_at.asc(), Blog.id),
    SORT_POPULAR: (Blog.views.desc(), Blog.published_at.desc().nulls_last(), Blog.id),
    SORT_TRENDING: (Blog.views.desc(), Blog.published_at.desc().nulls_last(), Blog.id),
}


def compute_read_time(content: str) -> int:
    """Minutes to read `content` at 200 words per minute, rounded up."""
    return math.ceil(len(content.split()) / WORDS_PER_MINUTE)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _any_tag_matches(dialect_name: str, pattern: str):
    """
    EXISTS over the elements of Blog.tags, one ILIKE per tag, so JSON
    punctuation of the stored list never matches a search term.
    """
    if dialect_name == "postgresql":
        elements = func.json_array_elements_text(Blog.tags).table_valued("value").alias("tag")
    else:
        elements = func.json_each(Blog.tags).table_valued("value").alias("tag")
    return (
        select(elements.c.value)
        .where(elements.c.value.ilike(pattern, escape="\\"))
        .exists()
    )


def _media_public_ids(media: Optional[dict], gallery: Optional[Iterable[dict]] = None) -> Set[str]:
    ids = set()
    if media and media.get("publicId"):
        ids.add(media["publicId"])
    for item in gallery or []:
        if item.get("publicId"):
            ids.add(item["publicId"])
    return ids


class BlogService:
    """
    Business logic layer for posts.

    Responsibilities:
        - list_blogs(): filtered, sorted, offset-paginated listing
        - get_blog(): detail with visibility check and view counting
        - create_blog() / update_blog() / delete_blog()
        - toggle_like()
        - add_comment() / delete_comment()
    """

    # ── Loading & counting ────────────────────────────────────────────────

    async def _get_blog(self, db: AsyncSession, blog_id: uuid.UUID) -> Blog:
        result = await db.execute(select(Blog).where(Blog.id == blog_id))
        blog = result.scalar_one_or_none()
        if blog is None:
            raise NotFoundError(resource="blog", resource_id=str(blog_id))
        return blog

    async def _get_visible_blog(
        self, db: AsyncSession, blog_id: uuid.UUID, user: Optional[User]
    ) -> Blog:
        """Like _get_blog, but drafts of other authors are reported as missing."""
        blog = await self._get_blog(db, blog_id)
        if not blog.is_published and not blog.is_owned_by(user):
            raise NotFoundError(resource="blog", resource_id=str(blog_id))
        return blog

    async def _get_published_blog(self, db: AsyncSession, blog_id: uuid.UUID) -> Blog:
        blog = await self._get_blog(db, blog_id)
        if not blog.is_published:
            raise NotFoundError(resource="blog", resource_id=str(blog_id))
        return blog

    async def _like_counts(self, db: AsyncSession, blog_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        if not blog_ids:
            return {}
        result = await db.execute(
            select(blog_likes.c.blog_id, func.count())
            .where(blog_likes.c.blog_id.in_(blog_ids))
            .group_by(blog_likes.c.blog_id)
        )
        return dict(result.all())

    async def _comment_counts(self, db: AsyncSession, blog_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        if not blog_ids:
            return {}
        result = await db.execute(
            select(Comment.blog_id, func.count())
            .where(Comment.blog_id.in_(blog_ids))
            .group_by(Comment.blog_id)
        )
        return dict(result.all())

    async def _liked_by(
        self, db: AsyncSession, blog_ids: List[uuid.UUID], user: Optional[User]
    ) -> Set[uuid.UUID]:
        """Ids among `blog_ids` that `user` has liked (empty for anonymous)."""
        if user is None or not blog_ids:
            return set()
        result = await db.execute(
            select(blog_likes.c.blog_id).where(
                blog_likes.c.blog_id.in_(blog_ids),
                blog_likes.c.user_id == user.id,
            )
        )
        return set(result.scalars().all())

    async def _like_count(self, db: AsyncSession, blog_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count()).select_from(blog_likes).where(blog_likes.c.blog_id == blog_id)
        )
        return result.scalar_one()

    async def _remove_media(self, db: AsyncSession, public_ids: Set[str], author_id: uuid.UUID) -> None:
        """
        Commit, then best-effort delete the author's own files among
        `public_ids`. A failed commit propagates before any file is touched.
        """
        if not public_ids:
            return
        await db.commit()
        for public_id in sorted(public_ids):
            await media_service.delete_quietly(public_id, owner_id=author_id)

    async def _build_response(self, db: AsyncSession, blog: Blog, user: Optional[User]) -> BlogResponse:
        likes = await self._like_counts(db, [blog.id])
        comments = await self._comment_counts(db, [blog.id])
        liked = await self._liked_by(db, [blog.id], user)
        return presentation.blog_response(
            blog,
            like_count=likes.get(blog.id, 0),
            comment_count=comments.get(blog.id, 0),
            is_liked=blog.id in liked,
        )

    # ── Listing ───────────────────────────────────────────────────────────

    async def list_blogs(
        self,
        db: AsyncSession,
        user: Optional[User] = None,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        my_posts: bool = False,
        author_id: Optional[uuid.UUID] = None,
    ) -> BlogPage:
        """
        Offset-paginated listing of posts.

        Scope:
            my_posts with an authenticated caller → caller's posts, any status
            otherwise → published posts only (my_posts is ignored for
            anonymous callers)

        Filters:
            author_id: one author's posts
            category:  exact match; "all" or empty means no filter
            search:    case-insensitive substring of title, excerpt,
                       content or any tag

        Args:
            page/limit: already clamped by normalize_pagination()
            sort: newest | oldest | popular | trending; anything else → newest
        """
        conditions = []
        if my_posts and user is not None:
            conditions.append(Blog.author_id == user.id)
        else:
            conditions.append(Blog.status == STATUS_PUBLISHED)

        if author_id is not None:
            conditions.append(Blog.author_id == author_id)

        if category and category.lower() != "all":
            conditions.append(Blog.category == category)

        if search and search.strip():
            pattern = f"%{_escape_like(search.strip())}%"
            conditions.append(
                or_(
                    Blog.title.ilike(pattern, escape="\\"),
                    Blog.excerpt.ilike(pattern, escape="\\"),
                    Blog.content.ilike(pattern, escape="\\"),
                    _any_tag_matches(db.bind.dialect.name, pattern),
                )
            )

        total = (
            await db.execute(select(func.count()).select_from(Blog).where(*conditions))
        ).scalar_one()

        order_by = SORT_ORDERS.get(sort or SORT_NEWEST, SORT_ORDERS[SORT_NEWEST])
        result = await db.execute(
            select(Blog)
            .where(*conditions)
            .order_by(*order_by)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        blogs = list(result.scalars().all())

        ids = [blog.id for blog in blogs]
        likes = await self._like_counts(db, ids)
        comments = await self._comment_counts(db, ids)
        liked = await self._liked_by(db, ids, user)

        return BlogPage(
            items=[
                presentation.blog_response(
                    blog,
                    like_count=likes.get(blog.id, 0),
                    comment_count=comments.get(blog.id, 0),
                    is_liked=blog.id in liked,
                )
                for blog in blogs
            ],
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit),
        )

    # ── Detail ────────────────────────────────────────────────────────────

    async def get_blog(
        self, db: AsyncSession, blog_id: uuid.UUID, user: Optional[User] = None
    ) -> BlogDetailResponse:
        """
        Fetch one post with its comments.

        Raises:
            NotFoundError: no such post, or a draft requested by a non-owner
        """
        result = await db.execute(
            select(Blog).options(selectinload(Blog.comments)).where(Blog.id == blog_id)
        )
        blog = result.scalar_one_or_none()
        if blog is None or (not blog.is_published and not blog.is_owned_by(user)):
            raise NotFoundError(resource="blog", resource_id=str(blog_id))

        if blog.is_published and not blog.is_owned_by(user):
            # updated_at pinned: a read is not a modification
            await db.execute(
                update(Blog)
                .where(Blog.id == blog.id)
                .values(views=Blog.views + 1, updated_at=Blog.updated_at)
                .execution_options(synchronize_session=False)
            )
            views = (await db.execute(select(Blog.views).where(Blog.id == blog.id))).scalar_one()
            set_committed_value(blog, "views", views)

        liked = await self._liked_by(db, [blog.id], user)
        return presentation.blog_detail_response(
            blog,
            comments=list(blog.comments),
            like_count=await self._like_count(db, blog.id),
            is_liked=blog.id in liked,
        )

    # ── Create / Update / Delete ──────────────────────────────────────────

    async def create_blog(self, db: AsyncSession, user: User, data: BlogCreate) -> BlogResponse:
        blog = Blog(
            title=data.title,
            content=data.content,
            excerpt=data.excerpt,
            category=data.category,
            tags=data.tags,
            status=data.status,
            media=data.media.model_dump(by_alias=True, exclude_none=True) if data.media else None,
            media_gallery=[item.model_dump(by_alias=True, exclude_none=True) for item in data.media_gallery],
            author=user,
            read_time=compute_read_time(data.content),
            published_at=datetime.now(timezone.utc) if data.status == STATUS_PUBLISHED else None,
        )
        db.add(blog)
        await db.flush()

        logger.info("Blog created: %s by %s (status=%s)", blog.id, user.id, blog.status)
        return presentation.blog_response(blog)

    async def update_blog(
        self, db: AsyncSession, user: User, blog_id: uuid.UUID, data: BlogUpdate
    ) -> BlogResponse:
        """
        Partial update: only fields present in the request are applied.

        A field sent as null is ignored, except `media`, where null clears
        the post's media. Replaced media files are removed best-effort after
        the update is committed.

        Raises:
            NotFoundError: no such post (or another author's draft)
            ForbiddenError: caller is not the author
        """
        blog = await self._get_visible_blog(db, blog_id, user)
        if not blog.is_owned_by(user):
            raise ForbiddenError(message="Not authorized to update this blog")

        fields = data.model_fields_set
        stale_media: Set[str] = set()

        for name in ("title", "content", "excerpt", "category", "tags"):
            value = getattr(data, name)
            if name in fields and value is not None:
                setattr(blog, name, value)

        if "content" in fields and data.content is not None:
            blog.read_time = compute_read_time(data.content)

        if "media" in fields:
            new_media = data.media.model_dump(by_alias=True, exclude_none=True) if data.media else None
            stale_media |= _media_public_ids(blog.media) - _media_public_ids(new_media)
            blog.media = new_media

        if "media_gallery" in fields and data.media_gallery is not None:
            new_gallery = [item.model_dump(by_alias=True, exclude_none=True) for item in data.media_gallery]
            stale_media |= _media_public_ids(None, blog.media_gallery) - _media_public_ids(None, new_gallery)
            blog.media_gallery = new_gallery

        if "status" in fields and data.status is not None:
            if data.status == STATUS_PUBLISHED and blog.status != STATUS_PUBLISHED:
                blog.published_at = datetime.now(timezone.utc)
            elif data.status == STATUS_DRAFT:
                blog.published_at = None
            blog.status = data.status

        await db.flush()
        await self._remove_media(db, stale_media, blog.author_id)

        logger.info("Blog updated: %s (fields=%s)", blog.id, sorted(fields))
        return await self._build_response(db, blog, user)

    async def delete_blog(self, db: AsyncSession, user: User, blog_id: uuid.UUID) -> MessageResponse:
        """
        Delete a post with its comments and likes.

        Raises:
            NotFoundError: no such post (or another author's draft)
            ForbiddenError: caller is not the author
        """
        blog = await self._get_visible_blog(db, blog_id, user)
        if not blog.is_owned_by(user):
            raise ForbiddenError(message="Not authorized to delete this blog")

        stored_media = _media_public_ids(blog.media, blog.media_gallery)

        await db.execute(delete(Comment).where(Comment.blog_id == blog.id))
        await db.execute(delete(blog_likes).where(blog_likes.c.blog_id == blog.id))
        await db.execute(delete(Blog).where(Blog.id == blog.id))
        await self._remove_media(db, stored_media, blog.author_id)

        logger.info("Blog deleted: %s by %s", blog_id, user.id)
        return MessageResponse(message="Blog deleted successfully")

    # ── Likes ─────────────────────────────────────────────────────────────

    async def toggle_like(self, db: AsyncSession, user: User, blog_id: uuid.UUID) -> LikeResponse:
        """
        Flip the caller's membership in the post's like set.

        One DELETE; if it removed nothing the caller had not liked the post,
        so one INSERT follows. No read-modify-write of a list.

        Raises:
            NotFoundError: no such post, or the post is not published
        """
        blog = await self._get_published_blog(db, blog_id)

        removed = await db.execute(
            delete(blog_likes).where(
                blog_likes.c.blog_id == blog.id,
                blog_likes.c.user_id == user.id,
            )
        )
        is_liked = removed.rowcount == 0
        if is_liked:
            await db.execute(insert(blog_likes).values(blog_id=blog.id, user_id=user.id))

        like_count = await self._like_count(db, blog.id)
        logger.info("Like toggled: blog=%s user=%s liked=%s", blog.id, user.id, is_liked)
        return LikeResponse(is_liked=is_liked, like_count=like_count)

    # ── Comments ──────────────────────────────────────────────────────────

    async def add_comment(
        self, db: AsyncSession, user: User, blog_id: uuid.UUID, data: CommentCreate
    ) -> CommentResponse:
        """
        Raises:
            NotFoundError: no such post, or the post is not published
        """
        blog = await self._get_published_blog(db, blog_id)

        comment = Comment(blog_id=blog.id, user=user, content=data.content)
        db.add(comment)
        await db.flush()

        logger.info("Comment added: %s on blog %s by %s", comment.id, blog.id, user.id)
        return presentation.comment_response(comment)

    async def delete_comment(
        self, db: AsyncSession, user: User, blog_id: uuid.UUID, comment_id: uuid.UUID
    ) -> MessageResponse:
        """
        Remove a comment. Allowed for the comment's author and for the
        author of the post it belongs to.

        Raises:
            NotFoundError: unknown post/comment, or another author's draft
            ForbiddenError: caller owns neither the comment nor the post
        """
        blog = await self._get_visible_blog(db, blog_id, user)

        result = await db.execute(
            select(Comment).where(Comment.id == comment_id, Comment.blog_id == blog.id)
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError(resource="comment", resource_id=str(comment_id))

        if comment.user_id != user.id and not blog.is_owned_by(user):
            raise ForbiddenError(message="Not authorized to delete this comment")

        await db.execute(delete(Comment).where(Comment.id == comment.id))
        logger.info("Comment deleted: %s on blog %s by %s", comment_id, blog.id, user.id)
        return MessageResponse(message="Comment deleted successfully")


# ── Singleton Instance ────────────────────────────────────────────────────
blog_service = BlogService()
