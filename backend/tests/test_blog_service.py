"""
BlogSpace Backend — Blog Service Unit Tests
=============================================

What:  Tests for BlogService rules that do not need a real database, plus
       the read-time and pagination helpers.
How:   Mock DB sessions; ORM rows are plain objects with the attributes the
       service reads.

What we test:
    ✅ read_time = ceil(words / 200)
    ✅ page/limit clamping never rejects
    ✅ Drafts of other authors are reported as missing
    ✅ Only the author may update or delete; only the comment author or
       the post author may delete a comment
    ✅ Likes and comments on unpublished posts are refused
    ✅ Replaced media is deleted only after the commit succeeds
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from blogspace.exceptions import ForbiddenError, NotFoundError
from blogspace.models.blog import Blog
from blogspace.schemas.blog import BlogUpdate, CommentCreate
from blogspace.services.blog_service import BlogService, compute_read_time
from blogspace.services.pagination import normalize_pagination, total_pages


def _user(**kwargs):
    defaults = dict(id=uuid.uuid4(), username="alice", full_name=None, avatar=None, role="user")
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _blog(author, status="published"):
    now = datetime.now(timezone.utc)
    return Blog(
        id=uuid.uuid4(),
        title="A post about testing",
        content="Some content that is long enough.",
        excerpt="An excerpt of the post",
        category="Technology",
        tags=["python"],
        status=status,
        media=None,
        media_gallery=[],
        author_id=author.id,
        views=0,
        read_time=1,
        published_at=now if status == "published" else None,
        created_at=now,
        updated_at=now,
    )


def _result(obj):
    result = MagicMock()
    result.scalar_one_or_none.return_value = obj
    return result


class TestReadTime:

    def test_short_content_is_one_minute(self):
        assert compute_read_time("just a few words here") == 1

    def test_rounds_up(self):
        assert compute_read_time(" ".join(["word"] * 201)) == 2

    def test_exact_multiple(self):
        assert compute_read_time(" ".join(["word"] * 400)) == 2

    def test_whitespace_runs_do_not_count_as_words(self):
        assert compute_read_time("one\n\n   two\tthree") == 1


class TestPagination:

    @pytest.mark.parametrize(
        "page, limit, expected",
        [
            (None, None, (1, 10)),
            ("0", "0", (1, 1)),
            ("-3", "500", (1, 100)),
            ("abc", "xyz", (1, 10)),
            ("2.0", "5", (2, 5)),
            (" 3 ", "20", (3, 20)),
        ],
    )
    def test_normalize_clamps_instead_of_rejecting(self, page, limit, expected):
        assert normalize_pagination(page, limit) == expected

    def test_total_pages(self):
        assert total_pages(0, 10) == 0
        assert total_pages(10, 10) == 1
        assert total_pages(11, 10) == 2


class TestVisibility:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_other_authors_draft_is_not_found(self, mock_db_session):
        author, stranger = _user(), _user(username="bob")
        mock_db_session.execute.return_value = _result(_blog(author, status="draft"))

        with pytest.raises(NotFoundError):
            await self.service._get_visible_blog(mock_db_session, uuid.uuid4(), stranger)

    @pytest.mark.asyncio
    async def test_own_draft_is_visible(self, mock_db_session):
        author = _user()
        draft = _blog(author, status="draft")
        mock_db_session.execute.return_value = _result(draft)

        assert await self.service._get_visible_blog(mock_db_session, draft.id, author) is draft

    @pytest.mark.asyncio
    async def test_anonymous_draft_is_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _result(_blog(_user(), status="draft"))

        with pytest.raises(NotFoundError):
            await self.service._get_visible_blog(mock_db_session, uuid.uuid4(), None)

    @pytest.mark.asyncio
    async def test_missing_post_is_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = _result(None)

        with pytest.raises(NotFoundError) as exc_info:
            await self.service._get_blog(mock_db_session, uuid.uuid4())
        assert exc_info.value.message == "Blog not found"


class TestOwnership:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_update_by_non_author_is_forbidden(self, mock_db_session):
        blog = _blog(_user())
        mock_db_session.execute.return_value = _result(blog)

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.update_blog(
                mock_db_session, _user(username="bob"), blog.id, BlogUpdate(title="Hijacked title")
            )

        assert exc_info.value.message == "Not authorized to update this blog"
        assert blog.title == "A post about testing"
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_by_non_author_is_forbidden(self, mock_db_session):
        blog = _blog(_user())
        mock_db_session.execute.return_value = _result(blog)

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.delete_blog(mock_db_session, _user(username="bob"), blog.id)

        assert exc_info.value.message == "Not authorized to delete this blog"
        # Only the lookup ran; no DELETE statements were issued
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_delete_comment_by_unrelated_user_is_forbidden(self, mock_db_session):
        author, commenter, stranger = _user(), _user(username="carol"), _user(username="bob")
        blog = _blog(author)
        comment = SimpleNamespace(id=uuid.uuid4(), blog_id=blog.id, user_id=commenter.id)
        mock_db_session.execute.side_effect = [_result(blog), _result(comment)]

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.delete_comment(mock_db_session, stranger, blog.id, comment.id)
        assert exc_info.value.message == "Not authorized to delete this comment"

    @pytest.mark.asyncio
    async def test_post_author_may_delete_any_comment(self, mock_db_session):
        author, commenter = _user(), _user(username="carol")
        blog = _blog(author)
        comment = SimpleNamespace(id=uuid.uuid4(), blog_id=blog.id, user_id=commenter.id)
        mock_db_session.execute.side_effect = [_result(blog), _result(comment), MagicMock()]

        result = await self.service.delete_comment(mock_db_session, author, blog.id, comment.id)

        assert result.message == "Comment deleted successfully"
        assert mock_db_session.execute.await_count == 3


class TestInteractionsRequirePublished:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_like_on_draft_is_not_found(self, mock_db_session):
        author = _user()
        mock_db_session.execute.return_value = _result(_blog(author, status="draft"))

        with pytest.raises(NotFoundError):
            await self.service.toggle_like(mock_db_session, author, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_comment_on_draft_is_not_found(self, mock_db_session):
        author = _user()
        mock_db_session.execute.return_value = _result(_blog(author, status="draft"))

        with pytest.raises(NotFoundError):
            await self.service.add_comment(
                mock_db_session, author, uuid.uuid4(), CommentCreate(content="Nice post")
            )
        mock_db_session.add.assert_not_called()


class TestMediaCleanup:
    """Replaced or orphaned files are removed only after a successful commit."""

    def setup_method(self):
        self.service = BlogService()
        self.author = _user()
        self.blog = _blog(self.author)
        self.blog.media = {"type": "image", "url": "/api/v1/media/files/old.png", "publicId": "old.png"}

    def _media_mock(self, mock_db_session, seen_commits):
        async def record(public_id, owner_id):
            seen_commits.append(mock_db_session.commit.await_count)

        mock_media = MagicMock()
        mock_media.delete_quietly = MagicMock(side_effect=record)
        return mock_media

    @pytest.mark.asyncio
    async def test_replaced_media_is_deleted_after_commit(self, mock_db_session):
        seen_commits = []
        mock_media = self._media_mock(mock_db_session, seen_commits)
        mock_db_session.execute.return_value = _result(self.blog)

        with patch("blogspace.services.blog_service.media_service", mock_media), \
             patch.object(self.service, "_build_response", side_effect=_async_none):
            await self.service.update_blog(
                mock_db_session,
                self.author,
                self.blog.id,
                BlogUpdate.model_validate(
                    {"media": {"type": "image", "url": "/api/v1/media/files/new.png", "publicId": "new.png"}}
                ),
            )

        assert self.blog.media["publicId"] == "new.png"
        mock_media.delete_quietly.assert_called_once_with("old.png", owner_id=self.author.id)
        assert seen_commits == [1]

    @pytest.mark.asyncio
    async def test_null_media_clears_the_field(self, mock_db_session):
        mock_media = self._media_mock(mock_db_session, [])
        mock_db_session.execute.return_value = _result(self.blog)

        with patch("blogspace.services.blog_service.media_service", mock_media), \
             patch.object(self.service, "_build_response", side_effect=_async_none):
            await self.service.update_blog(
                mock_db_session, self.author, self.blog.id, BlogUpdate.model_validate({"media": None})
            )

        assert self.blog.media is None
        mock_media.delete_quietly.assert_called_once_with("old.png", owner_id=self.author.id)

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_old_file(self, mock_db_session):
        mock_media = self._media_mock(mock_db_session, [])
        mock_db_session.execute.return_value = _result(self.blog)
        mock_db_session.commit.side_effect = SQLAlchemyError("connection lost")

        with patch("blogspace.services.blog_service.media_service", mock_media), \
             patch.object(self.service, "_build_response", side_effect=_async_none):
            with pytest.raises(SQLAlchemyError):
                await self.service.update_blog(
                    mock_db_session, self.author, self.blog.id, BlogUpdate.model_validate({"media": None})
                )

        mock_media.delete_quietly.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_without_media_change_does_not_commit(self, mock_db_session):
        mock_media = self._media_mock(mock_db_session, [])
        mock_db_session.execute.return_value = _result(self.blog)

        with patch("blogspace.services.blog_service.media_service", mock_media), \
             patch.object(self.service, "_build_response", side_effect=_async_none):
            await self.service.update_blog(
                mock_db_session, self.author, self.blog.id, BlogUpdate.model_validate({"title": "A new title"})
            )

        mock_db_session.commit.assert_not_awaited()
        mock_media.delete_quietly.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_removes_media_after_commit(self, mock_db_session):
        seen_commits = []
        mock_media = self._media_mock(mock_db_session, seen_commits)
        self.blog.media_gallery = [{"type": "image", "url": "/g.png", "publicId": "g.png"}]
        mock_db_session.execute.side_effect = [_result(self.blog), MagicMock(), MagicMock(), MagicMock()]

        with patch("blogspace.services.blog_service.media_service", mock_media):
            await self.service.delete_blog(mock_db_session, self.author, self.blog.id)

        assert sorted(c.args[0] for c in mock_media.delete_quietly.call_args_list) == ["g.png", "old.png"]
        assert seen_commits == [1, 1]


async def _async_none(*args, **kwargs):
    return None
