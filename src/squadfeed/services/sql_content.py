"""Content service backed directly by the relational store."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from squadfeed.repositories.content_repo import ContentRepository
from squadfeed.schemas.comment import CommentOut
from squadfeed.schemas.feed import FilterSpec
from squadfeed.schemas.post import FeedPost
from squadfeed.services.errors import ContentServiceError

logger = logging.getLogger(__name__)


class SqlContentService:
    """:class:`~squadfeed.services.content.ContentService` over a SQLAlchemy session.

    Vote-row writes are flushed but not committed; the paired
    :meth:`adjust_post_counters` call commits both together. A failure in
    either step rolls the whole unit back, so the row and the counters cannot
    drift apart. A comment row and its post's ``comment_count`` increment
    are committed together in :meth:`insert_comment`.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.repo = ContentRepository(session)

    def _fail(self, message: str, exc: Exception | None = None) -> ContentServiceError:
        self.session.rollback()
        if exc is not None:
            logger.warning("%s: %s", message, exc)
        return ContentServiceError(message)

    async def query_content(
        self, filter_spec: FilterSpec, offset: int, limit: int
    ) -> list[FeedPost]:
        try:
            return self.repo.query_content(filter_spec, offset, limit)
        except SQLAlchemyError as exc:
            raise self._fail("Failed to load posts", exc) from exc

    async def get_current_user_memberships(self, user_id: str) -> list[int]:
        try:
            return self.repo.list_memberships(user_id)
        except SQLAlchemyError as exc:
            raise self._fail("Failed to load squad memberships", exc) from exc

    async def insert_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        try:
            if self.repo.get_post(post_id) is None:
                raise self._fail("Post not found")
            if self.repo.get_vote(user_id, post_id) is not None:
                raise self._fail("Vote already exists")
            self.repo.add_vote(user_id, post_id, is_upvote)
        except SQLAlchemyError as exc:
            raise self._fail("Failed to register vote", exc) from exc

    async def update_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        try:
            vote = self.repo.get_vote(user_id, post_id)
            if vote is None:
                raise self._fail("Vote not found")
            vote.is_upvote = is_upvote
            self.session.flush()
        except SQLAlchemyError as exc:
            raise self._fail("Failed to update vote", exc) from exc

    async def delete_vote(self, user_id: str, post_id: int) -> None:
        try:
            vote = self.repo.get_vote(user_id, post_id)
            if vote is None:
                raise self._fail("Vote not found")
            self.repo.remove_vote(vote)
        except SQLAlchemyError as exc:
            raise self._fail("Failed to remove vote", exc) from exc

    async def adjust_post_counters(
        self, post_id: int, upvote_delta: int, downvote_delta: int
    ) -> None:
        try:
            post = self.repo.get_post(post_id)
            if post is None:
                raise self._fail("Post not found")
            self.repo.adjust_counters(post, upvote_delta, downvote_delta)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("Failed to update vote counts", exc) from exc

    async def list_comments(self, post_id: int) -> list[CommentOut]:
        try:
            return self.repo.list_comments(post_id)
        except SQLAlchemyError as exc:
            raise self._fail("Failed to load comments", exc) from exc

    async def insert_comment(
        self, user_id: str, post_id: int, content: str, parent_id: int | None = None
    ) -> CommentOut:
        try:
            post = self.repo.get_post(post_id)
            if post is None:
                raise self._fail("Post not found")
            if parent_id is not None:
                parent = self.repo.get_comment(parent_id)
                if parent is None or parent.post_id != post_id:
                    raise self._fail("Parent comment not found")
            comment = self.repo.add_comment(post, user_id, content.strip(), parent_id)
            self.session.commit()
            return self.repo.comment_out(comment)
        except SQLAlchemyError as exc:
            raise self._fail("Failed to post comment", exc) from exc

    async def insert_bookmark(self, user_id: str, post_id: int) -> None:
        try:
            if self.repo.get_post(post_id) is None:
                raise self._fail("Post not found")
            if self.repo.get_bookmark(user_id, post_id) is not None:
                raise self._fail("Post is already bookmarked")
            self.repo.add_bookmark(user_id, post_id)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("Failed to bookmark post", exc) from exc

    async def delete_bookmark(self, user_id: str, post_id: int) -> None:
        try:
            bookmark = self.repo.get_bookmark(user_id, post_id)
            if bookmark is None:
                raise self._fail("Bookmark not found")
            self.repo.remove_bookmark(bookmark)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("Failed to remove bookmark", exc) from exc
