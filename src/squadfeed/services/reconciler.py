"""Optimistic vote, bookmark and comment mutations.

A mutation changes local state first, then persists through the content
service. If persistence fails the exact pre-toggle state is restored and a
:class:`MutationPersistError` is raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from squadfeed.schemas.comment import CommentOut
from squadfeed.schemas.post import FeedPost
from squadfeed.services.content import ContentService
from squadfeed.services.errors import (
    AuthenticationRequiredError,
    ContentServiceError,
    MutationPersistError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class VoteStatus(str, Enum):
    """A user's vote on a post."""

    NONE = "none"
    UP = "up"
    DOWN = "down"


class VoteWrite(str, Enum):
    """Vote-row write that persists a transition."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class VoteTransition:
    """Outcome of clicking a vote button in a given state."""

    next_status: VoteStatus
    upvote_delta: int
    downvote_delta: int
    write: VoteWrite

    @property
    def score_delta(self) -> int:
        """Change in net score."""
        return self.upvote_delta - self.downvote_delta


@dataclass(frozen=True)
class VoteSnapshot:
    """Local view of one post's vote state for the current user."""

    status: VoteStatus
    upvotes: int
    downvotes: int

    @property
    def score(self) -> int:
        """Net score: upvotes minus downvotes."""
        return self.upvotes - self.downvotes

    def apply(self, transition: VoteTransition) -> VoteSnapshot:
        """Return the snapshot after ``transition``."""
        return replace(
            self,
            status=transition.next_status,
            upvotes=self.upvotes + transition.upvote_delta,
            downvotes=self.downvotes + transition.downvote_delta,
        )


def plan_vote_transition(current: VoteStatus, clicked_up: bool) -> VoteTransition:
    """Return the transition for clicking upvote (``clicked_up``) or downvote.

    Clicking the active direction clears the vote; clicking the other
    direction flips it, moving the score by two.
    """
    clicked = VoteStatus.UP if clicked_up else VoteStatus.DOWN

    if current is clicked:
        return VoteTransition(
            next_status=VoteStatus.NONE,
            upvote_delta=-1 if clicked_up else 0,
            downvote_delta=0 if clicked_up else -1,
            write=VoteWrite.DELETE,
        )
    if current is VoteStatus.NONE:
        return VoteTransition(
            next_status=clicked,
            upvote_delta=1 if clicked_up else 0,
            downvote_delta=0 if clicked_up else 1,
            write=VoteWrite.INSERT,
        )
    return VoteTransition(
        next_status=clicked,
        upvote_delta=1 if clicked_up else -1,
        downvote_delta=-1 if clicked_up else 1,
        write=VoteWrite.UPDATE,
    )


VoteListener = Callable[[int, VoteSnapshot], None]
CommentCountListener = Callable[[int, int], None]


def _unsubscriber(listeners: list, listener: Callable) -> Callable[[], None]:
    def unsubscribe() -> None:
        # Repeated calls are harmless.
        if listener in listeners:
            listeners.remove(listener)

    return unsubscribe


class VoteReconciler:
    """Per-user optimistic vote state for a set of posts.

    Transitions on the same post are serialized so a rollback always returns
    to the last confirmed state.
    """

    def __init__(self, service: ContentService, user_id: str | None) -> None:
        self.service = service
        self.user_id = user_id
        self._states: dict[int, VoteSnapshot] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._listeners: list[VoteListener] = []

    def seed(self, post: FeedPost, status: VoteStatus = VoteStatus.NONE) -> VoteSnapshot:
        """Start tracking ``post`` with its confirmed counters and the user's vote."""
        snapshot = VoteSnapshot(status=status, upvotes=post.upvotes, downvotes=post.downvotes)
        self._states[post.id] = snapshot
        return snapshot

    def state(self, post_id: int) -> VoteSnapshot:
        """Return the current local snapshot for a tracked post.

        Raises:
            KeyError: If the post was never seeded.
        """
        try:
            return self._states[post_id]
        except KeyError:
            raise KeyError(f"Post {post_id} is not tracked; seed it first") from None

    def subscribe(self, listener: VoteListener) -> Callable[[], None]:
        """Call ``listener(post_id, snapshot)`` on every local change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)
        return _unsubscriber(self._listeners, listener)

    async def upvote(self, post_id: int) -> VoteSnapshot:
        """Click upvote on ``post_id``."""
        return await self._vote(post_id, clicked_up=True)

    async def downvote(self, post_id: int) -> VoteSnapshot:
        """Click downvote on ``post_id``."""
        return await self._vote(post_id, clicked_up=False)

    def _set(self, post_id: int, snapshot: VoteSnapshot) -> None:
        self._states[post_id] = snapshot
        for listener in list(self._listeners):
            listener(post_id, snapshot)

    async def _vote(self, post_id: int, *, clicked_up: bool) -> VoteSnapshot:
        if self.user_id is None:
            raise AuthenticationRequiredError("Please sign in to vote")

        lock = self._locks.setdefault(post_id, asyncio.Lock())
        async with lock:
            before = self.state(post_id)
            transition = plan_vote_transition(before.status, clicked_up)
            after = before.apply(transition)
            self._set(post_id, after)

            try:
                await self._persist(self.user_id, post_id, transition)
            except ContentServiceError as exc:
                self._set(post_id, before)
                logger.warning(
                    "Vote %s on post %d rolled back: %s",
                    transition.write.value,
                    post_id,
                    exc.message,
                )
                raise MutationPersistError(exc.message or "Failed to register vote") from exc
            return after

    async def _persist(self, user_id: str, post_id: int, transition: VoteTransition) -> None:
        is_upvote = transition.next_status is VoteStatus.UP
        if transition.write is VoteWrite.INSERT:
            await self.service.insert_vote(user_id, post_id, is_upvote)
        elif transition.write is VoteWrite.UPDATE:
            await self.service.update_vote(user_id, post_id, is_upvote)
        else:
            await self.service.delete_vote(user_id, post_id)
        await self.service.adjust_post_counters(
            post_id, transition.upvote_delta, transition.downvote_delta
        )


class BookmarkReconciler:
    """Per-user optimistic bookmark state: absent or present."""

    def __init__(self, service: ContentService, user_id: str | None) -> None:
        self.service = service
        self.user_id = user_id
        self._bookmarked: set[int] = set()
        self._locks: dict[int, asyncio.Lock] = {}

    def seed(self, post_id: int, bookmarked: bool) -> None:
        """Record the confirmed bookmark state of a post."""
        if bookmarked:
            self._bookmarked.add(post_id)
        else:
            self._bookmarked.discard(post_id)

    def is_bookmarked(self, post_id: int) -> bool:
        return post_id in self._bookmarked

    async def toggle(self, post_id: int) -> bool:
        """Flip the bookmark on ``post_id`` and return the new state.

        Raises:
            AuthenticationRequiredError: If there is no signed-in user.
            MutationPersistError: If the write failed; state is restored.
        """
        if self.user_id is None:
            raise AuthenticationRequiredError("Please sign in to bookmark posts")

        lock = self._locks.setdefault(post_id, asyncio.Lock())
        async with lock:
            was_bookmarked = self.is_bookmarked(post_id)
            self.seed(post_id, not was_bookmarked)
            try:
                if was_bookmarked:
                    await self.service.delete_bookmark(self.user_id, post_id)
                else:
                    await self.service.insert_bookmark(self.user_id, post_id)
            except ContentServiceError as exc:
                self.seed(post_id, was_bookmarked)
                logger.warning("Bookmark toggle on post %d rolled back: %s", post_id, exc.message)
                raise MutationPersistError(exc.message or "Failed to update bookmark") from exc
            return not was_bookmarked


class CommentReconciler:
    """Per-user optimistic comment counts.

    Adding a comment raises the local count at once; the count drops back if
    the backend rejects the comment.
    """

    def __init__(self, service: ContentService, user_id: str | None) -> None:
        self.service = service
        self.user_id = user_id
        self._counts: dict[int, int] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self._listeners: list[CommentCountListener] = []

    def seed(self, post: FeedPost) -> int:
        """Start tracking ``post`` with its confirmed comment count."""
        self._counts[post.id] = post.comment_count
        return post.comment_count

    def comment_count(self, post_id: int) -> int:
        """Return the local comment count for a tracked post.

        Raises:
            KeyError: If the post was never seeded.
        """
        try:
            return self._counts[post_id]
        except KeyError:
            raise KeyError(f"Post {post_id} is not tracked; seed it first") from None

    def subscribe(self, listener: CommentCountListener) -> Callable[[], None]:
        """Call ``listener(post_id, comment_count)`` on every local change."""
        self._listeners.append(listener)
        return _unsubscriber(self._listeners, listener)

    def _set(self, post_id: int, count: int) -> None:
        self._counts[post_id] = count
        for listener in list(self._listeners):
            listener(post_id, count)

    async def add(
        self, post_id: int, content: str, parent_id: int | None = None
    ) -> CommentOut:
        """Post a comment on ``post_id`` and return the stored comment.

        Raises:
            AuthenticationRequiredError: If there is no signed-in user.
            ValidationError: If ``content`` is blank.
            MutationPersistError: If the write failed; the count is restored.
        """
        if self.user_id is None:
            raise AuthenticationRequiredError("Please sign in to comment")
        text = content.strip()
        if not text:
            raise ValidationError("Comment cannot be empty")

        lock = self._locks.setdefault(post_id, asyncio.Lock())
        async with lock:
            before = self.comment_count(post_id)
            self._set(post_id, before + 1)
            try:
                comment = await self.service.insert_comment(
                    self.user_id, post_id, text, parent_id
                )
            except ContentServiceError as exc:
                self._set(post_id, before)
                logger.warning("Comment on post %d rolled back: %s", post_id, exc.message)
                raise MutationPersistError(exc.message or "Failed to post comment") from exc
            return comment
