"""Content-service contract consumed by the feed planner and reconcilers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from squadfeed.schemas.comment import CommentOut
from squadfeed.schemas.feed import FilterSpec
from squadfeed.schemas.post import FeedPost


@runtime_checkable
class ContentService(Protocol):
    """Backend operations the client core depends on.

    Implementations raise :class:`~squadfeed.services.errors.ContentServiceError`
    on failure and never return untyped rows.
    """

    async def query_content(
        self, filter_spec: FilterSpec, offset: int, limit: int
    ) -> list[FeedPost]:
        """Return visible posts matching ``filter_spec`` in its order."""
        ...

    async def get_current_user_memberships(self, user_id: str) -> list[int]:
        """Return ids of the squads ``user_id`` has joined."""
        ...

    async def insert_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        """Create the vote row for (user, post)."""
        ...

    async def update_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        """Change the direction of an existing vote row."""
        ...

    async def delete_vote(self, user_id: str, post_id: int) -> None:
        """Remove the vote row for (user, post)."""
        ...

    async def adjust_post_counters(
        self, post_id: int, upvote_delta: int, downvote_delta: int
    ) -> None:
        """Apply counter deltas paired with the preceding vote-row write."""
        ...

    async def list_comments(self, post_id: int) -> list[CommentOut]:
        """Return visible comments on a post, newest first."""
        ...

    async def insert_comment(
        self, user_id: str, post_id: int, content: str, parent_id: int | None = None
    ) -> CommentOut:
        """Create a comment and raise the post's comment count in one unit."""
        ...

    async def insert_bookmark(self, user_id: str, post_id: int) -> None:
        """Create the bookmark row for (user, post)."""
        ...

    async def delete_bookmark(self, user_id: str, post_id: int) -> None:
        """Remove the bookmark row for (user, post)."""
        ...
