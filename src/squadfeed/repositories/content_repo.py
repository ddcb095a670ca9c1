"""Data access helpers for posts, comments, votes, bookmarks and squad membership."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from squadfeed.models import Bookmark, Comment, Post, Profile, Squad, SquadMember, Vote
from squadfeed.schemas.comment import CommentOut
from squadfeed.schemas.feed import FilterSpec, OrderColumn
from squadfeed.schemas.post import FeedPost

__all__ = ["ContentRepository"]

_ORDER_COLUMNS = {
    OrderColumn.CREATED_AT: Post.created_at,
    OrderColumn.UPVOTES: Post.upvotes,
    OrderColumn.COMMENT_COUNT: Post.comment_count,
}


class ContentRepository:
    """Thin wrapper around database access for feed content.

    Write helpers only flush; committing is left to the caller so that a vote
    row and its counter adjustment can share one transaction.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def query_content(self, filter_spec: FilterSpec, offset: int, limit: int) -> list[FeedPost]:
        """Return visible posts joined with author and squad display fields.

        Args:
            filter_spec: Scope filters and ordering to apply.
            offset: Number of rows to skip.
            limit: Maximum number of rows to return.
        """
        stmt = (
            select(Post, Profile, Squad)
            .join(Profile, Profile.id == Post.author_id)
            .outerjoin(Squad, Squad.id == Post.squad_id)
            .where(Post.is_hidden.is_(False))
        )
        if filter_spec.squad_id is not None:
            stmt = stmt.where(Post.squad_id == filter_spec.squad_id)
        if filter_spec.squad_ids is not None:
            stmt = stmt.where(Post.squad_id.in_(filter_spec.squad_ids))

        for clause in filter_spec.order_by:
            column = _ORDER_COLUMNS[clause.column]
            stmt = stmt.order_by(column.desc() if clause.descending else column.asc())
        # Stable tie-break so offset windows never overlap between pages.
        stmt = stmt.order_by(Post.id.desc())

        rows = self.session.execute(stmt.offset(offset).limit(limit)).all()
        return [FeedPost.model_validate(tuple(row)) for row in rows]

    def list_memberships(self, user_id: str) -> list[int]:
        """Return the squad ids a user has joined."""
        result = self.session.execute(
            select(SquadMember.squad_id)
            .where(SquadMember.user_id == user_id)
            .order_by(SquadMember.squad_id)
        )
        return list(result.scalars())

    def get_post(self, post_id: int) -> Post | None:
        """Return a visible post by identifier."""
        return self.session.execute(
            select(Post).where(Post.id == post_id, Post.is_hidden.is_(False))
        ).scalars().first()

    def get_squad(self, squad_id: int) -> Squad | None:
        """Return a squad by identifier."""
        return self.session.get(Squad, squad_id)

    def get_vote(self, user_id: str, post_id: int) -> Vote | None:
        """Return the vote row for (user, post), if any."""
        return self.session.get(Vote, (user_id, post_id))

    def add_vote(self, user_id: str, post_id: int, is_upvote: bool) -> Vote:
        """Stage a new vote row."""
        vote = Vote(user_id=user_id, post_id=post_id, is_upvote=is_upvote)
        self.session.add(vote)
        self.session.flush()
        return vote

    def remove_vote(self, vote: Vote) -> None:
        """Stage deletion of a vote row."""
        self.session.delete(vote)
        self.session.flush()

    def adjust_counters(self, post: Post, upvote_delta: int, downvote_delta: int) -> Post:
        """Apply vote counter deltas, clamping each counter at zero."""
        post.upvotes = max(0, post.upvotes + upvote_delta)
        post.downvotes = max(0, post.downvotes + downvote_delta)
        self.session.flush()
        return post

    def get_comment(self, comment_id: int) -> Comment | None:
        """Return a comment by identifier."""
        return self.session.get(Comment, comment_id)

    def add_comment(
        self, post: Post, author_id: str, content: str, parent_id: int | None = None
    ) -> Comment:
        """Stage a new comment and raise the post's comment counter."""
        comment = Comment(
            post_id=post.id, author_id=author_id, content=content, parent_id=parent_id
        )
        self.session.add(comment)
        post.comment_count += 1
        self.session.flush()
        return comment

    def comment_out(self, comment: Comment) -> CommentOut:
        """Project a comment with its author's display fields."""
        author = self.session.get(Profile, comment.author_id)
        return CommentOut.model_validate((comment, author))

    def list_comments(self, post_id: int) -> list[CommentOut]:
        """Return visible comments on a post, newest first."""
        rows = self.session.execute(
            select(Comment, Profile)
            .join(Profile, Profile.id == Comment.author_id)
            .where(Comment.post_id == post_id, Comment.is_hidden.is_(False))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        ).all()
        return [CommentOut.model_validate(tuple(row)) for row in rows]

    def get_bookmark(self, user_id: str, post_id: int) -> Bookmark | None:
        """Return the bookmark row for (user, post), if any."""
        return self.session.get(Bookmark, (user_id, post_id))

    def add_bookmark(self, user_id: str, post_id: int) -> Bookmark:
        """Stage a new bookmark row."""
        bookmark = Bookmark(user_id=user_id, post_id=post_id)
        self.session.add(bookmark)
        self.session.flush()
        return bookmark

    def remove_bookmark(self, bookmark: Bookmark) -> None:
        """Stage deletion of a bookmark row."""
        self.session.delete(bookmark)
        self.session.flush()

    def list_bookmarked_post_ids(self, user_id: str) -> list[int]:
        """Return bookmarked post ids, most recent first."""
        result = self.session.execute(
            select(Bookmark.post_id)
            .where(Bookmark.user_id == user_id)
            .order_by(Bookmark.created_at.desc(), Bookmark.post_id.desc())
        )
        return list(result.scalars())

    def get_membership(self, user_id: str, squad_id: int) -> SquadMember | None:
        """Return the membership row for (squad, user), if any."""
        return self.session.get(SquadMember, (squad_id, user_id))

    def add_membership(self, user_id: str, squad_id: int) -> SquadMember:
        """Stage a squad membership."""
        member = SquadMember(squad_id=squad_id, user_id=user_id)
        self.session.add(member)
        self.session.flush()
        return member

    def remove_membership(self, member: SquadMember) -> None:
        """Stage removal of a squad membership."""
        self.session.delete(member)
        self.session.flush()
