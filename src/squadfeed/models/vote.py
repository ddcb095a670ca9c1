# src/squadfeed/models/vote.py
"""Models capturing voting interactions on posts."""

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from squadfeed.db.session import Base


class Vote(Base):
    """Per-user vote on a post."""

    __tablename__ = "vote"
    __table_args__ = (Index("ix_vote_post_id", "post_id"),)

    # Composite primary key prevents duplicate votes from the same user.
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profile.id", ondelete="CASCADE"),
        primary_key=True,
    )
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )

    is_upvote: Mapped[bool] = mapped_column(nullable=False)
