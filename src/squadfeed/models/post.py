# src/squadfeed/models/post.py
"""SQLAlchemy models for posts and related attributes."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from squadfeed.db.session import Base
from squadfeed.db.time import utcnow


class Post(Base):
    """Primary content entity produced by users.

    Vote counters are denormalized onto the row and kept in step with the
    ``vote`` table by the vote write paths.
    """

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint("upvotes >= 0", name="ck_post_upvotes_non_negative"),
        CheckConstraint("downvotes >= 0", name="ck_post_downvotes_non_negative"),
        CheckConstraint("comment_count >= 0", name="ck_post_comment_count_non_negative"),
        Index("ix_post_squad_id", "squad_id"),
        Index("ix_post_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    author_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profile.id"),
        nullable=False,
    )
    # Posts outside any squad land on the author's profile only.
    squad_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("squad.id"),
        nullable=True,
    )

    upvotes: Mapped[int] = mapped_column(default=0, nullable=False)
    downvotes: Mapped[int] = mapped_column(default=0, nullable=False)
    comment_count: Mapped[int] = mapped_column(default=0, nullable=False)

    is_boosted: Mapped[bool] = mapped_column(default=False, nullable=False)
    # Soft delete owned by moderation.
    is_hidden: Mapped[bool] = mapped_column(default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def score(self) -> int:
        """Net score: upvotes minus downvotes."""
        return self.upvotes - self.downvotes
