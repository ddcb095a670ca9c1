"""SQLAlchemy models for squads and squad membership."""
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from squadfeed.db.session import Base
from squadfeed.db.time import utcnow


class Squad(Base):
    """Community that groups posts and members."""

    __tablename__ = "squad"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class SquadMember(Base):
    """Join table mapping profiles into squads."""

    __tablename__ = "squad_member"
    __table_args__ = (Index("ix_squad_member_user_id", "user_id"),)

    squad_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("squad.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profile.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Presence implies membership.
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
