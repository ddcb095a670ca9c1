# src/squadfeed/models/profile.py
"""Profile model holding the author display fields joined onto posts."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from squadfeed.db.session import Base
from squadfeed.db.time import utcnow


class Profile(Base):
    """Public profile of an authenticated user.

    The identifier is issued by the external authentication provider and is
    treated as an opaque string.
    """

    __tablename__ = "profile"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
