# src/squadfeed/models/__init__.py
"""SQLAlchemy models for the SquadFeed application."""

from .bookmark import Bookmark
from .comment import Comment
from .post import Post
from .profile import Profile
from .squad import Squad, SquadMember
from .vote import Vote

__all__ = [
    "Bookmark",
    "Comment",
    "Post",
    "Profile",
    "Squad", "SquadMember",
    "Vote",
]
