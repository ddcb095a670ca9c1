# src/squadfeed/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    bookmarks_router,
    feed_router,
    posts_router,
    squads_router,
    votes_router,
)

__all__ = [
    "bookmarks_router",
    "feed_router",
    "posts_router",
    "squads_router",
    "votes_router",
]
