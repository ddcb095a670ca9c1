# src/squadfeed/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .bookmarks import router as bookmarks_router
from .feed import router as feed_router
from .posts import router as posts_router
from .squads import router as squads_router
from .votes import router as votes_router

__all__ = [
    "bookmarks_router",
    "feed_router",
    "posts_router",
    "squads_router",
    "votes_router",
]
