# src/squadfeed/schemas/__init__.py
"""Pydantic schemas for API requests, responses and service projections."""

from .bookmark import BookmarkCreate
from .comment import CommentCreate, CommentOut
from .feed import FeedPage, FilterSpec, OrderClause, OrderColumn, SortMode
from .post import FeedPost
from .vote import VoteCreate, VoteStatusOut, VoteUpdate

__all__ = [
    "BookmarkCreate",
    "CommentCreate",
    "CommentOut",
    "FeedPage",
    "FeedPost",
    "FilterSpec",
    "OrderClause",
    "OrderColumn",
    "SortMode",
    "VoteCreate",
    "VoteStatusOut",
    "VoteUpdate",
]
