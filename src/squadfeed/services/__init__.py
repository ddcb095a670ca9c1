# src/squadfeed/services/__init__.py
"""Feed planning, optimistic reconciliation and content-service backends."""

from .content import ContentService
from .errors import (
    AuthenticationRequiredError,
    ContentServiceError,
    FeedError,
    MutationPersistError,
    StaleResponseDiscarded,
    TransientFetchError,
    ValidationError,
)
from .feed_planner import FeedPlanner, FeedSession, build_filter_spec
from .http_content import HttpContentService
from .reconciler import (
    BookmarkReconciler,
    CommentReconciler,
    VoteReconciler,
    VoteSnapshot,
    VoteStatus,
    plan_vote_transition,
)
from .sql_content import SqlContentService

__all__ = [
    "AuthenticationRequiredError",
    "BookmarkReconciler",
    "CommentReconciler",
    "ContentService",
    "ContentServiceError",
    "FeedError",
    "FeedPlanner",
    "FeedSession",
    "HttpContentService",
    "MutationPersistError",
    "SqlContentService",
    "StaleResponseDiscarded",
    "TransientFetchError",
    "ValidationError",
    "VoteReconciler",
    "VoteSnapshot",
    "VoteStatus",
    "build_filter_spec",
    "plan_vote_transition",
]
