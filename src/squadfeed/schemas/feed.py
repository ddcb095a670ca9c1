# src/squadfeed/schemas/feed.py
"""Feed query value objects shared by the planner, repository and API."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .post import FeedPost


class SortMode(str, Enum):
    """Feed tabs a client can request."""

    NEW = "new"
    TOP = "top"
    TRENDING = "trending"
    FOLLOWING = "following"
    PERSONALIZED = "personalized"


class OrderColumn(str, Enum):
    """Post columns a feed may be ordered by."""

    CREATED_AT = "created_at"
    UPVOTES = "upvotes"
    COMMENT_COUNT = "comment_count"


class OrderClause(BaseModel):
    """A single ORDER BY term."""

    column: OrderColumn
    descending: bool = True

    model_config = ConfigDict(frozen=True)

    def to_param(self) -> str:
        """Render as ``column:desc`` / ``column:asc`` for query strings."""
        return f"{self.column.value}:{'desc' if self.descending else 'asc'}"

    @classmethod
    def from_param(cls, value: str) -> "OrderClause":
        """Parse the ``column:direction`` form produced by :meth:`to_param`.

        Raises:
            ValueError: If the column or direction is unknown.
        """
        column, _, direction = value.partition(":")
        direction = direction or "desc"
        if direction not in {"asc", "desc"}:
            raise ValueError(f"Unknown sort direction: {direction}")
        return cls(column=OrderColumn(column), descending=direction == "desc")


class FilterSpec(BaseModel):
    """Concrete filter and ordering for a content query.

    ``squad_id`` is an equality filter for a single squad scope;
    ``squad_ids`` restricts results to a membership set. Both apply when set.
    """

    squad_id: int | None = None
    squad_ids: tuple[int, ...] | None = None
    order_by: tuple[OrderClause, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)


class FeedPage(BaseModel):
    """One fetched page of a feed."""

    items: list[FeedPost]
    page: int
    page_size: int
    # True when the page came back full; an approximation, not an exact count.
    has_more: bool
