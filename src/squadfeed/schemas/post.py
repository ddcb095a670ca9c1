# src/squadfeed/schemas/post.py
"""Typed projection of a post joined with its author and squad display fields."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class FeedPost(BaseModel):
    """Post snapshot as shown in a feed.

    Built from a ``Post`` ORM row whose ``author`` and ``squad`` have been
    joined in by the repository, or from the equivalent JSON document.
    """

    id: int
    title: str
    content: str
    image_url: str | None = None
    author_id: str
    author_username: str | None = None
    author_avatar_url: str | None = None
    squad_id: int | None = None
    squad_name: str | None = None
    upvotes: int = 0
    downvotes: int = 0
    comment_count: int = 0
    is_boosted: bool = False
    is_hidden: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_joined_rows(cls, data: Any) -> Any:
        # Repository rows arrive as (Post, Profile, Squad | None) tuples.
        if isinstance(data, tuple) and len(data) == 3:
            post, author, squad = data
            extracted: dict[str, Any] = {
                field_name: getattr(post, field_name, None)
                for field_name in cls.model_fields
                if hasattr(post, field_name)
            }
            extracted["author_username"] = author.username if author is not None else None
            extracted["author_avatar_url"] = author.avatar_url if author is not None else None
            extracted["squad_name"] = squad.name if squad is not None else None
            return extracted
        return data

    @property
    def score(self) -> int:
        """Net score: upvotes minus downvotes."""
        return self.upvotes - self.downvotes
