"""Comment-related Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CommentCreate(BaseModel):
    """Schema for adding a comment to a post."""

    content: str = Field(..., min_length=1, max_length=10_000)
    parent_id: int | None = None

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Comment cannot be empty")
        return stripped


class CommentOut(BaseModel):
    """Comment joined with its author's display fields."""

    id: int
    post_id: int
    author_id: str
    author_username: str | None = None
    author_avatar_url: str | None = None
    parent_id: int | None = None
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_joined_rows(cls, data: Any) -> Any:
        # Repository rows arrive as (Comment, Profile) tuples.
        if isinstance(data, tuple) and len(data) == 2:
            comment, author = data
            extracted: dict[str, Any] = {
                field_name: getattr(comment, field_name)
                for field_name in cls.model_fields
                if hasattr(comment, field_name)
            }
            extracted["author_username"] = author.username if author is not None else None
            extracted["author_avatar_url"] = author.avatar_url if author is not None else None
            return extracted
        return data
