"""Bookmark-related Pydantic schemas."""

from pydantic import BaseModel


class BookmarkCreate(BaseModel):
    """Schema for bookmarking a post."""

    post_id: int
