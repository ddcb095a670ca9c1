# src/squadfeed/schemas/vote.py
"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Schema for casting a first vote on a post."""

    post_id: int
    is_upvote: bool = Field(..., description="True for upvote, False for downvote")


class VoteUpdate(BaseModel):
    """Schema for flipping the direction of an existing vote."""

    is_upvote: bool


class VoteStatusOut(BaseModel):
    """Current user's vote on a post."""

    status: Literal["none", "up", "down"]
