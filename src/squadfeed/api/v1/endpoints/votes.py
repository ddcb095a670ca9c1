# src/squadfeed/api/v1/endpoints/votes.py
"""Vote-related endpoints.

Every write commits the vote row and the post's counters together.
"""

from fastapi import APIRouter, HTTPException, Response, status

from squadfeed.models import Post, Vote
from squadfeed.repositories.content_repo import ContentRepository
from squadfeed.schemas.vote import VoteCreate, VoteStatusOut, VoteUpdate

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/votes", tags=["votes"])


def _get_post_or_404(repo: ContentRepository, post_id: int) -> Post:
    post = repo.get_post(post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


def _get_vote_or_404(repo: ContentRepository, user_id: str, post_id: int) -> Vote:
    vote = repo.get_vote(user_id, post_id)
    if vote is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vote not found")
    return vote


def _status(vote: Vote | None) -> VoteStatusOut:
    if vote is None:
        return VoteStatusOut(status="none")
    return VoteStatusOut(status="up" if vote.is_upvote else "down")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=VoteStatusOut)
async def cast_vote(
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteStatusOut:
    """Cast a first vote on a post."""
    repo = ContentRepository(db)
    post = _get_post_or_404(repo, vote_data.post_id)
    if repo.get_vote(current_user.id, post.id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vote already exists",
        )

    vote = repo.add_vote(current_user.id, post.id, vote_data.is_upvote)
    if vote_data.is_upvote:
        repo.adjust_counters(post, 1, 0)
    else:
        repo.adjust_counters(post, 0, 1)
    db.commit()
    return _status(vote)


@router.put("/{post_id}", response_model=VoteStatusOut)
async def change_vote(
    post_id: int,
    vote_data: VoteUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteStatusOut:
    """Flip the direction of an existing vote."""
    repo = ContentRepository(db)
    post = _get_post_or_404(repo, post_id)
    vote = _get_vote_or_404(repo, current_user.id, post_id)

    if vote.is_upvote != vote_data.is_upvote:
        vote.is_upvote = vote_data.is_upvote
        if vote_data.is_upvote:
            repo.adjust_counters(post, 1, -1)
        else:
            repo.adjust_counters(post, -1, 1)
        db.commit()
    return _status(vote)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_vote(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Remove the current user's vote from a post."""
    repo = ContentRepository(db)
    post = _get_post_or_404(repo, post_id)
    vote = _get_vote_or_404(repo, current_user.id, post_id)

    if vote.is_upvote:
        repo.adjust_counters(post, -1, 0)
    else:
        repo.adjust_counters(post, 0, -1)
    repo.remove_vote(vote)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{post_id}/my-vote", response_model=VoteStatusOut)
async def get_my_vote(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteStatusOut:
    """Get current user's vote on a specific post."""
    return _status(ContentRepository(db).get_vote(current_user.id, post_id))
