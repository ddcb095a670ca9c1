# src/squadfeed/api/v1/endpoints/bookmarks.py
"""Bookmark endpoints."""

from fastapi import APIRouter, HTTPException, Response, status

from squadfeed.repositories.content_repo import ContentRepository
from squadfeed.schemas.bookmark import BookmarkCreate

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.get("/", response_model=list[int])
async def list_bookmarks(current_user: CurrentUserDep, db: SessionDep) -> list[int]:
    """List the current user's bookmarked post ids, newest first."""
    return ContentRepository(db).list_bookmarked_post_ids(current_user.id)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def add_bookmark(
    bookmark_data: BookmarkCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, int]:
    """Bookmark a post."""
    repo = ContentRepository(db)
    if repo.get_post(bookmark_data.post_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    if repo.get_bookmark(current_user.id, bookmark_data.post_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Post is already bookmarked",
        )
    repo.add_bookmark(current_user.id, bookmark_data.post_id)
    db.commit()
    return {"post_id": bookmark_data.post_id}


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_bookmark(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Remove a bookmark."""
    repo = ContentRepository(db)
    bookmark = repo.get_bookmark(current_user.id, post_id)
    if bookmark is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bookmark not found")
    repo.remove_bookmark(bookmark)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
