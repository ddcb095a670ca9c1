# src/squadfeed/api/v1/endpoints/squads.py
"""Squad membership endpoints."""

from fastapi import APIRouter, HTTPException, Response, status

from squadfeed.repositories.content_repo import ContentRepository

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/squads", tags=["squads"])


@router.get("/memberships", response_model=list[int])
async def list_memberships(current_user: CurrentUserDep, db: SessionDep) -> list[int]:
    """List ids of the squads the current user has joined."""
    return ContentRepository(db).list_memberships(current_user.id)


@router.post("/{squad_id}/join", status_code=status.HTTP_201_CREATED)
async def join_squad(
    squad_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, int]:
    """Join a squad."""
    repo = ContentRepository(db)
    if repo.get_squad(squad_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Squad not found")
    if repo.get_membership(current_user.id, squad_id) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Already a member of this squad",
        )
    repo.add_membership(current_user.id, squad_id)
    db.commit()
    return {"squad_id": squad_id}


@router.delete("/{squad_id}/join", status_code=status.HTTP_204_NO_CONTENT)
async def leave_squad(
    squad_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Leave a squad."""
    repo = ContentRepository(db)
    member = repo.get_membership(current_user.id, squad_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not a member of this squad",
        )
    repo.remove_membership(member)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
