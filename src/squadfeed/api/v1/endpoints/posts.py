# src/squadfeed/api/v1/endpoints/posts.py
"""Raw content query and comment endpoints backing remote content services."""

from fastapi import APIRouter, HTTPException, Query, status

from squadfeed.core.settings import settings
from squadfeed.repositories.content_repo import ContentRepository
from squadfeed.schemas.comment import CommentCreate, CommentOut
from squadfeed.schemas.feed import FilterSpec, OrderClause
from squadfeed.schemas.post import FeedPost

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/query", response_model=list[FeedPost])
async def query_posts(
    db: SessionDep,
    squad_id: int | None = Query(None, description="Equality filter on squad id"),
    squad_ids: list[int] | None = Query(None, description="Restrict to these squad ids"),
    order: list[str] | None = Query(
        None,
        description="Ordering terms such as upvotes:desc, applied in sequence",
    ),
    offset: int = Query(0, ge=0),
    limit: int = Query(settings.feed_default_page_size, ge=1, le=settings.feed_max_page_size),
) -> list[FeedPost]:
    """Return visible posts with author and squad display fields.

    Args:
        db: Database session
        squad_id: Optional single-squad scope
        squad_ids: Optional membership set to restrict to
        order: ORDER BY terms in ``column:direction`` form
        offset: Rows to skip
        limit: Maximum rows to return

    Raises:
        HTTPException: If an ordering term is malformed
    """
    try:
        order_by = tuple(OrderClause.from_param(term) for term in order or ())
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(err),
        ) from err

    filter_spec = FilterSpec(
        squad_id=squad_id,
        squad_ids=tuple(squad_ids) if squad_ids is not None else None,
        order_by=order_by,
    )
    return ContentRepository(db).query_content(filter_spec, offset, limit)


@router.get("/{post_id}/comments", response_model=list[CommentOut])
async def list_comments(post_id: int, db: SessionDep) -> list[CommentOut]:
    """List visible comments on a post, newest first."""
    repo = ContentRepository(db)
    if repo.get_post(post_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return repo.list_comments(post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommentOut:
    """Comment on a post.

    The comment row and the post's ``comment_count`` increment share one
    commit.

    Raises:
        HTTPException: If the post or the parent comment does not exist
    """
    repo = ContentRepository(db)
    post = repo.get_post(post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    if comment_data.parent_id is not None:
        parent = repo.get_comment(comment_data.parent_id)
        if parent is None or parent.post_id != post_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Parent comment not found",
            )

    comment = repo.add_comment(
        post, current_user.id, comment_data.content, comment_data.parent_id
    )
    db.commit()
    return repo.comment_out(comment)
