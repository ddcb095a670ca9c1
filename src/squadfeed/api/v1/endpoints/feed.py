# src/squadfeed/api/v1/endpoints/feed.py
"""Feed endpoint: server-side planning for a sort mode and page."""

from fastapi import APIRouter, HTTPException, Query, status

from squadfeed.core.settings import settings
from squadfeed.schemas.feed import FeedPage, SortMode
from squadfeed.services.errors import TransientFetchError
from squadfeed.services.feed_planner import FeedPlanner
from squadfeed.services.sql_content import SqlContentService

from ..dependencies import OptionalUserDep, SessionDep

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=FeedPage)
async def get_feed(
    db: SessionDep,
    current_user: OptionalUserDep,
    sort: SortMode | None = Query(None, description="Feed tab; defaults to FEED_DEFAULT_SORT"),
    squad_id: int | None = Query(None, description="Restrict to a single squad"),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.feed_default_page_size, ge=1, le=settings.feed_max_page_size
    ),
) -> FeedPage:
    """Return one page of a feed.

    Personal tabs use the bearer user's squad memberships and fall back to
    trending for anonymous callers.
    """
    planner = FeedPlanner(SqlContentService(db))
    try:
        filter_spec = await planner.resolve(
            sort or SortMode(settings.feed_default_sort),
            squad_id,
            current_user.id if current_user is not None else None,
        )
        return await planner.fetch_page(filter_spec, page, page_size)
    except TransientFetchError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=err.message,
        ) from err
