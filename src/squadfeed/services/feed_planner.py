"""Feed query planning and paginated feed sessions.

A sort mode and optional squad scope resolve to a :class:`FilterSpec`; pages
are fetched with offset pagination. :class:`FeedSession` accumulates pages for
one feed and discards responses that were superseded by a newer request.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from squadfeed.core.settings import settings
from squadfeed.schemas.feed import FeedPage, FilterSpec, OrderClause, OrderColumn, SortMode
from squadfeed.schemas.post import FeedPost
from squadfeed.services.content import ContentService
from squadfeed.services.errors import (
    ContentServiceError,
    StaleResponseDiscarded,
    TransientFetchError,
)
from squadfeed.services.reconciler import VoteSnapshot

logger = logging.getLogger(__name__)

NEWEST_ORDER: tuple[OrderClause, ...] = (OrderClause(column=OrderColumn.CREATED_AT),)
# Downvotes are ignored for "top"; net score is not computed by the store.
TOP_ORDER: tuple[OrderClause, ...] = (OrderClause(column=OrderColumn.UPVOTES),)
TRENDING_ORDER: tuple[OrderClause, ...] = (
    OrderClause(column=OrderColumn.UPVOTES),
    OrderClause(column=OrderColumn.COMMENT_COUNT),
)

PERSONAL_SORT_MODES = frozenset({SortMode.FOLLOWING, SortMode.PERSONALIZED})


def build_filter_spec(
    sort_mode: SortMode | str,
    squad_id: int | None = None,
    memberships: Sequence[int] | None = None,
) -> FilterSpec:
    """Translate a sort mode and scope into a concrete filter specification.

    Args:
        sort_mode: Requested feed tab.
        squad_id: Optional single-squad scope, applied on top of any mode.
        memberships: Squads the current user has joined; ``None`` for an
            anonymous user. Only consulted by personal modes.

    Returns:
        The filter and ordering to query with.

    Raises:
        ValueError: If ``sort_mode`` is not a known mode.
    """
    mode = SortMode(sort_mode)

    if mode in PERSONAL_SORT_MODES:
        if memberships:
            return FilterSpec(
                squad_id=squad_id,
                squad_ids=tuple(memberships),
                order_by=NEWEST_ORDER,
            )
        # No memberships (or anonymous): fall back to trending, never empty.
        return FilterSpec(squad_id=squad_id, order_by=TRENDING_ORDER)

    if mode is SortMode.NEW:
        order_by = NEWEST_ORDER
    elif mode is SortMode.TOP:
        order_by = TOP_ORDER
    else:
        order_by = TRENDING_ORDER
    return FilterSpec(squad_id=squad_id, order_by=order_by)


class FeedPlanner:
    """Resolves feed queries and fetches pages through a content service."""

    def __init__(self, service: ContentService) -> None:
        self.service = service

    async def resolve(
        self,
        sort_mode: SortMode | str,
        squad_id: int | None = None,
        current_user_id: str | None = None,
    ) -> FilterSpec:
        """Resolve a sort mode for the given actor.

        Memberships are looked up only for personal modes with a signed-in
        user.

        Raises:
            TransientFetchError: If the membership lookup fails.
        """
        mode = SortMode(sort_mode)
        memberships: list[int] | None = None
        if mode in PERSONAL_SORT_MODES and current_user_id is not None:
            try:
                memberships = await self.service.get_current_user_memberships(current_user_id)
            except ContentServiceError as exc:
                raise TransientFetchError(exc.message) from exc
        return build_filter_spec(mode, squad_id, memberships)

    async def fetch_page(
        self, filter_spec: FilterSpec, page_number: int, page_size: int
    ) -> FeedPage:
        """Fetch one page; page N covers rows ``[(N-1)*size, N*size)``.

        ``has_more`` is true exactly when the page came back full, which
        over-reports by one page when the remaining count is a multiple of
        ``page_size``.

        Raises:
            ValueError: If ``page_number`` or ``page_size`` is below 1.
            TransientFetchError: If the content query fails.
        """
        if page_number < 1:
            raise ValueError("page_number must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        offset = (page_number - 1) * page_size
        try:
            items = await self.service.query_content(filter_spec, offset, page_size)
        except ContentServiceError as exc:
            raise TransientFetchError(exc.message) from exc

        return FeedPage(
            items=items,
            page=page_number,
            page_size=page_size,
            has_more=len(items) == page_size,
        )


class FeedSession:
    """Accumulated, paginated state of a single feed.

    Each fetch takes the next request sequence number; a response whose number
    is no longer the latest is dropped on arrival. Sessions share no state.
    """

    def __init__(
        self,
        planner: FeedPlanner,
        *,
        sort_mode: SortMode | str | None = None,
        squad_id: int | None = None,
        user_id: str | None = None,
        page_size: int | None = None,
    ) -> None:
        self.planner = planner
        self.sort_mode = SortMode(sort_mode or settings.feed_default_sort)
        self.squad_id = squad_id
        self.user_id = user_id
        self.page_size = page_size or settings.feed_default_page_size
        if self.page_size < 1:
            raise ValueError("page_size must be >= 1")

        self.posts: list[FeedPost] = []
        self.page = 0
        self.has_more = True
        self.loading = False
        self.last_error: TransientFetchError | None = None

        self._sequence = 0
        self._filter_spec: FilterSpec | None = None

    async def load_first(self) -> FeedPage | None:
        """Fetch page 1 and replace the accumulated posts."""
        return await self._load(1)

    async def refresh(self) -> FeedPage | None:
        """Re-fetch page 1, picking up membership changes."""
        self._filter_spec = None
        return await self._load(1)

    async def load_more(self) -> FeedPage | None:
        """Fetch and append the next page.

        Does nothing while a fetch is in flight or when the last page was not
        full.
        """
        if self.loading or not self.has_more:
            return None
        return await self._load(self.page + 1)

    async def change_sort(self, sort_mode: SortMode | str) -> FeedPage | None:
        """Switch tabs: clear the accumulated posts and load page 1."""
        self.sort_mode = SortMode(sort_mode)
        self._reset()
        return await self._load(1)

    async def change_scope(self, squad_id: int | None) -> FeedPage | None:
        """Switch squad scope: clear the accumulated posts and load page 1."""
        self.squad_id = squad_id
        self._reset()
        return await self._load(1)

    def cancel(self) -> None:
        """Drop whatever fetch is in flight; its result is ignored on arrival."""
        self._sequence += 1
        self.loading = False

    def apply_vote(self, post_id: int, snapshot: VoteSnapshot) -> None:
        """Mirror an optimistic vote snapshot into the accumulated posts.

        Usable directly as a :meth:`VoteReconciler.subscribe` listener.
        """
        update = {"upvotes": snapshot.upvotes, "downvotes": snapshot.downvotes}
        self.posts = [
            post.model_copy(update=update) if post.id == post_id else post
            for post in self.posts
        ]

    def apply_comment_count(self, post_id: int, comment_count: int) -> None:
        """Mirror an optimistic comment count into the accumulated posts."""
        self.posts = [
            post.model_copy(update={"comment_count": comment_count})
            if post.id == post_id
            else post
            for post in self.posts
        ]

    def _reset(self) -> None:
        self.posts = []
        self.page = 0
        self.has_more = True
        self.last_error = None
        self._filter_spec = None

    def _ensure_current(self, sequence: int) -> None:
        if sequence != self._sequence:
            raise StaleResponseDiscarded(sequence, self._sequence)

    async def _load(self, page_number: int) -> FeedPage | None:
        self._sequence += 1
        sequence = self._sequence
        self.loading = True
        try:
            filter_spec = self._filter_spec
            if filter_spec is None:
                filter_spec = await self.planner.resolve(
                    self.sort_mode, self.squad_id, self.user_id
                )
                self._ensure_current(sequence)
                self._filter_spec = filter_spec

            result = await self.planner.fetch_page(filter_spec, page_number, self.page_size)
            self._ensure_current(sequence)
        except StaleResponseDiscarded as exc:
            logger.debug("Feed response dropped: %s", exc.message)
            return None
        except TransientFetchError as exc:
            if sequence != self._sequence:
                logger.debug("Ignoring failure of superseded request #%d", sequence)
                return None
            self.last_error = exc
            logger.warning(
                "Feed page %d (%s) failed: %s", page_number, self.sort_mode.value, exc.message
            )
            raise
        finally:
            if sequence == self._sequence:
                self.loading = False

        if result.page == 1:
            self.posts = list(result.items)
        else:
            self.posts = [*self.posts, *result.items]
        self.page = result.page
        self.has_more = result.has_more
        self.last_error = None
        return result
