"""Content service that talks to the SquadFeed HTTP API with httpx."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from squadfeed.core.settings import settings
from squadfeed.schemas.comment import CommentOut
from squadfeed.schemas.feed import FilterSpec
from squadfeed.schemas.post import FeedPost
from squadfeed.services.errors import ContentServiceError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

T = TypeVar("T")


class HttpContentService:
    """:class:`~squadfeed.services.content.ContentService` over HTTP.

    The server commits counter deltas in the same transaction as the vote
    row, so :meth:`adjust_post_counters` has nothing left to send.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "HttpContentService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        failure: str,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, f"{API_PREFIX}{path}", params=params, json=json
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ContentServiceError(failure) from exc

        if response.is_error:
            detail = _error_detail(response) or failure
            logger.warning(
                "%s %s returned %d: %s", method, path, response.status_code, detail
            )
            raise ContentServiceError(detail)
        return response

    async def query_content(
        self, filter_spec: FilterSpec, offset: int, limit: int
    ) -> list[FeedPost]:
        params: list[tuple[str, str | int]] = [("offset", offset), ("limit", limit)]
        if filter_spec.squad_id is not None:
            params.append(("squad_id", filter_spec.squad_id))
        if filter_spec.squad_ids is not None:
            params.extend(("squad_ids", squad_id) for squad_id in filter_spec.squad_ids)
        params.extend(("order", clause.to_param()) for clause in filter_spec.order_by)

        response = await self._request(
            "GET", "/posts/query", params=params, failure="Failed to load posts"
        )
        return _parse(
            response,
            lambda payload: [FeedPost.model_validate(item) for item in _as_list(payload)],
            "Failed to load posts",
        )

    async def get_current_user_memberships(self, user_id: str) -> list[int]:
        # The server resolves the user from the bearer token.
        response = await self._request(
            "GET", "/squads/memberships", failure="Failed to load squad memberships"
        )
        return _parse(
            response,
            lambda payload: [int(squad_id) for squad_id in _as_list(payload)],
            "Failed to load squad memberships",
        )

    async def insert_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        await self._request(
            "POST",
            "/votes/",
            json={"post_id": post_id, "is_upvote": is_upvote},
            failure="Failed to register vote",
        )

    async def update_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        await self._request(
            "PUT",
            f"/votes/{post_id}",
            json={"is_upvote": is_upvote},
            failure="Failed to update vote",
        )

    async def delete_vote(self, user_id: str, post_id: int) -> None:
        await self._request("DELETE", f"/votes/{post_id}", failure="Failed to remove vote")

    async def adjust_post_counters(
        self, post_id: int, upvote_delta: int, downvote_delta: int
    ) -> None:
        return None

    async def list_comments(self, post_id: int) -> list[CommentOut]:
        response = await self._request(
            "GET", f"/posts/{post_id}/comments", failure="Failed to load comments"
        )
        return _parse(
            response,
            lambda payload: [CommentOut.model_validate(item) for item in _as_list(payload)],
            "Failed to load comments",
        )

    async def insert_comment(
        self, user_id: str, post_id: int, content: str, parent_id: int | None = None
    ) -> CommentOut:
        # The server bumps comment_count in the same commit as the row.
        response = await self._request(
            "POST",
            f"/posts/{post_id}/comments",
            json={"content": content, "parent_id": parent_id},
            failure="Failed to post comment",
        )
        return _parse(response, CommentOut.model_validate, "Failed to post comment")

    async def insert_bookmark(self, user_id: str, post_id: int) -> None:
        await self._request(
            "POST",
            "/bookmarks/",
            json={"post_id": post_id},
            failure="Failed to bookmark post",
        )

    async def delete_bookmark(self, user_id: str, post_id: int) -> None:
        await self._request(
            "DELETE", f"/bookmarks/{post_id}", failure="Failed to remove bookmark"
        )


def _error_detail(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("detail"), str):
        return payload["detail"]
    return None


def _parse(response: httpx.Response, build: Callable[[Any], T], failure: str) -> T:
    """Decode a 2xx body with ``build``; malformed bodies become service errors."""
    try:
        return build(response.json())
    except (ValueError, TypeError) as exc:
        logger.warning(
            "%s %s returned an unusable body: %s",
            response.request.method,
            response.request.url.path,
            exc,
        )
        raise ContentServiceError(failure) from exc


def _as_list(payload: Any) -> list[Any]:
    if not isinstance(payload, list):
        raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
    return payload
