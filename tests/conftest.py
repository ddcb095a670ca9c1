# tests/conftest.py
from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PYTEST_RUNNING", "true")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from squadfeed.core.security import create_access_token  # noqa: E402
from squadfeed.db.session import Base  # noqa: E402
from squadfeed.db.session import get_db as app_get_session  # noqa: E402
from squadfeed.main import app as fastapi_app  # noqa: E402
from squadfeed.models import Post, Profile, Squad, SquadMember  # noqa: E402
from squadfeed.schemas.comment import CommentOut  # noqa: E402
from squadfeed.schemas.feed import FilterSpec, OrderColumn  # noqa: E402
from squadfeed.schemas.post import FeedPost  # noqa: E402
from squadfeed.services.errors import ContentServiceError  # noqa: E402

TEST_DB_URL = "sqlite://"
BASE_TIME = datetime(2026, 1, 1, tzinfo=UTC)

_USER_COUNTER = count(1)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _create_profile(db_session: Session, username: str) -> Profile:
    profile = Profile(
        id=f"user-{next(_USER_COUNTER):04d}",
        username=username,
        avatar_url=f"https://cdn.example.com/{username}.png",
    )
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture()
def test_user(db_session: Session) -> Profile:
    """Create and return the primary test profile."""
    return _create_profile(db_session, "alice")


@pytest.fixture()
def other_user(db_session: Session) -> Profile:
    """Create and return a second profile."""
    return _create_profile(db_session, "bob")


@pytest.fixture()
def auth_token(test_user: Profile) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: Profile) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def squad(db_session: Session) -> Squad:
    """Create a default test squad."""
    squad = Squad(name="builders", description="Build logs")
    db_session.add(squad)
    db_session.commit()
    return squad


@pytest.fixture()
def other_squad(db_session: Session) -> Squad:
    """Create a second squad."""
    squad = Squad(name="gardeners")
    db_session.add(squad)
    db_session.commit()
    return squad


@pytest.fixture()
def join_squad(db_session: Session) -> Callable[[Profile, Squad], SquadMember]:
    def _join(user: Profile, squad: Squad) -> SquadMember:
        member = SquadMember(squad_id=squad.id, user_id=user.id)
        db_session.add(member)
        db_session.commit()
        return member

    return _join


@pytest.fixture()
def make_post(db_session: Session, test_user: Profile) -> Callable[..., Post]:
    """Return a factory creating persisted posts.

    ``age_minutes`` sets ``created_at`` relative to a fixed base time; larger
    values are older.
    """
    counter = count(1)

    def _make(
        *,
        title: str | None = None,
        author: Profile | None = None,
        squad: Squad | None = None,
        upvotes: int = 0,
        downvotes: int = 0,
        comment_count: int = 0,
        age_minutes: int = 0,
        is_hidden: bool = False,
    ) -> Post:
        n = next(counter)
        post = Post(
            title=title or f"Post {n}",
            content=f"Body of post {n}",
            author_id=(author or test_user).id,
            squad_id=squad.id if squad is not None else None,
            upvotes=upvotes,
            downvotes=downvotes,
            comment_count=comment_count,
            is_hidden=is_hidden,
            created_at=BASE_TIME - timedelta(minutes=age_minutes),
        )
        db_session.add(post)
        db_session.commit()
        return post

    return _make


def make_feed_post(post_id: int, **overrides: Any) -> FeedPost:
    """Build a FeedPost without touching the database."""
    fields: dict[str, Any] = {
        "id": post_id,
        "title": f"Post {post_id}",
        "content": "",
        "author_id": "user-fake",
        "author_username": "fake",
        "created_at": BASE_TIME - timedelta(minutes=post_id),
    }
    fields.update(overrides)
    return FeedPost(**fields)


_SORT_KEYS = {
    OrderColumn.CREATED_AT: lambda post: post.created_at,
    OrderColumn.UPVOTES: lambda post: post.upvotes,
    OrderColumn.COMMENT_COUNT: lambda post: post.comment_count,
}


class FakeContentService:
    """In-memory content service with failure injection and paused queries."""

    def __init__(self, posts: list[FeedPost] | None = None) -> None:
        self.posts: list[FeedPost] = list(posts or [])
        self.memberships: dict[str, list[int]] = {}
        self.votes: dict[tuple[str, int], bool] = {}
        self.bookmarks: set[tuple[str, int]] = set()
        self.counter_adjustments: list[tuple[int, int, int]] = []
        self.comments: list[CommentOut] = []
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self._pauses: list[asyncio.Event] = []

    def pause_next_query(self) -> asyncio.Event:
        """Make the next query_content call wait until the returned event is set."""
        event = asyncio.Event()
        self._pauses.append(event)
        return event

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise ContentServiceError(f"{name} failed")

    async def query_content(
        self, filter_spec: FilterSpec, offset: int, limit: int
    ) -> list[FeedPost]:
        pause = self._pauses.pop(0) if self._pauses else None
        if pause is not None:
            await pause.wait()
        self._enter("query_content")

        rows = [post for post in self.posts if not post.is_hidden]
        if filter_spec.squad_id is not None:
            rows = [post for post in rows if post.squad_id == filter_spec.squad_id]
        if filter_spec.squad_ids is not None:
            rows = [post for post in rows if post.squad_id in filter_spec.squad_ids]
        rows.sort(key=lambda post: post.id, reverse=True)
        for clause in reversed(filter_spec.order_by):
            rows.sort(key=_SORT_KEYS[clause.column], reverse=clause.descending)
        return rows[offset:offset + limit]

    async def get_current_user_memberships(self, user_id: str) -> list[int]:
        self._enter("get_current_user_memberships")
        return list(self.memberships.get(user_id, []))

    async def insert_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        self._enter("insert_vote")
        self.votes[(user_id, post_id)] = is_upvote

    async def update_vote(self, user_id: str, post_id: int, is_upvote: bool) -> None:
        self._enter("update_vote")
        self.votes[(user_id, post_id)] = is_upvote

    async def delete_vote(self, user_id: str, post_id: int) -> None:
        self._enter("delete_vote")
        self.votes.pop((user_id, post_id), None)

    async def adjust_post_counters(
        self, post_id: int, upvote_delta: int, downvote_delta: int
    ) -> None:
        self._enter("adjust_post_counters")
        self.counter_adjustments.append((post_id, upvote_delta, downvote_delta))

    async def list_comments(self, post_id: int) -> list[CommentOut]:
        self._enter("list_comments")
        return [comment for comment in reversed(self.comments) if comment.post_id == post_id]

    async def insert_comment(
        self, user_id: str, post_id: int, content: str, parent_id: int | None = None
    ) -> CommentOut:
        self._enter("insert_comment")
        comment = CommentOut(
            id=len(self.comments) + 1,
            post_id=post_id,
            author_id=user_id,
            parent_id=parent_id,
            content=content,
            created_at=BASE_TIME,
        )
        self.comments.append(comment)
        return comment

    async def insert_bookmark(self, user_id: str, post_id: int) -> None:
        self._enter("insert_bookmark")
        self.bookmarks.add((user_id, post_id))

    async def delete_bookmark(self, user_id: str, post_id: int) -> None:
        self._enter("delete_bookmark")
        self.bookmarks.discard((user_id, post_id))


@pytest.fixture()
def fake_service() -> FakeContentService:
    return FakeContentService()


@pytest.fixture()
def feed_post() -> Callable[..., FeedPost]:
    """Return the in-memory FeedPost builder."""
    return make_feed_post
