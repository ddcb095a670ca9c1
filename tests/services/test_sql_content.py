"""Tests for the SQL-backed content service."""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from squadfeed.models import Bookmark, Comment, Vote
from squadfeed.schemas.feed import FilterSpec, SortMode
from squadfeed.services.errors import ContentServiceError, MutationPersistError
from squadfeed.services.feed_planner import FeedPlanner, build_filter_spec
from squadfeed.services.reconciler import (
    BookmarkReconciler,
    CommentReconciler,
    VoteReconciler,
    VoteStatus,
)
from squadfeed.services.sql_content import SqlContentService


@pytest.fixture()
def service(db_session) -> SqlContentService:
    return SqlContentService(db_session)


@pytest.mark.asyncio
async def test_query_joins_display_fields(service, make_post, squad, test_user) -> None:
    make_post(title="In squad", squad=squad)
    make_post(title="Loose")

    rows = await service.query_content(build_filter_spec(SortMode.NEW), 0, 10)
    by_title = {row.title: row for row in rows}
    assert by_title["In squad"].squad_name == "builders"
    assert by_title["In squad"].author_username == test_user.username
    assert by_title["In squad"].author_avatar_url == test_user.avatar_url
    assert by_title["Loose"].squad_id is None
    assert by_title["Loose"].squad_name is None


@pytest.mark.asyncio
async def test_hidden_posts_are_excluded(service, make_post) -> None:
    make_post(title="Visible")
    make_post(title="Hidden", is_hidden=True)
    rows = await service.query_content(FilterSpec(), 0, 10)
    assert [row.title for row in rows] == ["Visible"]


@pytest.mark.asyncio
async def test_trending_scenario_orders_by_comment_tie_break(service, make_post) -> None:
    make_post(title="A", upvotes=10, comment_count=5)
    make_post(title="B", upvotes=10, comment_count=8)
    make_post(title="C", upvotes=2, comment_count=50)

    planner = FeedPlanner(service)
    spec = await planner.resolve(SortMode.TRENDING)
    page = await planner.fetch_page(spec, 1, 10)
    assert [row.title for row in page.items] == ["B", "A", "C"]


@pytest.mark.asyncio
async def test_top_ignores_downvotes(service, make_post) -> None:
    make_post(title="Loved and hated", upvotes=20, downvotes=30)
    make_post(title="Liked", upvotes=10)
    page = await FeedPlanner(service).fetch_page(build_filter_spec(SortMode.TOP), 1, 10)
    assert [row.title for row in page.items] == ["Loved and hated", "Liked"]


@pytest.mark.asyncio
async def test_new_orders_by_creation_time(service, make_post) -> None:
    make_post(title="Old", age_minutes=60)
    make_post(title="Newest", age_minutes=0)
    make_post(title="Middle", age_minutes=30)
    page = await FeedPlanner(service).fetch_page(build_filter_spec(SortMode.NEW), 1, 10)
    assert [row.title for row in page.items] == ["Newest", "Middle", "Old"]


@pytest.mark.asyncio
async def test_following_scenario(
    service, make_post, squad, other_squad, test_user, join_squad
) -> None:
    make_post(title="Builder news", squad=squad, upvotes=1, age_minutes=5)
    make_post(title="Garden news", squad=other_squad, upvotes=9, age_minutes=1)
    make_post(title="Builder old", squad=squad, upvotes=3, age_minutes=50)

    planner = FeedPlanner(service)
    # No memberships yet: identical to trending, unscoped.
    following = await planner.resolve(SortMode.FOLLOWING, current_user_id=test_user.id)
    trending = await planner.resolve(SortMode.TRENDING)
    following_rows = (await planner.fetch_page(following, 1, 10)).items
    trending_rows = (await planner.fetch_page(trending, 1, 10)).items
    assert [r.id for r in following_rows] == [r.id for r in trending_rows]

    join_squad(test_user, squad)
    following = await planner.resolve(SortMode.FOLLOWING, current_user_id=test_user.id)
    rows = (await planner.fetch_page(following, 1, 10)).items
    assert [r.title for r in rows] == ["Builder news", "Builder old"]


@pytest.mark.asyncio
async def test_offset_pages_do_not_overlap_on_ties(service, make_post) -> None:
    for _ in range(7):
        make_post(upvotes=1)
    planner = FeedPlanner(service)
    spec = build_filter_spec(SortMode.TOP)
    seen: list[int] = []
    for page_number in (1, 2, 3):
        seen.extend(row.id for row in (await planner.fetch_page(spec, page_number, 3)).items)
    assert len(seen) == len(set(seen)) == 7


@pytest.mark.asyncio
async def test_vote_row_and_counters_commit_together(
    service, db_session, make_post, test_user
) -> None:
    post = make_post(upvotes=4, downvotes=1)
    await service.insert_vote(test_user.id, post.id, True)
    await service.adjust_post_counters(post.id, 1, 0)

    db_session.refresh(post)
    assert (post.upvotes, post.downvotes) == (5, 1)
    assert db_session.get(Vote, (test_user.id, post.id)).is_upvote is True


@pytest.mark.asyncio
async def test_counter_failure_discards_staged_vote_row(
    service, db_session, make_post, test_user
) -> None:
    post = make_post(upvotes=4)
    await service.insert_vote(test_user.id, post.id, True)

    failure = OperationalError("UPDATE post", {}, Exception("database is locked"))
    with patch.object(service.repo, "adjust_counters", side_effect=failure):
        with pytest.raises(ContentServiceError):
            await service.adjust_post_counters(post.id, 1, 0)

    assert db_session.get(Vote, (test_user.id, post.id)) is None
    db_session.refresh(post)
    assert post.upvotes == 4


@pytest.mark.asyncio
async def test_duplicate_vote_is_rejected(service, make_post, test_user) -> None:
    post = make_post()
    await service.insert_vote(test_user.id, post.id, True)
    await service.adjust_post_counters(post.id, 1, 0)
    with pytest.raises(ContentServiceError, match="already exists"):
        await service.insert_vote(test_user.id, post.id, False)


@pytest.mark.asyncio
async def test_vote_on_missing_post(service, test_user) -> None:
    with pytest.raises(ContentServiceError, match="Post not found"):
        await service.insert_vote(test_user.id, 12345, True)


@pytest.mark.asyncio
async def test_counters_never_go_negative(service, db_session, make_post) -> None:
    post = make_post(upvotes=0, downvotes=0)
    await service.adjust_post_counters(post.id, -1, -1)
    db_session.refresh(post)
    assert (post.upvotes, post.downvotes) == (0, 0)


@pytest.mark.asyncio
async def test_reconciler_round_trip_against_database(
    service, db_session, make_post, test_user
) -> None:
    post = make_post(upvotes=3, downvotes=1)
    feed_post = (await service.query_content(FilterSpec(), 0, 1))[0]
    votes = VoteReconciler(service, test_user.id)
    votes.seed(feed_post)

    await votes.upvote(post.id)
    db_session.refresh(post)
    assert (post.upvotes, post.downvotes) == (4, 1)

    await votes.downvote(post.id)
    db_session.refresh(post)
    assert (post.upvotes, post.downvotes) == (3, 2)
    assert db_session.get(Vote, (test_user.id, post.id)).is_upvote is False

    await votes.downvote(post.id)
    db_session.refresh(post)
    assert (post.upvotes, post.downvotes) == (3, 1)
    assert db_session.get(Vote, (test_user.id, post.id)) is None
    assert votes.state(post.id).status is VoteStatus.NONE


@pytest.mark.asyncio
async def test_reconciler_rolls_back_when_database_disagrees(
    service, db_session, make_post, test_user
) -> None:
    post = make_post()
    feed_post = (await service.query_content(FilterSpec(), 0, 1))[0]
    # Another session already recorded this user's vote.
    db_session.add(Vote(user_id=test_user.id, post_id=post.id, is_upvote=True))
    db_session.commit()

    votes = VoteReconciler(service, test_user.id)
    votes.seed(feed_post)
    with pytest.raises(MutationPersistError, match="already exists"):
        await votes.upvote(post.id)
    assert votes.state(post.id).status is VoteStatus.NONE
    assert votes.state(post.id).upvotes == 0


@pytest.mark.asyncio
async def test_bookmarks_persist(service, db_session, make_post, test_user) -> None:
    post = make_post()
    bookmarks = BookmarkReconciler(service, test_user.id)
    assert await bookmarks.toggle(post.id) is True
    assert db_session.get(Bookmark, (test_user.id, post.id)) is not None
    assert await bookmarks.toggle(post.id) is False
    assert db_session.get(Bookmark, (test_user.id, post.id)) is None


@pytest.mark.asyncio
async def test_memberships(service, squad, other_squad, test_user, join_squad) -> None:
    assert await service.get_current_user_memberships(test_user.id) == []
    join_squad(test_user, other_squad)
    join_squad(test_user, squad)
    assert await service.get_current_user_memberships(test_user.id) == sorted(
        [squad.id, other_squad.id]
    )


def _comment_rows(db_session) -> int:
    return db_session.execute(select(func.count()).select_from(Comment)).scalar_one()


@pytest.mark.asyncio
async def test_comment_row_and_count_commit_together(
    service, db_session, make_post, test_user
) -> None:
    post = make_post(comment_count=2)

    comment = await service.insert_comment(test_user.id, post.id, "Looks great")

    db_session.refresh(post)
    assert post.comment_count == 3
    assert _comment_rows(db_session) == 1
    assert comment.author_username == test_user.username
    assert comment.post_id == post.id


@pytest.mark.asyncio
async def test_failed_commit_discards_comment_and_count(
    service, db_session, make_post, test_user
) -> None:
    post = make_post(comment_count=2)

    failure = OperationalError("COMMIT", {}, Exception("database is locked"))
    with patch.object(service.session, "commit", side_effect=failure):
        with pytest.raises(ContentServiceError, match="Failed to post comment"):
            await service.insert_comment(test_user.id, post.id, "Lost")

    db_session.refresh(post)
    assert post.comment_count == 2
    assert _comment_rows(db_session) == 0


@pytest.mark.asyncio
async def test_comment_on_missing_post(service, test_user) -> None:
    with pytest.raises(ContentServiceError, match="Post not found"):
        await service.insert_comment(test_user.id, 404, "Anyone?")


@pytest.mark.asyncio
async def test_reply_must_belong_to_same_post(service, make_post, test_user) -> None:
    first = make_post()
    second = make_post()
    parent = await service.insert_comment(test_user.id, first.id, "Top level")

    reply = await service.insert_comment(test_user.id, first.id, "Reply", parent.id)
    assert reply.parent_id == parent.id

    with pytest.raises(ContentServiceError, match="Parent comment not found"):
        await service.insert_comment(test_user.id, second.id, "Stray", parent.id)


@pytest.mark.asyncio
async def test_list_comments_newest_first_without_hidden(
    service, db_session, make_post, test_user, other_user
) -> None:
    post = make_post()
    await service.insert_comment(test_user.id, post.id, "First")
    await service.insert_comment(other_user.id, post.id, "Second")
    db_session.add(
        Comment(post_id=post.id, author_id=other_user.id, content="Hidden", is_hidden=True)
    )
    db_session.commit()

    comments = await service.list_comments(post.id)
    assert [c.content for c in comments] == ["Second", "First"]
    assert comments[0].author_username == "bob"


@pytest.mark.asyncio
async def test_comment_reconciler_against_database(
    service, db_session, make_post, test_user
) -> None:
    post = make_post(comment_count=5)
    [feed_post] = await service.query_content(build_filter_spec(SortMode.NEW), 0, 10)

    comments = CommentReconciler(service, test_user.id)
    comments.seed(feed_post)
    await comments.add(post.id, "Counted once")

    db_session.refresh(post)
    assert comments.comment_count(post.id) == post.comment_count == 6
