"""Tests for translating sort modes into filter specifications."""

import pytest

from squadfeed.schemas.feed import FilterSpec, OrderClause, OrderColumn, SortMode
from squadfeed.services.feed_planner import (
    NEWEST_ORDER,
    TOP_ORDER,
    TRENDING_ORDER,
    build_filter_spec,
)


def test_new_orders_by_creation_time() -> None:
    spec = build_filter_spec(SortMode.NEW)
    assert spec == FilterSpec(order_by=(OrderClause(column=OrderColumn.CREATED_AT),))


def test_top_orders_by_upvotes_only() -> None:
    spec = build_filter_spec("top")
    assert spec.order_by == TOP_ORDER
    assert [clause.column for clause in spec.order_by] == [OrderColumn.UPVOTES]


def test_trending_breaks_ties_on_comment_count() -> None:
    spec = build_filter_spec(SortMode.TRENDING)
    assert [clause.column for clause in spec.order_by] == [
        OrderColumn.UPVOTES,
        OrderColumn.COMMENT_COUNT,
    ]
    assert all(clause.descending for clause in spec.order_by)


@pytest.mark.parametrize("mode", [SortMode.FOLLOWING, SortMode.PERSONALIZED])
def test_personal_modes_restrict_to_memberships(mode: SortMode) -> None:
    spec = build_filter_spec(mode, memberships=[3, 7])
    assert spec.squad_ids == (3, 7)
    assert spec.order_by == NEWEST_ORDER


@pytest.mark.parametrize("memberships", [None, []])
@pytest.mark.parametrize("mode", [SortMode.FOLLOWING, SortMode.PERSONALIZED])
def test_personal_modes_fall_back_to_trending(mode: SortMode, memberships) -> None:
    spec = build_filter_spec(mode, memberships=memberships)
    assert spec == build_filter_spec(SortMode.TRENDING)
    assert spec.squad_ids is None


@pytest.mark.parametrize("mode", list(SortMode))
def test_squad_scope_applies_to_every_mode(mode: SortMode) -> None:
    spec = build_filter_spec(mode, squad_id=5, memberships=[1, 2])
    assert spec.squad_id == 5


def test_non_personal_modes_ignore_memberships() -> None:
    spec = build_filter_spec(SortMode.TRENDING, memberships=[1, 2])
    assert spec.squad_ids is None
    assert spec.order_by == TRENDING_ORDER


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_filter_spec("hot")


def test_order_clause_param_round_trip() -> None:
    clause = OrderClause(column=OrderColumn.COMMENT_COUNT, descending=False)
    assert clause.to_param() == "comment_count:asc"
    assert OrderClause.from_param("comment_count:asc") == clause
    assert OrderClause.from_param("upvotes") == OrderClause(column=OrderColumn.UPVOTES)


@pytest.mark.parametrize("param", ["score:desc", "upvotes:sideways"])
def test_order_clause_rejects_bad_params(param: str) -> None:
    with pytest.raises(ValueError):
        OrderClause.from_param(param)
