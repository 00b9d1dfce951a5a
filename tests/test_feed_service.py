"""
tests/test_feed_service.py — Feed Ranking Engine Tests
========================================================
Orderings, tie-breaking, pagination slices and scope handling.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from memeplace.database.models import SortMode
from memeplace.errors import NotFoundError
from memeplace.services import feed_service

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


def _ids(page) -> list[int]:
    return [item.id for item in page.items]


@pytest.fixture
def gaming_feed(make_community, make_meme):
    """Twelve memes in 'gaming' with mixed votes and ages, plus noise elsewhere."""
    gaming = make_community("gaming")
    other = make_community("cooking")
    votes = [3, 0, 7, 3, -2, 12, 3, 1, 0, 5, 5, -1]
    ids = [
        make_meme(
            f"https://x.example.com/g{i}",
            community_id=gaming,
            net_vote=v,
            created_at=T0 + timedelta(minutes=30 * i),
        )
        for i, v in enumerate(votes)
    ]
    make_meme("https://x.example.com/elsewhere", community_id=other, net_vote=50)
    make_meme("https://x.example.com/removed", community_id=gaming, net_vote=99, deleted=True)
    return gaming, ids


class TestMemeOrderings:
    def test_top_breaks_ties_by_newest(self, db_engine, make_community, make_meme):
        cid = make_community("gaming")
        a = make_meme("https://x.example.com/A", community_id=cid, net_vote=5, created_at=T0)
        b = make_meme(
            "https://x.example.com/B", community_id=cid, net_vote=5,
            created_at=T0 + timedelta(hours=1),
        )
        c = make_meme(
            "https://x.example.com/C", community_id=cid, net_vote=2,
            created_at=T0 + timedelta(hours=2),
        )
        page = feed_service.list_memes(db_engine, scope="gaming", sort="top")
        assert _ids(page) == [b, a, c]

    def test_new_is_newest_first(self, db_engine, gaming_feed):
        _, ids = gaming_feed
        page = feed_service.list_memes(db_engine, scope="gaming", sort="new", count=50)
        assert _ids(page) == list(reversed(ids))

    def test_same_timestamp_falls_back_to_id(self, db_engine, make_meme):
        first = make_meme("https://x.example.com/same1", created_at=T0)
        second = make_meme("https://x.example.com/same2", created_at=T0)
        page = feed_service.list_memes(db_engine, sort="new")
        assert _ids(page) == [second, first]

    def test_top_is_non_increasing(self, db_engine, gaming_feed):
        page = feed_service.list_memes(db_engine, scope="gaming", sort="top", count=50)
        scores = [m.net_vote for m in page.items]
        assert scores == sorted(scores, reverse=True)

    def test_hot_prefers_newer_for_equal_votes(self, db_engine, make_meme):
        old = make_meme("https://x.example.com/old", net_vote=4, created_at=T0)
        new = make_meme("https://x.example.com/new", net_vote=4, created_at=T0 + timedelta(days=1))
        assert _ids(feed_service.list_memes(db_engine, sort="hot")) == [new, old]

    def test_hot_prefers_more_votes_for_equal_age(self, db_engine, make_meme):
        low = make_meme("https://x.example.com/low", net_vote=0, created_at=T0)
        high = make_meme("https://x.example.com/high", net_vote=1, created_at=T0)
        assert _ids(feed_service.list_memes(db_engine, sort="hot")) == [high, low]

    def test_hot_lifts_recent_activity_over_stale_totals(self, db_engine, make_meme):
        stale = make_meme("https://x.example.com/stale", net_vote=6, created_at=T0)
        fresh = make_meme(
            "https://x.example.com/fresh", net_vote=5, created_at=T0 + timedelta(days=2)
        )
        assert _ids(feed_service.list_memes(db_engine, sort="hot")) == [fresh, stale]

    def test_default_sort_is_hot(self, db_engine, gaming_feed):
        page = feed_service.list_memes(db_engine, scope="gaming", sort="bogus")
        assert page.sort is SortMode.HOT


class TestMemePagination:
    @pytest.mark.parametrize("sort", ["new", "top", "hot"])
    def test_adjacent_pages_concatenate(self, db_engine, gaming_feed, sort):
        k = 4
        first = feed_service.list_memes(db_engine, scope="gaming", sort=sort, count=k, offset=0)
        second = feed_service.list_memes(db_engine, scope="gaming", sort=sort, count=k, offset=k)
        double = feed_service.list_memes(db_engine, scope="gaming", sort=sort, count=2 * k)

        assert _ids(first) + _ids(second) == _ids(double)
        assert not set(_ids(first)) & set(_ids(second))

    @pytest.mark.parametrize("count, offset", [(5, 0), (5, 10), (5, 12), (5, 40), (99, 0)])
    def test_slice_length(self, db_engine, gaming_feed, count, offset):
        page = feed_service.list_memes(
            db_engine, scope="gaming", sort="top", count=count, offset=offset
        )
        assert page.total_count == 12
        assert len(page.items) == min(count, max(0, page.total_count - offset))

    def test_repeat_calls_are_identical(self, db_engine, gaming_feed):
        a = feed_service.list_memes(db_engine, scope="gaming", sort="hot", count=7, offset=3)
        b = feed_service.list_memes(db_engine, scope="gaming", sort="hot", count=7, offset=3)
        assert _ids(a) == _ids(b)

    def test_count_and_offset_are_normalized(self, db_engine, gaming_feed):
        page = feed_service.list_memes(db_engine, scope="gaming", count="500", offset="-3")
        assert page.count == 10
        assert page.offset == 0
        assert len(page.items) == 10


class TestMemeScope:
    def test_global_feed_counts_every_live_meme(self, db_engine, gaming_feed):
        page = feed_service.list_memes(db_engine)
        assert page.total_count == 13

    def test_scope_by_id(self, db_engine, gaming_feed):
        gaming, _ = gaming_feed
        assert feed_service.list_memes(db_engine, scope=gaming).total_count == 12

    def test_soft_deleted_memes_are_hidden(self, db_engine, gaming_feed):
        page = feed_service.list_memes(db_engine, scope="gaming", sort="top", count=50)
        assert all(m.net_vote != 99 for m in page.items)

    def test_unknown_scope_is_an_error(self, db_engine, gaming_feed):
        with pytest.raises(NotFoundError):
            feed_service.list_memes(db_engine, scope="nowhere")


class TestTemplates:
    @pytest.fixture
    def templated(self, make_community, make_template, make_meme):
        gaming = make_community("gaming")
        other = make_community("cooking")
        drake = make_template("drake", created_at=T0)
        doge = make_template("doge", created_at=T0 + timedelta(hours=1))
        owned = make_template(
            "gaming_only", community_id=gaming, created_at=T0 + timedelta(hours=2)
        )
        unused = make_template("unused", created_at=T0 + timedelta(hours=3))

        for i in range(3):
            make_meme(f"https://x.example.com/d{i}", community_id=gaming, template_id=drake)
        make_meme("https://x.example.com/o0", community_id=gaming, template_id=doge)
        for i in range(5):
            make_meme(f"https://x.example.com/c{i}", community_id=other, template_id=doge)
        make_meme(
            "https://x.example.com/dead", community_id=gaming, template_id=doge, deleted=True
        )
        return {"drake": drake, "doge": doge, "owned": owned, "unused": unused}

    def test_community_top_ranks_by_local_usage(self, db_engine, templated):
        page = feed_service.list_templates(db_engine, scope="gaming", sort="top")
        assert [rt.template.id for rt in page.items] == [
            templated["drake"], templated["doge"], templated["owned"],
        ]
        assert [rt.used_count for rt in page.items] == [3, 1, 0]
        assert page.total_count == 3

    def test_global_top_counts_all_live_memes(self, db_engine, templated):
        page = feed_service.list_templates(db_engine, sort="top")
        assert [rt.used_count for rt in page.items] == [6, 3, 0, 0]
        assert page.items[0].template.id == templated["doge"]
        # equal usage → newer template first
        assert [rt.template.id for rt in page.items[2:]] == [
            templated["unused"], templated["owned"],
        ]

    def test_new_ordering(self, db_engine, templated):
        page = feed_service.list_templates(db_engine, sort="new")
        assert [rt.template.id for rt in page.items] == [
            templated["unused"], templated["owned"], templated["doge"], templated["drake"],
        ]

    def test_hot_is_not_a_template_sort(self, db_engine, templated):
        assert feed_service.list_templates(db_engine, sort="hot").sort is SortMode.TOP

    def test_unknown_scope_is_an_error(self, db_engine, templated):
        with pytest.raises(NotFoundError):
            feed_service.list_templates(db_engine, scope="nowhere")


class TestCommunities:
    def test_top_by_favourites_then_newest(self, db_engine, make_community):
        old_popular = make_community("old_popular", favourites_count=9, created_at=T0)
        quiet = make_community("quiet", favourites_count=1, created_at=T0 + timedelta(days=2))
        new_popular = make_community(
            "new_popular", favourites_count=9, created_at=T0 + timedelta(days=1)
        )
        page = feed_service.list_communities(db_engine, sort="top")
        assert _ids(page) == [new_popular, old_popular, quiet]

    def test_new_by_creation(self, db_engine, make_community):
        first = make_community("first", created_at=T0)
        second = make_community("second", created_at=T0 + timedelta(hours=1))
        page = feed_service.list_communities(db_engine, sort="new")
        assert _ids(page) == [second, first]

    def test_offset_past_end_is_empty(self, db_engine, make_community):
        make_community("solo")
        page = feed_service.list_communities(db_engine, offset=5)
        assert page.items == []
        assert page.total_count == 1
