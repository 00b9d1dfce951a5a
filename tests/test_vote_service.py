"""
tests/test_vote_service.py — Vote Ledger Tests
================================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from memeplace.database.models import Meme, Vote, VoteDirection
from memeplace.engine.ranking import hot_score
from memeplace.errors import NotFoundError, ValidationError
from memeplace.services import vote_service


@pytest.fixture
def meme_id(make_meme):
    return make_meme("https://x.example.com/voted")


BASE_TIME = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


def _vote_rows(engine, meme_id: int) -> int:
    with Session(engine) as session:
        return session.scalar(
            select(func.count()).select_from(Vote).where(Vote.meme_id == meme_id)
        )


class TestApplyVote:
    def test_new_meme_scores_zero(self, db_engine, make_user, meme_id):
        assert vote_service.vote_state(db_engine, meme_id, make_user()) == (0, VoteDirection.NONE)

    def test_upvote_adds_one(self, db_engine, make_user, meme_id):
        uid = make_user()
        assert vote_service.apply_vote(db_engine, meme_id, uid, VoteDirection.UP) == 1
        assert vote_service.vote_state(db_engine, meme_id, uid) == (1, VoteDirection.UP)

    def test_same_direction_twice_is_noop(self, db_engine, make_user, meme_id):
        uid = make_user()
        vote_service.apply_vote(db_engine, meme_id, uid, "up")
        assert vote_service.apply_vote(db_engine, meme_id, uid, "up") == 1
        assert _vote_rows(db_engine, meme_id) == 1

    def test_switching_direction_moves_by_two(self, db_engine, make_user, meme_id):
        uid = make_user()
        vote_service.apply_vote(db_engine, meme_id, uid, "up")
        assert vote_service.apply_vote(db_engine, meme_id, uid, "down") == -1
        assert vote_service.apply_vote(db_engine, meme_id, uid, "up") == 1

    def test_clearing_vote_moves_by_one(self, db_engine, make_user, meme_id):
        uid = make_user()
        vote_service.apply_vote(db_engine, meme_id, uid, "down")
        assert vote_service.apply_vote(db_engine, meme_id, uid, "none") == 0
        assert _vote_rows(db_engine, meme_id) == 0

    def test_clearing_without_vote_is_noop(self, db_engine, make_user, meme_id):
        uid = make_user()
        assert vote_service.apply_vote(db_engine, meme_id, uid, "none") == 0
        assert _vote_rows(db_engine, meme_id) == 0

    def test_net_score_is_sum_of_effective_votes(self, db_engine, make_user, meme_id):
        users = [make_user(f"user{i}") for i in range(5)]
        for uid in users[:4]:
            vote_service.apply_vote(db_engine, meme_id, uid, "up")
        vote_service.apply_vote(db_engine, meme_id, users[4], "down")
        vote_service.apply_vote(db_engine, meme_id, users[0], "down")
        vote_service.apply_vote(db_engine, meme_id, users[1], "none")

        with Session(db_engine) as session:
            total = session.scalar(
                select(func.coalesce(func.sum(Vote.value), 0)).where(Vote.meme_id == meme_id)
            )
        assert total == 0
        assert vote_service.vote_state(db_engine, meme_id, users[4])[0] == total

    def test_hot_score_follows_net_vote(self, db_engine, make_user, meme_id):
        for i in range(3):
            vote_service.apply_vote(db_engine, meme_id, make_user(f"fan{i}"), "up")
        with Session(db_engine) as session:
            meme = session.get(Meme, meme_id)
            assert meme.net_vote == 3
            assert meme.hot_score == pytest.approx(hot_score(3, meme.created_at))

    def test_voting_on_missing_meme_is_not_found(self, db_engine, make_user):
        with pytest.raises(NotFoundError):
            vote_service.apply_vote(db_engine, 999, make_user(), "up")

    def test_voting_on_deleted_meme_is_not_found(self, db_engine, make_user, make_meme):
        mid = make_meme("https://x.example.com/deleted", deleted=True)
        with pytest.raises(NotFoundError):
            vote_service.apply_vote(db_engine, mid, make_user(), "up")

    def test_unknown_direction_is_rejected(self, db_engine, make_user, meme_id):
        with pytest.raises(ValidationError) as excinfo:
            vote_service.apply_vote(db_engine, meme_id, make_user(), "sideways")
        assert excinfo.value.field == "direction"


class TestVoteState:
    def test_reports_callers_direction(self, db_engine, make_user, meme_id):
        voter, other = make_user("voter"), make_user("other")
        vote_service.apply_vote(db_engine, meme_id, voter, "down")
        assert vote_service.vote_state(db_engine, meme_id, voter) == (-1, VoteDirection.DOWN)
        assert vote_service.vote_state(db_engine, meme_id, other) == (-1, VoteDirection.NONE)

    def test_missing_meme_is_not_found(self, db_engine, make_user):
        with pytest.raises(NotFoundError):
            vote_service.vote_state(db_engine, 999, make_user())


class TestParseDirection:
    @pytest.mark.parametrize("raw, expected", [
        ("up", VoteDirection.UP),
        (" DOWN ", VoteDirection.DOWN),
        ("none", VoteDirection.NONE),
    ])
    def test_accepts_known_directions(self, raw, expected):
        assert vote_service.parse_direction(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "1", "upvote"])
    def test_rejects_everything_else(self, raw):
        with pytest.raises(ValidationError):
            vote_service.parse_direction(raw)


def test_votes_reorder_top_feed(db_engine, make_user, make_meme):
    """A vote is visible to the very next listing (no cached scores)."""
    from memeplace.services import feed_service

    first = make_meme("https://x.example.com/first", created_at=BASE_TIME)
    second = make_meme("https://x.example.com/second", created_at=BASE_TIME + timedelta(hours=1))

    page = feed_service.list_memes(db_engine, sort="top")
    assert [m.id for m in page.items] == [second, first]

    vote_service.apply_vote(db_engine, first, make_user(), "up")
    page = feed_service.list_memes(db_engine, sort="top")
    assert [m.id for m in page.items] == [first, second]
