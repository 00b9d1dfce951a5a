"""
memeplace.services.vote_service — Vote Ledger
===============================================

Each (user, meme) pair has at most one effective vote: a ``votes`` row
holding +1 or -1, or no row for "none".  ``memes.net_vote`` is always the
sum of those rows because it only moves by the delta between the old and
new vote, applied as a single ``UPDATE ... SET net_vote = net_vote + :d``
in the same transaction that rewrites the vote row.

Concurrency:
* the meme row is locked (``FOR UPDATE``) before the vote row is read,
  so two votes on the same meme serialize;
* a first vote is inserted inside a SAVEPOINT; if a concurrent request
  got there first the insert fails on the primary key and the existing
  row is used instead.  If no row can be read back the failure was not
  a clash (typically the caller's user row is gone) and is raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from memeplace.database.engine import get_session
from memeplace.database.models import Meme, Vote, VoteDirection
from memeplace.engine.ranking import hot_score
from memeplace.errors import ValidationError
from memeplace.services.meme_service import live_meme
from memeplace.services.user_service import ensure_user

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def parse_direction(raw: object) -> VoteDirection:
    try:
        if not isinstance(raw, str):
            raise ValueError(raw)
        return VoteDirection(raw.strip().lower())
    except ValueError:
        raise ValidationError(
            "direction", "malformed", "Vote direction must be up, down or none"
        ) from None


def vote_state(engine: Engine, meme_id: int, user_id: int) -> tuple[int, VoteDirection]:
    """A live meme's net score and *user_id*'s effective vote on it."""
    with get_session(engine) as session:
        meme = live_meme(session, meme_id)
        value = session.scalar(
            select(Vote.value).where(Vote.meme_id == meme_id, Vote.user_id == user_id)
        )
        if value is None:
            return meme.net_vote, VoteDirection.NONE
        return meme.net_vote, VoteDirection.UP if value > 0 else VoteDirection.DOWN


def _current_vote(session: Session, meme_id: int, user_id: int) -> Vote | None:
    return session.scalar(
        select(Vote)
        .where(Vote.meme_id == meme_id, Vote.user_id == user_id)
        .with_for_update()
    )


def _shift_net_vote(session: Session, meme_id: int, delta: int) -> int:
    """Atomically add *delta* to ``net_vote`` and refresh ``hot_score``."""
    row = session.execute(
        update(Meme)
        .where(Meme.id == meme_id)
        .values(net_vote=Meme.net_vote + delta)
        .returning(Meme.net_vote, Meme.created_at)
    ).one()
    session.execute(
        update(Meme)
        .where(Meme.id == meme_id)
        .values(hot_score=hot_score(row.net_vote, row.created_at))
    )
    return row.net_vote


def apply_vote(
    engine: Engine,
    meme_id: int,
    user_id: int,
    direction: VoteDirection | str,
) -> int:
    """Set *user_id*'s vote on *meme_id* and return the new net score.

    Re-sending the current direction is a no-op; switching between up and
    down moves the score by 2; clearing a vote moves it back by 1.
    """
    if not isinstance(direction, VoteDirection):
        direction = parse_direction(direction)
    wanted = direction.score

    with get_session(engine) as session:
        meme = live_meme(session, meme_id, for_update=True)

        vote = _current_vote(session, meme_id, user_id)
        if vote is None and wanted != 0:
            vote = Vote(user_id=user_id, meme_id=meme_id, value=wanted)
            try:
                with session.begin_nested():   # SAVEPOINT
                    session.add(vote)
                    session.flush()
            except IntegrityError:
                # Another request inserted this pair first; vote on top of it.
                vote = _current_vote(session, meme_id, user_id)
                if vote is None:
                    ensure_user(session, user_id)
                    raise
            else:
                logger.debug("User %s voted %s on meme %s", user_id, direction, meme_id)
                return _shift_net_vote(session, meme_id, wanted)

        previous = vote.value if vote is not None else 0
        delta = wanted - previous
        if delta == 0:
            return meme.net_vote

        if wanted == 0:
            session.delete(vote)
        else:
            vote.value = wanted
        session.flush()

        logger.debug(
            "User %s changed vote on meme %s: %+d → %+d", user_id, meme_id, previous, wanted
        )
        return _shift_net_vote(session, meme_id, delta)
