"""
memeplace.services.favourite_service — Favourite Registry
===========================================================

A favourite is a (user, community) row with a composite primary key, so
the store itself guarantees at most one per pair.

Duplicate policy: **idempotent no-op.**  Adding an existing favourite
returns ``False``; removing a missing one returns ``False``.  Neither is
an error.  A failed insert only counts as "already there" when the row
can actually be read back.

``communities.favourites_count`` moves by exactly one, through an atomic
``UPDATE`` in the same transaction as the row insert/delete, and only
when the row actually changed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from memeplace.database.engine import get_session
from memeplace.database.models import Community, Favourite
from memeplace.errors import NotFoundError
from memeplace.services.user_service import ensure_user

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def add_favourite(engine: Engine, user_id: int, community_id: int) -> bool:
    """Favourite a community.  Returns ``True`` if a row was created."""
    with get_session(engine) as session:
        if session.get(Community, community_id) is None:
            raise NotFoundError("community")

        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(Favourite(user_id=user_id, community_id=community_id))
                session.flush()
        except IntegrityError:
            if session.get(Favourite, (user_id, community_id)) is None:
                ensure_user(session, user_id)
                raise
            logger.debug(
                "User %s already favourites community %s", user_id, community_id
            )
            return False

        session.execute(
            update(Community)
            .where(Community.id == community_id)
            .values(favourites_count=Community.favourites_count + 1)
        )
        logger.info("User %s favourited community %s", user_id, community_id)
        return True


def remove_favourite(engine: Engine, user_id: int, community_id: int) -> bool:
    """Unfavourite a community.  Returns ``True`` if a row was removed."""
    with get_session(engine) as session:
        result = session.execute(
            delete(Favourite).where(
                Favourite.user_id == user_id,
                Favourite.community_id == community_id,
            )
        )
        if result.rowcount == 0:
            return False

        session.execute(
            update(Community)
            .where(Community.id == community_id)
            .values(favourites_count=Community.favourites_count - 1)
        )
        logger.info("User %s unfavourited community %s", user_id, community_id)
        return True


def is_favourite(engine: Engine, user_id: int, community_id: int) -> bool:
    with get_session(engine) as session:
        return session.get(Favourite, (user_id, community_id)) is not None


def list_favourite_communities(engine: Engine, user_id: int) -> list[Community]:
    """Communities *user_id* has favourited, most recent first."""
    with get_session(engine) as session:
        return list(
            session.scalars(
                select(Community)
                .join(Favourite, Favourite.community_id == Community.id)
                .where(Favourite.user_id == user_id)
                .order_by(Favourite.created_at.desc(), Community.id.desc())
            ).all()
        )
