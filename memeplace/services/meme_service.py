"""
memeplace.services.meme_service — Meme Creation & Uniqueness Guard
====================================================================

Creating a meme is an explicit two-phase operation:

  1. Validate the link (:func:`memeplace.engine.links.validate_link`).
  2. Check ``lower(link)`` against the store, then insert.  The check and
     the insert are not atomic, so the ``uq_memes_link_lower`` index is
     the real guard: a concurrent duplicate surfaces as the same
     :class:`ConflictError` the check would have raised.  Any other
     integrity failure is re-checked and never reported as a duplicate.

Soft-deleted memes keep their link reserved.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from memeplace.database.engine import get_session
from memeplace.database.models import Meme, Template, utcnow
from memeplace.engine.links import validate_link
from memeplace.engine.ranking import hot_score
from memeplace.errors import ConflictError, NotFoundError, ValidationError
from memeplace.services.community_service import resolve_scope
from memeplace.services.user_service import ensure_user

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 300
DUPLICATE_LINK_MESSAGE = "That meme url already exist"


def link_taken(session: Session, canonical: str) -> bool:
    """Return True if any meme (live or soft-deleted) owns *canonical*."""
    return session.scalar(
        select(Meme.id).where(func.lower(Meme.link) == canonical).limit(1)
    ) is not None


def live_meme(session: Session, meme_id: int, *, for_update: bool = False) -> Meme:
    """Fetch a non-deleted meme or raise a 404-flavoured NotFoundError."""
    stmt = select(Meme).where(Meme.id == meme_id, Meme.deleted_at.is_(None))
    if for_update:
        stmt = stmt.with_for_update()
    meme = session.scalar(stmt)
    if meme is None:
        raise NotFoundError("meme", status_code=404)
    return meme


def create_meme(
    engine: Engine,
    *,
    creator_id: int,
    link: str | None,
    title: str | None = None,
    community: str | int | None = None,
    template_id: int | None = None,
) -> Meme:
    """Validate *link* and insert a new meme.

    Raises
    ------
    ValidationError
        Empty/malformed link, over-long title, or unknown template.
    NotFoundError
        *community* was given but does not exist, or *creator_id* names
        no user.
    ConflictError
        A meme with a case-insensitively equal link already exists.
    """
    checked = validate_link(link)
    title = (title or "").strip() or None
    if title is not None and len(title) > MAX_TITLE_LENGTH:
        raise ValidationError("title", "too_long", "The meme title is too long")

    with get_session(engine) as session:
        target = resolve_scope(session, community)

        if template_id is not None and session.get(Template, template_id) is None:
            raise ValidationError("templateId", "unknown", "That template does not exist")

        if link_taken(session, checked.canonical):
            logger.debug("Rejected duplicate link %s", checked.canonical)
            raise ConflictError("meme", "link", DUPLICATE_LINK_MESSAGE)

        created_at = utcnow()
        meme = Meme(
            title=title,
            link=checked.stored,
            net_vote=0,
            hot_score=hot_score(0, created_at),
            creator_id=creator_id,
            template_id=template_id,
            community_id=target.id if target is not None else None,
            created_at=created_at,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(meme)
                session.flush()
        except IntegrityError as exc:
            if link_taken(session, checked.canonical):
                logger.info("Concurrent meme create lost the race: %s", checked.canonical)
                raise ConflictError("meme", "link", DUPLICATE_LINK_MESSAGE) from exc
            ensure_user(session, creator_id)
            raise

        logger.info("Meme %s created by user %s", meme.id, creator_id)
        return meme


def get_meme(engine: Engine, meme_id: int) -> Meme:
    with get_session(engine) as session:
        meme = session.scalar(
            select(Meme)
            .options(joinedload(Meme.creator), joinedload(Meme.community))
            .where(Meme.id == meme_id, Meme.deleted_at.is_(None))
        )
        if meme is None:
            raise NotFoundError("meme", status_code=404)
        return meme


def delete_meme(engine: Engine, meme_id: int, user_id: int) -> bool:
    """Soft-delete a meme on behalf of its creator.

    Returns ``False`` (and changes nothing) when *user_id* is not the
    creator.  Votes stay in place so the row can be restored.
    """
    with get_session(engine) as session:
        meme = live_meme(session, meme_id, for_update=True)
        if meme.creator_id != user_id:
            return False
        meme.deleted_at = utcnow()
        logger.info("Meme %s deleted by user %s", meme_id, user_id)
        return True
