"""
memeplace.services.community_service — Community Lookup & Creation
====================================================================

Community names are matched case-insensitively everywhere: lookups
compare ``lower(name)`` and the ``uq_communities_name_lower`` index
backs the same rule at write time.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from memeplace.database.engine import get_session
from memeplace.database.models import Community
from memeplace.engine.links import canonical_form
from memeplace.errors import ConflictError, NotFoundError, ValidationError
from memeplace.services.user_service import ensure_user

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,50}$")
MAX_TITLE_LENGTH = 100


def find_community(session: Session, scope: str | int) -> Community | None:
    """Look a community up by numeric id or case-insensitive name."""
    if isinstance(scope, int):
        return session.get(Community, scope)
    name = canonical_form(scope)
    if not name:
        return None
    return session.scalar(
        select(Community).where(func.lower(Community.name) == name)
    )


def resolve_scope(session: Session, scope: str | int | None) -> Community | None:
    """Turn an optional listing scope into a community.

    ``None`` means global and yields ``None``; a scope that names nothing
    raises :class:`NotFoundError` instead of producing an empty listing.
    """
    if scope is None:
        return None
    community = find_community(session, scope)
    if community is None:
        raise NotFoundError("community")
    return community


def get_community(engine: Engine, name: str) -> Community:
    """Fetch a community with its creator eagerly loaded."""
    with get_session(engine) as session:
        community = session.scalar(
            select(Community)
            .options(joinedload(Community.creator))
            .where(func.lower(Community.name) == canonical_form(name))
        )
        if community is None:
            raise NotFoundError("community")
        return community


def community_exists(engine: Engine, name: str) -> bool:
    with get_session(engine) as session:
        return find_community(session, name) is not None


def _check_fields(name: str | None, title: str | None) -> tuple[str, str]:
    name = (name or "").strip()
    title = (title or "").strip()
    if not name:
        raise ValidationError("name", "empty", "The community must have a name")
    if not NAME_PATTERN.match(name):
        raise ValidationError(
            "name",
            "malformed",
            "Community names are 3-50 letters, digits or underscores",
        )
    if not title:
        raise ValidationError("title", "empty", "The community must have a title")
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError("title", "too_long", "The community title is too long")
    return name, title


def create_community(
    engine: Engine,
    *,
    creator_id: int,
    name: str | None,
    title: str | None,
    description: str | None = None,
    sidebar: str | None = None,
    nsfw: bool = False,
) -> Community:
    """Validate and insert a community.

    The existence check gives a friendly error in the common case; the
    ``lower(name)`` unique index catches the concurrent case and is
    reported as the same :class:`ConflictError`.
    """
    name, title = _check_fields(name, title)

    with get_session(engine) as session:
        if find_community(session, name) is not None:
            raise ConflictError("community", "name", "That community name is already taken")

        community = Community(
            name=name,
            title=title,
            description=description,
            sidebar=sidebar,
            nsfw=bool(nsfw),
            creator_id=creator_id,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(community)
                session.flush()
        except IntegrityError as exc:
            if find_community(session, name) is not None:
                logger.info("Concurrent community create lost the race: %s", name)
                raise ConflictError(
                    "community", "name", "That community name is already taken"
                ) from exc
            ensure_user(session, creator_id)
            raise

        logger.info("Community %s created by user %s", name, creator_id)
        return community
