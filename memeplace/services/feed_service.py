"""
memeplace.services.feed_service — Feed Ranking Engine
=======================================================

Paginated listings of memes, templates and communities.

Every ordering ends in ``id DESC``, which makes it total: two calls with
the same parameters and no write in between return identical slices, and
adjacent pages never overlap or skip an item.  The total count and the
slice are read in the same session.

Raw ``sort`` / ``count`` / ``offset`` values are normalized here (see
:mod:`memeplace.engine.pagination`) so every caller gets the same
fallbacks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import exists, func, or_, select
from sqlalchemy.orm import joinedload

from memeplace.database.engine import get_session
from memeplace.database.models import Community, Meme, SortMode, Template
from memeplace.engine.pagination import (
    COMMUNITY_SORTS,
    DEFAULT_COMMUNITY_SORT,
    DEFAULT_MEME_SORT,
    DEFAULT_TEMPLATE_SORT,
    MEME_SORTS,
    TEMPLATE_SORTS,
    Page,
    normalize_page,
)
from memeplace.services.community_service import resolve_scope

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Orderings
# ---------------------------------------------------------------------------
MEME_ORDERINGS = {
    SortMode.NEW: (Meme.created_at.desc(), Meme.id.desc()),
    SortMode.TOP: (Meme.net_vote.desc(), Meme.created_at.desc(), Meme.id.desc()),
    SortMode.HOT: (
        Meme.hot_score.desc(),
        Meme.net_vote.desc(),
        Meme.created_at.desc(),
        Meme.id.desc(),
    ),
}

COMMUNITY_ORDERINGS = {
    SortMode.NEW: (Community.created_at.desc(), Community.id.desc()),
    SortMode.TOP: (
        Community.favourites_count.desc(),
        Community.created_at.desc(),
        Community.id.desc(),
    ),
}


@dataclass(frozen=True, slots=True)
class RankedTemplate:
    """A template and the number of live memes using it in the scope."""

    template: Template
    used_count: int


# ---------------------------------------------------------------------------
# Memes
# ---------------------------------------------------------------------------
def list_memes(
    engine: Engine,
    *,
    scope: str | int | None = None,
    sort: object = None,
    count: object = None,
    offset: object = None,
) -> Page:
    """List live memes, globally or inside one community."""
    req = normalize_page(sort, count, offset, allowed=MEME_SORTS, default=DEFAULT_MEME_SORT)

    with get_session(engine) as session:
        community = resolve_scope(session, scope)

        filters = [Meme.deleted_at.is_(None)]
        if community is not None:
            filters.append(Meme.community_id == community.id)

        total = session.scalar(select(func.count()).select_from(Meme).where(*filters)) or 0
        items = list(
            session.scalars(
                select(Meme)
                .options(joinedload(Meme.creator), joinedload(Meme.community))
                .where(*filters)
                .order_by(*MEME_ORDERINGS[req.sort])
                .offset(req.offset)
                .limit(req.count)
            ).all()
        )

    logger.debug(
        "list_memes scope=%s sort=%s offset=%d → %d/%d",
        scope, req.sort, req.offset, len(items), total,
    )
    return Page(items=items, total_count=total, offset=req.offset, count=req.count, sort=req.sort)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------
def list_templates(
    engine: Engine,
    *,
    scope: str | int | None = None,
    sort: object = None,
    count: object = None,
    offset: object = None,
) -> Page:
    """List templates ranked by usage (``top``) or age (``new``).

    Inside a community the listing holds templates owned by it or used by
    at least one of its live memes, and usage only counts that
    community's memes.  Items are :class:`RankedTemplate`.
    """
    req = normalize_page(
        sort, count, offset, allowed=TEMPLATE_SORTS, default=DEFAULT_TEMPLATE_SORT
    )

    with get_session(engine) as session:
        community = resolve_scope(session, scope)

        meme_filters = [Meme.template_id == Template.id, Meme.deleted_at.is_(None)]
        if community is not None:
            meme_filters.append(Meme.community_id == community.id)

        used = (
            select(func.count(Meme.id))
            .where(*meme_filters)
            .correlate(Template)
            .scalar_subquery()
        )

        filters = []
        if community is not None:
            filters.append(
                or_(
                    Template.community_id == community.id,
                    exists().where(*meme_filters).correlate(Template),
                )
            )

        if req.sort is SortMode.TOP:
            ordering = (used.desc(), Template.created_at.desc(), Template.id.desc())
        else:
            ordering = (Template.created_at.desc(), Template.id.desc())

        total = session.scalar(select(func.count()).select_from(Template).where(*filters)) or 0
        rows = session.execute(
            select(Template, used.label("used_count"))
            .where(*filters)
            .order_by(*ordering)
            .offset(req.offset)
            .limit(req.count)
        ).all()

    items = [RankedTemplate(template=t, used_count=n or 0) for t, n in rows]
    return Page(items=items, total_count=total, offset=req.offset, count=req.count, sort=req.sort)


# ---------------------------------------------------------------------------
# Communities
# ---------------------------------------------------------------------------
def list_communities(
    engine: Engine,
    *,
    sort: object = None,
    count: object = None,
    offset: object = None,
) -> Page:
    """List communities by favourites (``top``) or age (``new``)."""
    req = normalize_page(
        sort, count, offset, allowed=COMMUNITY_SORTS, default=DEFAULT_COMMUNITY_SORT
    )

    with get_session(engine) as session:
        total = session.scalar(select(func.count()).select_from(Community)) or 0
        items = list(
            session.scalars(
                select(Community)
                .options(joinedload(Community.creator))
                .order_by(*COMMUNITY_ORDERINGS[req.sort])
                .offset(req.offset)
                .limit(req.count)
            ).all()
        )

    return Page(items=items, total_count=total, offset=req.offset, count=req.count, sort=req.sort)
