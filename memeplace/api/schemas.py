"""
memeplace.api.schemas — Request bodies & response shaping
===========================================================

Field names on the wire are camelCase (``totalCount``, ``netVote``,
``creatorId``) to stay compatible with existing clients.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from memeplace.database.models import Community, Meme, User
from memeplace.engine.pagination import Page
from memeplace.engine.ranking import as_utc
from memeplace.services.feed_service import RankedTemplate


# ---------------------------------------------------------------------------
# Request bodies: every field optional so missing input is reported by
# the services as a 400 ValidationError, not a 422.
# ---------------------------------------------------------------------------
class CommunityCreate(BaseModel):
    name: str | None = None
    title: str | None = None
    description: str | None = None
    sidebar: str | None = None
    nsfw: bool = False


class MemeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    link: str | None = None
    community: str | None = None
    template_id: int | None = Field(default=None, alias="templateId")


class VoteBody(BaseModel):
    direction: str | None = None


# ---------------------------------------------------------------------------
# Response shaping
# ---------------------------------------------------------------------------
def _iso(value: datetime | None) -> str | None:
    return as_utc(value).isoformat() if value else None


def user_ref(u: User | None) -> dict | None:
    if u is None:
        return None
    return {"id": u.id, "username": u.username}


def community_dict(c: Community, *, with_creator: bool = False) -> dict:
    body = {
        "id": c.id,
        "name": c.name,
        "title": c.title,
        "description": c.description,
        "sidebar": c.sidebar,
        "nsfw": c.nsfw,
        "creatorId": c.creator_id,
        "favourites": c.favourites_count,
        "createdAt": _iso(c.created_at),
    }
    if with_creator:
        body["creator"] = user_ref(c.creator)
    return body


def meme_dict(m: Meme, *, with_relations: bool = True) -> dict:
    body = {
        "id": m.id,
        "title": m.title,
        "link": m.link,
        "netVote": m.net_vote,
        "creatorId": m.creator_id,
        "templateId": m.template_id,
        "communityId": m.community_id,
        "createdAt": _iso(m.created_at),
    }
    if with_relations:
        body["creator"] = user_ref(m.creator)
        body["community"] = m.community.name if m.community is not None else None
    return body


def template_dict(rt: RankedTemplate) -> dict:
    t = rt.template
    return {
        "id": t.id,
        "name": t.name,
        "imageUrl": t.image_url,
        "communityId": t.community_id,
        "usedCount": rt.used_count,
        "createdAt": _iso(t.created_at),
    }


def page_meta(page: Page) -> dict:
    return {
        "totalCount": page.total_count,
        "offset": page.offset,
        "size": page.size,
        "sort": page.sort.value,
    }
