"""
memeplace.api.routes.communities — Community endpoints
========================================================

``{name}`` path segments are matched case-insensitively.  A community
that cannot be found is reported as 400, matching the existing client
contract.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine

from memeplace.api.auth import get_current_user_id
from memeplace.api.deps import get_config, get_engine
from memeplace.api.schemas import (
    CommunityCreate,
    community_dict,
    meme_dict,
    page_meta,
    template_dict,
)
from memeplace.config import MemeplaceConfig
from memeplace.database.engine import run_db
from memeplace.errors import UnavailableError
from memeplace.services import community_service, favourite_service, feed_service

router = APIRouter(prefix="/communities", tags=["communities"])


# ---------------------------------------------------------------------------
# POST /communities
# ---------------------------------------------------------------------------
@router.post("")
async def create_community(
    body: CommunityCreate,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    community = await run_db(
        community_service.create_community,
        engine,
        creator_id=user_id,
        name=body.name,
        title=body.title,
        description=body.description,
        sidebar=body.sidebar,
        nsfw=body.nsfw,
        timeout=cfg.query_timeout_seconds,
    )
    return community_dict(community)


# ---------------------------------------------------------------------------
# GET /communities
# ---------------------------------------------------------------------------
@router.get("")
async def list_communities(
    sort: str | None = Query(None),
    count: str | None = Query(None),
    offset: str | None = Query(None),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    page = await run_db(
        feed_service.list_communities,
        engine,
        sort=sort,
        count=count,
        offset=offset,
        timeout=cfg.query_timeout_seconds,
    )
    return {
        "communities": [community_dict(c, with_creator=True) for c in page.items],
        **page_meta(page),
    }


# ---------------------------------------------------------------------------
# GET /communities/{name}
# ---------------------------------------------------------------------------
@router.get("/{name}")
async def get_community(
    name: str,
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    community = await run_db(
        community_service.get_community, engine, name, timeout=cfg.query_timeout_seconds
    )
    return community_dict(community, with_creator=True)


# ---------------------------------------------------------------------------
# GET / PUT / DELETE /communities/{name}/favourite
# ---------------------------------------------------------------------------
@router.get("/{name}/favourite")
async def favourite_state(
    name: str,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    community = await run_db(
        community_service.get_community, engine, name, timeout=cfg.query_timeout_seconds
    )
    favourite = await run_db(
        favourite_service.is_favourite,
        engine,
        user_id,
        community.id,
        timeout=cfg.query_timeout_seconds,
    )
    return {"favourite": favourite}


@router.put("/{name}/favourite")
async def favourite_community(
    name: str,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    community = await run_db(
        community_service.get_community, engine, name, timeout=cfg.query_timeout_seconds
    )
    try:
        await run_db(
            favourite_service.add_favourite,
            engine,
            user_id,
            community.id,
            timeout=cfg.query_timeout_seconds,
        )
    except UnavailableError as exc:
        raise UnavailableError("Failed to favourite the community") from exc
    return {"message": "Successfully favourited the community"}


@router.delete("/{name}/favourite")
async def unfavourite_community(
    name: str,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    community = await run_db(
        community_service.get_community, engine, name, timeout=cfg.query_timeout_seconds
    )
    try:
        await run_db(
            favourite_service.remove_favourite,
            engine,
            user_id,
            community.id,
            timeout=cfg.query_timeout_seconds,
        )
    except UnavailableError as exc:
        raise UnavailableError("Failed to unfavourite the community") from exc
    return {"message": "Successfully unfavourited the community"}


# ---------------------------------------------------------------------------
# GET /communities/{name}/memes
# ---------------------------------------------------------------------------
@router.get("/{name}/memes")
async def list_community_memes(
    name: str,
    sort: str | None = Query(None),
    count: str | None = Query(None),
    offset: str | None = Query(None),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    page = await run_db(
        feed_service.list_memes,
        engine,
        scope=name,
        sort=sort,
        count=count,
        offset=offset,
        timeout=cfg.query_timeout_seconds,
    )
    return {"memes": [meme_dict(m) for m in page.items], **page_meta(page)}


# ---------------------------------------------------------------------------
# GET /communities/{name}/templates
# ---------------------------------------------------------------------------
@router.get("/{name}/templates")
async def list_community_templates(
    name: str,
    sort: str | None = Query(None),
    count: str | None = Query(None),
    offset: str | None = Query(None),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    page = await run_db(
        feed_service.list_templates,
        engine,
        scope=name,
        sort=sort,
        count=count,
        offset=offset,
        timeout=cfg.query_timeout_seconds,
    )
    return {"templates": [template_dict(t) for t in page.items], **page_meta(page)}


# ---------------------------------------------------------------------------
# GET /communities/{name}/exists
# ---------------------------------------------------------------------------
@router.get("/{name}/exists")
async def community_exists(
    name: str,
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    exists = await run_db(
        community_service.community_exists, engine, name, timeout=cfg.query_timeout_seconds
    )
    return {"exists": exists}
