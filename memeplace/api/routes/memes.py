"""
memeplace.api.routes.memes — Meme creation, feed & votes
==========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import Engine

from memeplace.api.auth import get_current_user_id
from memeplace.api.deps import get_config, get_engine
from memeplace.api.schemas import MemeCreate, VoteBody, meme_dict, page_meta
from memeplace.config import MemeplaceConfig
from memeplace.database.engine import run_db
from memeplace.services import feed_service, meme_service, vote_service

router = APIRouter(prefix="/memes", tags=["memes"])


@router.post("")
async def create_meme(
    body: MemeCreate,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    meme = await run_db(
        meme_service.create_meme,
        engine,
        creator_id=user_id,
        link=body.link,
        title=body.title,
        community=body.community,
        template_id=body.template_id,
        timeout=cfg.query_timeout_seconds,
    )
    return meme_dict(meme, with_relations=False)


@router.get("")
async def list_memes(
    sort: str | None = Query(None),
    count: str | None = Query(None),
    offset: str | None = Query(None),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    """Global feed across every community."""
    page = await run_db(
        feed_service.list_memes,
        engine,
        sort=sort,
        count=count,
        offset=offset,
        timeout=cfg.query_timeout_seconds,
    )
    return {"memes": [meme_dict(m) for m in page.items], **page_meta(page)}


@router.get("/{meme_id}")
async def get_meme(
    meme_id: int,
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    meme = await run_db(meme_service.get_meme, engine, meme_id, timeout=cfg.query_timeout_seconds)
    return meme_dict(meme)


@router.get("/{meme_id}/vote")
async def get_vote(
    meme_id: int,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    """The caller's current vote on a meme."""
    net_vote, direction = await run_db(
        vote_service.vote_state, engine, meme_id, user_id, timeout=cfg.query_timeout_seconds
    )
    return {"id": meme_id, "netVote": net_vote, "direction": direction.value}


@router.put("/{meme_id}/vote")
async def vote_meme(
    meme_id: int,
    body: VoteBody,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    direction = vote_service.parse_direction(body.direction)
    net_vote = await run_db(
        vote_service.apply_vote,
        engine,
        meme_id,
        user_id,
        direction,
        timeout=cfg.query_timeout_seconds,
    )
    return {"id": meme_id, "netVote": net_vote, "direction": direction.value}


@router.delete("/{meme_id}")
async def delete_meme(
    meme_id: int,
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    deleted = await run_db(
        meme_service.delete_meme, engine, meme_id, user_id, timeout=cfg.query_timeout_seconds
    )
    if not deleted:
        raise HTTPException(403, "Only the creator can delete this meme")
    return {"message": "Successfully deleted the meme"}
