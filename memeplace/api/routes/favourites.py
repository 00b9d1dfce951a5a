"""
memeplace.api.routes.favourites — The caller's favourited communities
=======================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import Engine

from memeplace.api.auth import get_current_user_id
from memeplace.api.deps import get_config, get_engine
from memeplace.api.schemas import community_dict
from memeplace.config import MemeplaceConfig
from memeplace.database.engine import run_db
from memeplace.services import favourite_service

router = APIRouter(prefix="/favourites", tags=["favourites"])


@router.get("")
async def list_favourites(
    user_id: int = Depends(get_current_user_id),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    """Most recently favourited first."""
    communities = await run_db(
        favourite_service.list_favourite_communities,
        engine,
        user_id,
        timeout=cfg.query_timeout_seconds,
    )
    return {"communities": [community_dict(c) for c in communities]}
