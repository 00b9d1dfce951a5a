"""
memeplace.api.routes.templates — Global template listing
==========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine

from memeplace.api.deps import get_config, get_engine
from memeplace.api.schemas import page_meta, template_dict
from memeplace.config import MemeplaceConfig
from memeplace.database.engine import run_db
from memeplace.services import feed_service

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("")
async def list_templates(
    sort: str | None = Query(None),
    count: str | None = Query(None),
    offset: str | None = Query(None),
    engine: Engine = Depends(get_engine),
    cfg: MemeplaceConfig = Depends(get_config),
):
    page = await run_db(
        feed_service.list_templates,
        engine,
        sort=sort,
        count=count,
        offset=offset,
        timeout=cfg.query_timeout_seconds,
    )
    return {"templates": [template_dict(t) for t in page.items], **page_meta(page)}
