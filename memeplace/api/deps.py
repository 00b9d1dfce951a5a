"""
memeplace.api.deps — FastAPI dependency injection
===================================================
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine

from memeplace.config import MemeplaceConfig, load_config
from memeplace.database.engine import create_db_engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> MemeplaceConfig:
    return load_config()
