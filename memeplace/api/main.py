"""
memeplace.api.main — FastAPI application entry point
======================================================

Run with::

    uvicorn memeplace.api.main:app --reload --port 3000

or ``python -m memeplace`` to use the port from ``config.yaml``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

load_dotenv()

from memeplace.api.deps import get_config, get_engine  # noqa: E402
from memeplace.api.routes.communities import router as communities_router  # noqa: E402
from memeplace.api.routes.favourites import router as favourites_router  # noqa: E402
from memeplace.api.routes.memes import router as memes_router  # noqa: E402
from memeplace.api.routes.templates import router as templates_router  # noqa: E402
from memeplace.errors import MemeplaceError, UnavailableError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — apply log level, warm the DB engine."""
    cfg = get_config()
    logging.getLogger("memeplace").setLevel(cfg.log_level)

    engine = get_engine()
    logger.info("%s API started — engine ready (%s)", cfg.site_name, engine.url.database)
    yield
    engine.dispose()
    logger.info("%s API shutting down", cfg.site_name)


app = FastAPI(
    title="memeplace API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error rendering: every failure body is {"error": message}
# ---------------------------------------------------------------------------
@app.exception_handler(MemeplaceError)
async def handle_domain_error(request: Request, exc: MemeplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(SQLAlchemyError)
async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("%s %s hit a store error", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500, content={"error": UnavailableError.default_message}
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Mount routers
app.include_router(communities_router, prefix="/api")
app.include_router(favourites_router, prefix="/api")
app.include_router(memes_router, prefix="/api")
app.include_router(templates_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
