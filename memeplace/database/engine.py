"""
memeplace.database.engine — Database Connection & Async Helper
================================================================

**Why this file exists:**
FastAPI handlers run on an ``asyncio`` event loop while SQLAlchemy +
psycopg2 is **synchronous**.  Calling the DB directly from a handler
would stall every other request until the query returns.

So every store call goes through :func:`run_db`:

    1. A request arrives in an ``async`` route.
    2. The route calls ``await run_db(service_fn, engine, ..., timeout=5)``.
    3. ``run_db`` ships the synchronous function to a **thread pool** via
       ``asyncio.to_thread()`` and bounds the wait with
       ``asyncio.wait_for()``.
    4. Overrunning the budget raises :class:`UnavailableError` to the
       caller.  The worker thread cannot be cancelled: it runs on and its
       transaction still commits or rolls back as a unit, possibly after
       the client has been told the call failed.  On PostgreSQL the
       per-connection ``statement_timeout`` bounds that tail; SQLite has
       no equivalent.

Usage::

    from memeplace.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    page = await run_db(list_memes, engine, sort="hot", timeout=5.0)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from memeplace.database.models import Base
from memeplace.errors import UnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_STATEMENT_TIMEOUT_MS = 5000

# Driver-level failures that mean "the store is not answering"
_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine` from *url* or ``DATABASE_URL``.

    For PostgreSQL the pool is sized for a small web service and every
    connection carries a server-side ``statement_timeout`` so a runaway
    query fails instead of pinning a worker:

    * ``pool_size=5`` / ``max_overflow=10``
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    SQLite (dev/test) gets the dialect defaults.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid database URL."
        )

    if url.startswith("sqlite"):
        engine = create_engine(url, echo=False)
        enable_sqlite_savepoints(engine)
    else:
        timeout_ms = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", DEFAULT_STATEMENT_TIMEOUT_MS))
        engine = create_engine(
            url,
            echo=False,        # Set True for SQL debugging
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,   # Reconnect stale connections automatically
            pool_timeout=10,      # Fail after 10s instead of hanging forever
            pool_recycle=3600,
            connect_args={"options": f"-c statement_timeout={timeout_ms}"},
        )
    logger.info("Database engine created → %s", engine.url.render_as_string(hide_password=True))
    return engine


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let pysqlite honour SAVEPOINT (``session.begin_nested()``).

    The driver defers ``BEGIN`` until the first DML statement, which
    turns an outer SAVEPOINT into its own transaction.  Disabling the
    driver's transaction handling and emitting ``BEGIN`` ourselves keeps
    the nested inserts used by the favourite and vote services inside the
    enclosing transaction.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`memeplace.database.models`.

    Safe to call on every startup.  In production the schema is managed
    by Alembic (``alembic upgrade head``); ``create_all`` remains for
    dev/test environments where Alembic may not have run.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.

    Objects stay readable after the block (``expire_on_commit=False``) so
    services can hand detached rows to the API layer.  Connectivity
    failures are re-raised as :class:`UnavailableError`.

    Usage::

        with get_session(engine) as session:
            session.add(Community(name="gaming", title="Gaming"))
            # commit happens automatically on block exit
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except _UNAVAILABLE_ERRORS as exc:
        session.rollback()
        logger.error("Store unavailable: %s", exc)
        raise UnavailableError() from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(
    func: Callable[..., T],
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """Run a **synchronous** database function on a background thread.

    Every store call made from a route should go through this wrapper::

        result = await run_db(my_sync_db_function, engine, user_id, timeout=5)

    Parameters
    ----------
    func:
        Any sync callable (typically a service function that opens a
        session and runs queries).
    timeout:
        Seconds to wait before giving up with :class:`UnavailableError`.
        ``None`` waits indefinitely.  Only the wait is bounded; a mutation
        that is still running may commit after the timeout fires.
    *args, **kwargs:
        Forwarded to *func*.
    """
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs), timeout=timeout
        )
    except TimeoutError as exc:
        logger.error("%s exceeded its %.1fs budget", getattr(func, "__name__", func), timeout)
        raise UnavailableError("The request took too long, please retry") from exc
