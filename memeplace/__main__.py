"""
memeplace.__main__ — Entry point for ``python -m memeplace``
==============================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Load config.yaml (port, log level, time budget).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Serve the FastAPI app with uvicorn (blocking).
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

from memeplace.config import load_config
from memeplace.database.engine import create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("memeplace")


def main() -> None:
    """Bootstrap the schema and run the API server."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config()
    logging.getLogger().setLevel(cfg.log_level)
    logger.info("Config loaded — site: %s", cfg.site_name)

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)
    engine.dispose()

    # 4. Serve (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting %s API on port %d…", cfg.site_name, cfg.api_port)
    uvicorn.run("memeplace.api.main:app", host="0.0.0.0", port=cfg.api_port, log_config=None)


if __name__ == "__main__":
    main()
