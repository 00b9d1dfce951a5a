"""
memeplace.config — YAML Configuration Loader
==============================================

**Why this file exists:**
Secrets and connection strings live in ``.env`` (``DATABASE_URL``,
``JWT_SECRET``).  Everything else that an operator may tune without a
code change lives in ``config.yaml`` and is read into an immutable
:class:`MemeplaceConfig`.

Usage::

    from memeplace.config import load_config

    cfg = load_config()               # reads ./config.yaml by default
    print(cfg.site_name)              # "meme.place"
    print(cfg.query_timeout_seconds)  # 5.0
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MemeplaceConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    site_name: str

    # API
    api_port: int

    # Upper bound for a single store call (listing or mutation)
    query_timeout_seconds: float = 5.0

    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def config_path_from_env() -> Path:
    """Resolve the config file location (``MEMEPLACE_CONFIG`` or default)."""
    return Path(os.getenv("MEMEPLACE_CONFIG", DEFAULT_CONFIG_PATH))


def load_config(path: str | Path | None = None) -> MemeplaceConfig:
    """Read *path* and return a :class:`MemeplaceConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$MEMEPLACE_CONFIG`` or ``config.yaml`` in the working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If ``query_timeout_seconds`` is not positive.
    """
    config_path = Path(path) if path is not None else config_path_from_env()
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    timeout = float(raw.get("query_timeout_seconds", 5.0))
    if timeout <= 0:
        raise ValueError("query_timeout_seconds must be positive")

    return MemeplaceConfig(
        site_name=raw["site_name"],
        api_port=int(raw["api_port"]),
        query_timeout_seconds=timeout,
        log_level=str(raw.get("log_level", "INFO")).upper(),
    )
