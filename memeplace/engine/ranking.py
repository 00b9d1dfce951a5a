"""
memeplace.engine.ranking — Hot Score
======================================

``hot`` ordering blends vote magnitude with recency::

    score = sign(v) * log10(max(|v|, 1)) + (created_at - EPOCH) / 45000s

* For a fixed age the score never decreases as ``v`` grows.
* For a fixed ``v`` a newer meme always scores higher than an older one
  (every 45000 s of recency is worth one order of magnitude of votes).
* The score does not depend on the time of the query, so it can be
  stored on the row and ordered by in SQL; two pages fetched a minute
  apart see the same ranking as long as no vote lands in between.

The score is recomputed whenever ``net_vote`` changes, inside the same
transaction (see :mod:`memeplace.services.vote_service`).
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

HOT_EPOCH = datetime(2018, 1, 1, tzinfo=UTC)
HOT_DECAY_SECONDS = 45000


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def hot_score(net_vote: int, created_at: datetime) -> float:
    """Return the stored ``hot`` ranking key for a meme."""
    magnitude = math.log10(max(abs(net_vote), 1))
    sign = 1 if net_vote > 0 else -1 if net_vote < 0 else 0
    age_seconds = (as_utc(created_at) - HOT_EPOCH).total_seconds()
    return sign * magnitude + age_seconds / HOT_DECAY_SECONDS
