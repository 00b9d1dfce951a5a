"""
memeplace.engine.pagination — Listing Input Normalization
===========================================================

Every listing endpoint runs its raw ``sort`` / ``count`` / ``offset``
query values through :func:`normalize_page` so that the fallbacks are
identical everywhere:

* an unknown or missing ``sort`` falls back to the resource default;
* ``count`` must satisfy ``0 < count < 100``, otherwise it becomes 10;
* ``offset`` that is missing, negative or non-numeric becomes 0.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from memeplace.database.models import SortMode

DEFAULT_COUNT = 10
MAX_COUNT_EXCLUSIVE = 100

MEME_SORTS: tuple[SortMode, ...] = (SortMode.TOP, SortMode.NEW, SortMode.HOT)
TEMPLATE_SORTS: tuple[SortMode, ...] = (SortMode.TOP, SortMode.NEW)
COMMUNITY_SORTS: tuple[SortMode, ...] = (SortMode.TOP, SortMode.NEW)

DEFAULT_MEME_SORT = SortMode.HOT
DEFAULT_TEMPLATE_SORT = SortMode.TOP
DEFAULT_COMMUNITY_SORT = SortMode.TOP


@dataclass(frozen=True, slots=True)
class PageRequest:
    sort: SortMode
    count: int
    offset: int


@dataclass(slots=True)
class Page:
    """One slice of a listing plus the size of the whole listing."""

    items: list[Any]
    total_count: int
    offset: int
    count: int
    sort: SortMode

    @property
    def size(self) -> int:
        return len(self.items)


def _parse_int(raw: object) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def normalize_sort(
    raw: object, allowed: Sequence[SortMode], default: SortMode
) -> SortMode:
    if isinstance(raw, str):
        for mode in allowed:
            if raw == mode.value:
                return mode
    return default


def normalize_count(raw: object) -> int:
    value = _parse_int(raw)
    if value is None or not 0 < value < MAX_COUNT_EXCLUSIVE:
        return DEFAULT_COUNT
    return value


def normalize_offset(raw: object) -> int:
    value = _parse_int(raw)
    if value is None or value < 0:
        return 0
    return value


def normalize_page(
    sort: object,
    count: object,
    offset: object,
    *,
    allowed: Sequence[SortMode],
    default: SortMode,
) -> PageRequest:
    """Apply the shared fallbacks to raw listing parameters."""
    return PageRequest(
        sort=normalize_sort(sort, allowed, default),
        count=normalize_count(count),
        offset=normalize_offset(offset),
    )
