"""
memeplace.engine.links — Meme Link Validation
===============================================

Phase one of meme creation: decide whether a candidate link is usable
and compute the canonical form used for uniqueness checks.  Phase two
(the existence check and the guarded insert) lives in
:mod:`memeplace.services.meme_service`.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from memeplace.errors import ValidationError

_HTTP_URL = TypeAdapter(HttpUrl)


@dataclass(frozen=True, slots=True)
class CheckedLink:
    """A link that passed validation.

    ``stored`` keeps the submitter's casing for display; ``canonical`` is
    only ever used for comparison.
    """

    stored: str
    canonical: str


def canonical_form(value: str) -> str:
    """Lower-cased comparison key for links and community names."""
    return value.strip().lower()


def validate_link(candidate: str | None) -> CheckedLink:
    """Validate *candidate* as an absolute http(s) URL.

    Raises
    ------
    ValidationError
        ``reason="empty"`` for missing or blank input,
        ``reason="malformed"`` when the URL does not parse.
    """
    stored = (candidate or "").strip()
    if not stored:
        raise ValidationError("link", "empty", "The meme must have an URL")

    if any(ch.isspace() for ch in stored):
        raise ValidationError("link", "malformed", "Your URL doesn't have a proper structure")

    try:
        _HTTP_URL.validate_python(stored)
    except PydanticValidationError as exc:
        raise ValidationError(
            "link", "malformed", "Your URL doesn't have a proper structure"
        ) from exc

    return CheckedLink(stored=stored, canonical=canonical_form(stored))
