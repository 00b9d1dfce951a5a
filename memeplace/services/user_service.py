"""
memeplace.services.user_service — Caller Identity Checks
==========================================================

Accounts are owned by an external identity service, so a signed token
can outlive the user row it names.  Writes that reference the caller hit
a foreign key in that case; :func:`ensure_user` turns the failure into a
typed error instead of letting it pass as a duplicate.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from memeplace.database.models import User
from memeplace.errors import NotFoundError

logger = logging.getLogger(__name__)


def ensure_user(session: Session, user_id: int | None) -> None:
    """Raise :class:`NotFoundError` if *user_id* names no row."""
    if user_id is not None and session.get(User, user_id) is None:
        logger.info("Write rejected: user %s does not exist", user_id)
        raise NotFoundError("user")
