"""
memeplace.errors — Typed Error Taxonomy
=========================================

Every service raises one of these instead of returning ad-hoc status
tuples.  The API layer renders them as ``{"error": message}`` with the
``status_code`` carried on the instance, so storage detail never reaches
the client.
"""

from __future__ import annotations


class MemeplaceError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(MemeplaceError):
    """Malformed or missing input — always client-correctable."""

    status_code = 400

    def __init__(self, field: str, reason: str, message: str | None = None) -> None:
        self.field = field
        self.reason = reason
        super().__init__(message or f"Invalid {field}: {reason}")


class ConflictError(MemeplaceError):
    """A uniqueness invariant would be violated."""

    status_code = 400

    def __init__(self, resource: str, field: str, message: str | None = None) -> None:
        self.resource = resource
        self.field = field
        super().__init__(message or f"That {resource} {field} already exists")


class NotFoundError(MemeplaceError):
    """A referenced resource (usually the community scope) is absent."""

    status_code = 400

    def __init__(
        self,
        resource: str,
        message: str | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        self.resource = resource
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message or f"Failed to find the {resource}")


class UnavailableError(MemeplaceError):
    """Storage is unreachable or the call exceeded its time budget."""

    status_code = 500
    default_message = "The service is temporarily unavailable"
