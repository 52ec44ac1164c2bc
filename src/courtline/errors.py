"""Exception hierarchy for the live-match state engine.

Exception tree:
    CourtlineError
    +-- ValidationError      (malformed or out-of-range input)
    +-- NotFoundError        (match, roster entry, player, substitution, shot)
    +-- StateConflictError   (operation not allowed in the current state)
    +-- AuthorizationError   (principal may not act on the club)
    +-- InternalError        (backing store or transaction failure)
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class CourtlineError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, **self.details}


class ValidationError(CourtlineError):
    """Input is malformed or out of range. Nothing was written."""


class NotFoundError(CourtlineError):
    """A referenced entity does not exist."""


class StateConflictError(CourtlineError):
    """The operation is not permitted in the entity's current state.

    Covers wrong match status, duplicate captaincy, lineup mismatches and
    out-of-order substitution retraction.
    """


class AuthorizationError(CourtlineError):
    """The principal lacks the role or assignment for the club."""


class InternalError(CourtlineError):
    """Unexpected failure in the store. The message is always opaque."""


__all__ = [
    "AuthorizationError",
    "CourtlineError",
    "InternalError",
    "NotFoundError",
    "StateConflictError",
    "ValidationError",
]
