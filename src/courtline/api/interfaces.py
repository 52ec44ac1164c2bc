"""Interfaces for the collaborators the engine consumes but does not own."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Optional

ADMIN_ROLE = "admin"
COACH_ROLE = "coach"


@dataclass(frozen=True)
class Principal:
    """Authenticated actor issued by the identity service."""

    principal_id: str
    role: str
    club_ids: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class MatchNotification:
    """State-changed message handed to the real-time broadcaster."""

    match_id: int
    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)
    emitted_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "kind": self.kind,
            "payload": self.payload,
            "emitted_at": self.emitted_at,
        }


class AccessPolicy(ABC):
    """Answers whether a principal may act on a club's match data."""

    @abstractmethod
    def may_act(self, principal: Principal, club_id: Optional[int]) -> bool:
        """Return True when the principal may mutate data for ``club_id``."""


class RoleAccessPolicy(AccessPolicy):
    """Admins act everywhere; coaches act on their assigned clubs.

    A coach without any club assignment is treated as unrestricted, matching
    deployments that have not configured trainer assignments yet.
    """

    def __init__(self, write_roles: FrozenSet[str] = frozenset({ADMIN_ROLE, COACH_ROLE})) -> None:
        self._write_roles = write_roles

    def may_act(self, principal: Principal, club_id: Optional[int]) -> bool:
        if principal.role not in self._write_roles:
            return False
        if principal.role == ADMIN_ROLE:
            return True
        if not principal.club_ids or club_id is None:
            return True
        return club_id in principal.club_ids


class Notifier(ABC):
    """Receives notifications after each accepted mutation."""

    @abstractmethod
    def publish(self, notification: MatchNotification) -> None:
        """Deliver the notification. Delivery is best-effort."""


__all__ = [
    "ADMIN_ROLE",
    "COACH_ROLE",
    "AccessPolicy",
    "MatchNotification",
    "Notifier",
    "Principal",
    "RoleAccessPolicy",
]
