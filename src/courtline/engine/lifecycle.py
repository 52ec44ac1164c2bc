"""Match status state machine.

Pure rules only: callers load the current status, ask for a plan and then
persist the plan's target status themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from courtline.errors import StateConflictError, ValidationError


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    TO_RESCHEDULE = "to_reschedule"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Transition(str, Enum):
    START = "start"
    END = "end"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


TERMINAL_STATUSES = frozenset({MatchStatus.COMPLETED, MatchStatus.CANCELLED})


@dataclass(frozen=True)
class TransitionPlan:
    """Outcome of a permitted transition."""

    operation: Transition
    source: MatchStatus
    target: MatchStatus
    scheduled_at: Optional[str] = None


def coerce_status(value: object) -> MatchStatus:
    try:
        return MatchStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown match status: {value!r}") from exc


def _conflict(message: str, current: MatchStatus) -> StateConflictError:
    return StateConflictError(message, details={"current_status": current.value})


def plan_transition(
    current: MatchStatus | str,
    operation: Transition | str,
    *,
    scheduled_at: Optional[str] = None,
) -> TransitionPlan:
    """Return the transition plan or raise StateConflictError.

    ``scheduled_at`` is only meaningful for ``reschedule``: with a date the
    match goes back to ``scheduled`` on that date, without one it is only
    marked ``to_reschedule``.
    """

    status = coerce_status(current)
    try:
        op = Transition(operation)
    except ValueError as exc:
        raise ValidationError(f"Unknown match operation: {operation!r}") from exc

    if op is Transition.START:
        if status is MatchStatus.IN_PROGRESS:
            raise _conflict("Match is already in progress", status)
        if status is MatchStatus.COMPLETED:
            raise _conflict("Cannot start a completed match", status)
        if status is MatchStatus.CANCELLED:
            raise _conflict("Cannot start a cancelled match", status)
        return TransitionPlan(op, status, MatchStatus.IN_PROGRESS)

    if op is Transition.END:
        if status is MatchStatus.COMPLETED:
            raise _conflict("Match is already completed", status)
        if status is MatchStatus.CANCELLED:
            raise _conflict("Cannot end a cancelled match", status)
        return TransitionPlan(op, status, MatchStatus.COMPLETED)

    if op is Transition.CANCEL:
        if status is MatchStatus.COMPLETED:
            raise _conflict("Cannot cancel a completed match", status)
        if status is MatchStatus.CANCELLED:
            raise _conflict("Match is already cancelled", status)
        return TransitionPlan(op, status, MatchStatus.CANCELLED)

    # reschedule
    if status is MatchStatus.IN_PROGRESS:
        raise _conflict("Cannot reschedule a match in progress", status)
    if status is MatchStatus.COMPLETED:
        raise _conflict("Cannot reschedule a completed match", status)
    if status is MatchStatus.CANCELLED:
        raise _conflict("Cannot reschedule a cancelled match", status)
    if scheduled_at:
        return TransitionPlan(op, status, MatchStatus.SCHEDULED, scheduled_at=scheduled_at)
    return TransitionPlan(op, status, MatchStatus.TO_RESCHEDULE)


def ensure_not_terminal(current: MatchStatus | str, action: str) -> MatchStatus:
    """Reject any mutation of a completed or cancelled match."""

    status = coerce_status(current)
    if status in TERMINAL_STATUSES:
        raise _conflict(f"Cannot {action} a {status.value} match", status)
    return status


def ensure_in_progress(current: MatchStatus | str, action: str) -> MatchStatus:
    """Gate for in-game recording (substitutions, shots, game events)."""

    status = coerce_status(current)
    if status is not MatchStatus.IN_PROGRESS:
        raise _conflict(f"Cannot {action} for a match that is not in progress", status)
    return status


__all__ = [
    "MatchStatus",
    "TERMINAL_STATUSES",
    "Transition",
    "TransitionPlan",
    "coerce_status",
    "ensure_in_progress",
    "ensure_not_terminal",
    "plan_transition",
]
