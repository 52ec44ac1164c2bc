"""Score deltas applied by the reconciler when the shot ledger changes."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping, Optional, Tuple


class ShotResult(str, Enum):
    GOAL = "goal"
    MISS = "miss"
    BLOCKED = "blocked"


def _is_goal(result: Optional[str]) -> bool:
    return result == ShotResult.GOAL.value


def delta_for_create(result: str) -> int:
    return 1 if _is_goal(result) else 0


def delta_for_update(old_result: str, new_result: Optional[str]) -> int:
    """+1 for non-goal to goal, -1 for goal to non-goal, else 0."""

    if new_result is None:
        return 0
    was_goal, is_goal = _is_goal(old_result), _is_goal(new_result)
    if was_goal and not is_goal:
        return -1
    if is_goal and not was_goal:
        return 1
    return 0


def delta_for_delete(result: str) -> int:
    return -1 if _is_goal(result) else 0


def apply_delta(current: int, delta: int) -> int:
    """Clamp at zero, mirroring the SQL ``MAX(0, score + delta)`` update."""

    return max(0, current + delta)


def tally_goals(shots: Iterable[Mapping[str, object]]) -> Tuple[int, int]:
    """Count goal-result shots per side from ledger rows."""

    home = away = 0
    for shot in shots:
        if not _is_goal(shot.get("result")):  # type: ignore[arg-type]
            continue
        if shot.get("side") == "home":
            home += 1
        elif shot.get("side") == "away":
            away += 1
    return home, away


__all__ = [
    "ShotResult",
    "apply_delta",
    "delta_for_create",
    "delta_for_delete",
    "delta_for_update",
    "tally_goals",
]
