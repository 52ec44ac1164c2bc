"""Pure match-state rules: lifecycle, lineup derivation and score deltas."""

from courtline.engine.lifecycle import (
    MatchStatus,
    TERMINAL_STATUSES,
    Transition,
    TransitionPlan,
    ensure_in_progress,
    ensure_not_terminal,
    plan_transition,
)
from courtline.engine.lineup import (
    LineupPartition,
    RosterSlot,
    SubstitutionRecord,
    closed_form_active_set,
    derive_lineup,
    is_player_active,
    partition,
    replay_active_set,
)
from courtline.engine.scoring import (
    ShotResult,
    apply_delta,
    delta_for_create,
    delta_for_delete,
    delta_for_update,
    tally_goals,
)

__all__ = [
    "LineupPartition",
    "MatchStatus",
    "RosterSlot",
    "ShotResult",
    "SubstitutionRecord",
    "TERMINAL_STATUSES",
    "Transition",
    "TransitionPlan",
    "apply_delta",
    "closed_form_active_set",
    "delta_for_create",
    "delta_for_delete",
    "delta_for_update",
    "derive_lineup",
    "ensure_in_progress",
    "ensure_not_terminal",
    "is_player_active",
    "partition",
    "plan_transition",
    "replay_active_set",
    "tally_goals",
]
