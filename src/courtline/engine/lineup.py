"""Derive the on-court lineup from a starting roster and a substitution log.

Two formulations are provided and must agree for every log accepted by the
substitution validator:

* ``replay_active_set`` walks the log in creation order;
* ``closed_form_active_set`` counts ins and outs per player, which is what a
  single-player check uses without replaying the whole log.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

SIDES: Tuple[str, str] = ("home", "away")


@dataclass(frozen=True)
class RosterSlot:
    """A rostered player as seen by the lineup engine."""

    player_id: int
    side: str
    is_starting: bool


@dataclass(frozen=True)
class SubstitutionRecord:
    """One exchange from the log. ``sequence`` orders records within a match."""

    player_in_id: int
    player_out_id: int
    side: str
    sequence: int = 0


@dataclass
class LineupPartition:
    active: List[int] = field(default_factory=list)
    bench: List[int] = field(default_factory=list)


def ordered_log(substitutions: Iterable[SubstitutionRecord]) -> List[SubstitutionRecord]:
    return sorted(substitutions, key=lambda record: record.sequence)


def replay_active_set(
    roster: Iterable[RosterSlot], substitutions: Iterable[SubstitutionRecord]
) -> Dict[int, bool]:
    """Start from the starting flags and apply each substitution in order."""

    active: Dict[int, bool] = {slot.player_id: bool(slot.is_starting) for slot in roster}
    for record in ordered_log(substitutions):
        active[record.player_out_id] = False
        active[record.player_in_id] = True
    return active


def substitution_tallies(
    substitutions: Iterable[SubstitutionRecord],
) -> Tuple[Counter, Counter]:
    ins: Counter = Counter()
    outs: Counter = Counter()
    for record in substitutions:
        ins[record.player_in_id] += 1
        outs[record.player_out_id] += 1
    return ins, outs


def is_player_active(started: bool, ins_count: int, outs_count: int) -> bool:
    """Closed form for a single player.

    A starter is on court while every exit has been matched by a return; a
    bench player is on court once entries outnumber exits.
    """

    if started:
        return ins_count == outs_count
    return ins_count > outs_count


def closed_form_active_set(
    roster: Iterable[RosterSlot], substitutions: Iterable[SubstitutionRecord]
) -> Dict[int, bool]:
    ins, outs = substitution_tallies(substitutions)
    return {
        slot.player_id: is_player_active(slot.is_starting, ins[slot.player_id], outs[slot.player_id])
        for slot in roster
    }


def partition(
    roster: Sequence[RosterSlot], active: Mapping[int, bool]
) -> Dict[str, LineupPartition]:
    """Split rostered players per side into on-court and bench, keeping roster order."""

    result: Dict[str, LineupPartition] = {side: LineupPartition() for side in SIDES}
    for slot in roster:
        target = result.setdefault(slot.side, LineupPartition())
        if active.get(slot.player_id, False):
            target.active.append(slot.player_id)
        else:
            target.bench.append(slot.player_id)
    return result


def derive_lineup(
    roster: Sequence[RosterSlot], substitutions: Iterable[SubstitutionRecord]
) -> Dict[str, LineupPartition]:
    return partition(roster, replay_active_set(roster, substitutions))


__all__ = [
    "LineupPartition",
    "RosterSlot",
    "SIDES",
    "SubstitutionRecord",
    "closed_form_active_set",
    "derive_lineup",
    "is_player_active",
    "ordered_log",
    "partition",
    "replay_active_set",
    "substitution_tallies",
]
