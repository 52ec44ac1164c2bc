from __future__ import annotations

import random
from typing import List

import pytest

from courtline.engine.lineup import (
    RosterSlot,
    SubstitutionRecord,
    closed_form_active_set,
    derive_lineup,
    is_player_active,
    partition,
    replay_active_set,
    substitution_tallies,
)


def _roster() -> List[RosterSlot]:
    return [
        RosterSlot(player_id=1, side="home", is_starting=True),
        RosterSlot(player_id=2, side="home", is_starting=True),
        RosterSlot(player_id=3, side="home", is_starting=False),
        RosterSlot(player_id=4, side="home", is_starting=False),
        RosterSlot(player_id=11, side="away", is_starting=True),
        RosterSlot(player_id=12, side="away", is_starting=False),
    ]


def test_replay_without_substitutions_uses_starting_flags() -> None:
    active = replay_active_set(_roster(), [])

    assert active == {1: True, 2: True, 3: False, 4: False, 11: True, 12: False}


def test_replay_applies_log_in_sequence_order() -> None:
    log = [
        SubstitutionRecord(player_in_id=1, player_out_id=3, side="home", sequence=2),
        SubstitutionRecord(player_in_id=3, player_out_id=1, side="home", sequence=1),
    ]

    active = replay_active_set(_roster(), log)

    # 3 comes on for 1, then 1 returns for 3
    assert active[1] is True
    assert active[3] is False


def test_partition_keeps_roster_order_per_side() -> None:
    log = [SubstitutionRecord(player_in_id=4, player_out_id=2, side="home", sequence=1)]

    lineup = derive_lineup(_roster(), log)

    assert lineup["home"].active == [1, 4]
    assert lineup["home"].bench == [2, 3]
    assert lineup["away"].active == [11]
    assert lineup["away"].bench == [12]


def test_partition_returns_both_sides_for_empty_roster() -> None:
    lineup = partition([], {})

    assert set(lineup) == {"home", "away"}
    assert lineup["home"].active == [] and lineup["away"].bench == []


@pytest.mark.parametrize(
    ("started", "ins", "outs", "expected"),
    [
        (True, 0, 0, True),
        (True, 0, 1, False),
        (True, 1, 1, True),
        (True, 1, 2, False),
        (False, 0, 0, False),
        (False, 1, 0, True),
        (False, 1, 1, False),
        (False, 2, 1, True),
    ],
)
def test_closed_form_single_player(started: bool, ins: int, outs: int, expected: bool) -> None:
    assert is_player_active(started, ins, outs) is expected


def test_tallies_count_each_appearance() -> None:
    log = [
        SubstitutionRecord(player_in_id=3, player_out_id=1, side="home", sequence=0),
        SubstitutionRecord(player_in_id=1, player_out_id=3, side="home", sequence=1),
        SubstitutionRecord(player_in_id=3, player_out_id=2, side="home", sequence=2),
    ]

    ins, outs = substitution_tallies(log)

    assert ins[3] == 2 and outs[3] == 1
    assert ins[1] == 1 and outs[1] == 1
    assert outs[2] == 1 and ins[2] == 0


def _random_roster(rng: random.Random) -> List[RosterSlot]:
    roster: List[RosterSlot] = []
    next_id = 1
    for side in ("home", "away"):
        starters = rng.randint(1, 4)
        bench = rng.randint(1, 4)
        for index in range(starters + bench):
            roster.append(RosterSlot(player_id=next_id, side=side, is_starting=index < starters))
            next_id += 1
    return roster


def _random_legal_log(rng: random.Random, roster: List[RosterSlot], steps: int) -> List[SubstitutionRecord]:
    """Build a log the way the validator would: only legal proposals and LIFO undos."""

    log: List[SubstitutionRecord] = []
    sequence = 0
    for _ in range(steps):
        if log and rng.random() < 0.2:
            log.pop()
            continue
        side = rng.choice(("home", "away"))
        current = replay_active_set(roster, log)
        on_court = [slot.player_id for slot in roster if slot.side == side and current[slot.player_id]]
        bench = [slot.player_id for slot in roster if slot.side == side and not current[slot.player_id]]
        if not on_court or not bench:
            continue
        sequence += 1
        log.append(
            SubstitutionRecord(
                player_in_id=rng.choice(bench),
                player_out_id=rng.choice(on_court),
                side=side,
                sequence=sequence,
            )
        )
    return log


@pytest.mark.parametrize("seed", range(40))
def test_replay_and_closed_form_agree_on_legal_logs(seed: int) -> None:
    rng = random.Random(seed)
    roster = _random_roster(rng)
    log = _random_legal_log(rng, roster, steps=rng.randint(0, 60))

    assert replay_active_set(roster, log) == closed_form_active_set(roster, log)
    for prefix in range(len(log) + 1):
        assert replay_active_set(roster, log[:prefix]) == closed_form_active_set(roster, log[:prefix])


@pytest.mark.parametrize("seed", range(10))
def test_on_court_count_is_preserved_by_legal_logs(seed: int) -> None:
    rng = random.Random(1000 + seed)
    roster = _random_roster(rng)
    log = _random_legal_log(rng, roster, steps=40)

    before = derive_lineup(roster, [])
    after = derive_lineup(roster, log)

    for side in ("home", "away"):
        assert len(after[side].active) == len(before[side].active)
        assert sorted(after[side].active + after[side].bench) == sorted(
            before[side].active + before[side].bench
        )
