from __future__ import annotations

import random

import pytest

from courtline.api.interfaces import Principal
from courtline.api.models import ShotCreate, ShotUpdate
from courtline.engine.scoring import (
    apply_delta,
    delta_for_create,
    delta_for_delete,
    delta_for_update,
    tally_goals,
)
from courtline.errors import AuthorizationError, NotFoundError, StateConflictError, ValidationError


def _shot(club_id: int, player_id: int, result: str = "goal", **overrides) -> ShotCreate:
    values = {
        "club_id": club_id,
        "player_id": player_id,
        "x_coord": 40.0,
        "y_coord": 55.5,
        "result": result,
        "period": 1,
    }
    values.update(overrides)
    return ShotCreate(**values)


@pytest.mark.parametrize(
    ("old", "new", "expected"),
    [
        ("goal", "miss", -1),
        ("goal", "blocked", -1),
        ("miss", "goal", 1),
        ("blocked", "goal", 1),
        ("miss", "blocked", 0),
        ("goal", "goal", 0),
        ("goal", None, 0),
    ],
)
def test_delta_for_update(old, new, expected) -> None:
    assert delta_for_update(old, new) == expected


def test_create_and_delete_deltas() -> None:
    assert delta_for_create("goal") == 1
    assert delta_for_create("miss") == 0
    assert delta_for_delete("goal") == -1
    assert delta_for_delete("blocked") == 0
    assert apply_delta(0, -1) == 0
    assert apply_delta(2, 1) == 3


def test_tally_goals_counts_per_side() -> None:
    shots = [
        {"side": "home", "result": "goal"},
        {"side": "home", "result": "miss"},
        {"side": "away", "result": "goal"},
        {"side": "away", "result": "goal"},
    ]

    assert tally_goals(shots) == (1, 2)


def test_scenario_goal_then_miss_then_delete(service, admin, live_match, seeded, notifications) -> None:
    shooter = seeded.home_players[1]

    shot = service.record_shot(admin, live_match.match_id, _shot(seeded.home_club, shooter, "goal"))
    assert service.get_match(live_match.match_id).home_score == 1
    assert notifications[-1].kind == "shot_recorded"
    assert notifications[-1].payload["home_score"] == 1

    service.update_shot(admin, live_match.match_id, shot.shot_id, ShotUpdate(result="miss"))
    assert service.get_match(live_match.match_id).home_score == 0

    service.delete_shot(admin, live_match.match_id, shot.shot_id)
    match = service.get_match(live_match.match_id)
    assert (match.home_score, match.away_score) == (0, 0)
    assert notifications[-1].kind == "shot_deleted"


def test_shot_requires_in_progress(service, admin, new_match, seeded) -> None:
    match = new_match()

    with pytest.raises(StateConflictError, match="not in progress"):
        service.record_shot(admin, match.match_id, _shot(seeded.home_club, seeded.home_players[0]))


def test_shot_player_must_match_club(service, admin, live_match, seeded) -> None:
    with pytest.raises(ValidationError, match="does not belong"):
        service.record_shot(admin, live_match.match_id, _shot(seeded.home_club, seeded.away_players[0]))
    assert service.get_match(live_match.match_id).home_score == 0


def test_shot_coordinates_are_bounded() -> None:
    with pytest.raises(ValueError):
        _shot(1, 1, x_coord=101)
    with pytest.raises(ValueError):
        _shot(1, 1, period=0)
    with pytest.raises(ValueError):
        _shot(1, 1, time_remaining="5:00")


def test_update_shot_requires_fields(service, admin, live_match, seeded) -> None:
    shot = service.record_shot(admin, live_match.match_id, _shot(seeded.away_club, seeded.away_players[0], "miss"))

    with pytest.raises(ValidationError, match="No fields to update"):
        service.update_shot(admin, live_match.match_id, shot.shot_id, ShotUpdate())


def test_update_shot_keeps_other_fields(service, admin, live_match, seeded) -> None:
    shot = service.record_shot(
        admin,
        live_match.match_id,
        _shot(seeded.away_club, seeded.away_players[0], "blocked", distance=6.5, shot_type="running_in"),
    )

    updated = service.update_shot(admin, live_match.match_id, shot.shot_id, ShotUpdate(x_coord=12.0))

    assert updated.x_coord == 12.0
    assert updated.result == "blocked"
    assert updated.distance == 6.5
    assert updated.shot_type == "running_in"
    assert updated.side == "away"


def test_unknown_shot(service, admin, live_match) -> None:
    with pytest.raises(NotFoundError, match="Shot not found"):
        service.delete_shot(admin, live_match.match_id, 99)


def test_list_shots_filters(service, admin, live_match, seeded) -> None:
    service.record_shot(admin, live_match.match_id, _shot(seeded.home_club, seeded.home_players[0], "goal"))
    service.record_shot(admin, live_match.match_id, _shot(seeded.home_club, seeded.home_players[1], "miss", period=2))
    service.record_shot(admin, live_match.match_id, _shot(seeded.away_club, seeded.away_players[0], "goal"))

    assert len(service.list_shots(live_match.match_id)) == 3
    assert len(service.list_shots(live_match.match_id, result="goal")) == 2
    assert len(service.list_shots(live_match.match_id, period=2)) == 1
    assert len(service.list_shots(live_match.match_id, club_id=seeded.away_club)) == 1
    assert len(service.list_shots(live_match.match_id, player_id=seeded.home_players[1])) == 1


def test_coach_limited_to_assigned_club(service, live_match, seeded) -> None:
    coach = Principal(principal_id="coach-7", role="coach", club_ids=frozenset({seeded.away_club}))

    with pytest.raises(AuthorizationError):
        service.record_shot(coach, live_match.match_id, _shot(seeded.home_club, seeded.home_players[0]))

    shot = service.record_shot(coach, live_match.match_id, _shot(seeded.away_club, seeded.away_players[0]))
    assert shot.side == "away"


@pytest.mark.parametrize("seed", range(8))
def test_score_matches_ledger_after_random_operations(service, admin, live_match, seeded, seed) -> None:
    rng = random.Random(seed)
    match_id = live_match.match_id
    shooters = {
        seeded.home_club: seeded.home_players[:4],
        seeded.away_club: seeded.away_players[:4],
    }
    shot_ids = []

    for _ in range(30):
        action = rng.choice(("record", "record", "update", "delete"))
        if action == "record" or not shot_ids:
            club_id = rng.choice(list(shooters))
            shot = service.record_shot(
                admin,
                match_id,
                _shot(club_id, rng.choice(shooters[club_id]), rng.choice(("goal", "miss", "blocked"))),
            )
            shot_ids.append(shot.shot_id)
        elif action == "update":
            service.update_shot(
                admin,
                match_id,
                rng.choice(shot_ids),
                ShotUpdate(result=rng.choice(("goal", "miss", "blocked"))),
            )
        else:
            shot_id = shot_ids.pop(rng.randrange(len(shot_ids)))
            service.delete_shot(admin, match_id, shot_id)

        shots = service.list_shots(match_id)
        expected_home, expected_away = tally_goals(shot.model_dump() for shot in shots)
        match = service.get_match(match_id)
        assert (match.home_score, match.away_score) == (expected_home, expected_away)


def test_rebuild_score_corrects_drift(service, admin, live_match, seeded, database, notifications) -> None:
    service.record_shot(admin, live_match.match_id, _shot(seeded.home_club, seeded.home_players[0], "goal"))
    service.record_shot(admin, live_match.match_id, _shot(seeded.away_club, seeded.away_players[0], "goal"))
    with database.connection() as conn:
        conn.execute(
            "UPDATE matches SET home_score = 7, away_score = 0 WHERE match_id = ?",
            (live_match.match_id,),
        )

    rebuilt = service.rebuild_score(admin, live_match.match_id)

    assert (rebuilt.home_score, rebuilt.away_score) == (1, 1)
    assert notifications[-1].kind == "score_rebuilt"


def test_rebuild_score_is_admin_only(service, live_match) -> None:
    with pytest.raises(AuthorizationError):
        service.rebuild_score(Principal(principal_id="c", role="coach"), live_match.match_id)


def test_corrections_allowed_after_match_end(service, admin, live_match, seeded) -> None:
    shot = service.record_shot(admin, live_match.match_id, _shot(seeded.home_club, seeded.home_players[0], "goal"))
    service.end_match(admin, live_match.match_id)

    service.update_shot(admin, live_match.match_id, shot.shot_id, ShotUpdate(result="miss"))

    match = service.get_match(live_match.match_id)
    assert match.status == "completed"
    assert match.home_score == 0


def test_shot_player_must_match_sub_team(service, admin, derby, seeded) -> None:
    match_id = derby.match.match_id
    service.start_match(admin, match_id)

    with pytest.raises(ValidationError, match="does not belong to the specified team"):
        service.record_shot(
            admin,
            match_id,
            _shot(seeded.home_club, derby.second_team_players[0], team_id=seeded.home_team),
        )
    assert service.get_match(match_id).home_score == 0

    shot = service.record_shot(
        admin,
        match_id,
        _shot(seeded.home_club, derby.second_team_players[0], team_id=seeded.second_home_team),
    )
    assert shot.side == "away"
    assert service.get_match(match_id).away_score == 1
