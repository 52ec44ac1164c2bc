from __future__ import annotations

import pytest

from courtline.api.models import RosterEntryInput, SubstitutionCreate
from courtline.errors import NotFoundError, StateConflictError, ValidationError


def _sub(club_id: int, player_in: int, player_out: int, **overrides) -> SubstitutionCreate:
    values = {"club_id": club_id, "player_in_id": player_in, "player_out_id": player_out, "period": 1}
    values.update(overrides)
    return SubstitutionCreate(**values)


def _ids(players):
    return [player.player_id for player in players]


def test_scenario_substitution_then_repeat_fails(service, admin, new_match, seeded) -> None:
    p1, p2 = seeded.home_players[0], seeded.home_players[1]
    match = new_match()
    started = service.transition_match(admin, match.match_id, "start")
    assert started.status == "in_progress"
    service.replace_roster(
        admin,
        match.match_id,
        [
            RosterEntryInput(club_id=seeded.home_club, player_id=p1, is_starting=True),
            RosterEntryInput(club_id=seeded.home_club, player_id=p2, is_starting=False),
        ],
    )

    created = service.propose_substitution(admin, match.match_id, _sub(seeded.home_club, p2, p1))

    assert created.side == "home"
    assert created.reason == "tactical"
    lineup = service.get_active_lineup(match.match_id)
    assert _ids(lineup.home.active) == [p2]
    assert _ids(lineup.home.bench) == [p1]

    with pytest.raises(StateConflictError, match="already on the court"):
        service.propose_substitution(admin, match.match_id, _sub(seeded.home_club, p2, p1))
    assert len(service.list_substitutions(match.match_id)) == 1


def test_player_out_not_on_court(service, admin, live_match, seeded) -> None:
    bench_a, bench_b = seeded.home_players[4], seeded.home_players[5]

    with pytest.raises(StateConflictError, match="not currently on the court") as excinfo:
        service.propose_substitution(admin, live_match.match_id, _sub(seeded.home_club, bench_a, bench_b))

    assert "Home6 #6" in excinfo.value.message
    assert excinfo.value.details["player_id"] == bench_b


def test_player_in_label_in_conflict(service, admin, live_match, seeded) -> None:
    starter_a, starter_b = seeded.home_players[0], seeded.home_players[1]

    with pytest.raises(StateConflictError) as excinfo:
        service.propose_substitution(admin, live_match.match_id, _sub(seeded.home_club, starter_a, starter_b))

    assert excinfo.value.message == "Anna Home1 #1 is already on the court"


def test_substitution_requires_in_progress(service, admin, new_match, seeded, standard_roster) -> None:
    match = new_match()
    service.replace_roster(admin, match.match_id, standard_roster)

    with pytest.raises(StateConflictError) as excinfo:
        service.propose_substitution(
            admin, match.match_id, _sub(seeded.home_club, seeded.home_players[4], seeded.home_players[0])
        )
    assert excinfo.value.details["current_status"] == "scheduled"


@pytest.mark.parametrize(
    ("build", "error", "message"),
    [
        (lambda s: _sub(9999, s.home_players[4], s.home_players[0]), ValidationError, "not participating"),
        (lambda s: _sub(s.home_club, s.home_players[0], s.home_players[0]), ValidationError, "must be different"),
        (lambda s: _sub(s.home_club, 9999, s.home_players[0]), NotFoundError, "not found"),
        (lambda s: _sub(s.home_club, s.away_players[4], s.home_players[0]), ValidationError, "belong"),
    ],
)
def test_validation_failures(service, admin, live_match, seeded, build, error, message) -> None:
    with pytest.raises(error, match=message):
        service.propose_substitution(admin, live_match.match_id, build(seeded))
    assert service.list_substitutions(live_match.match_id) == []


def test_player_must_be_rostered(service, admin, new_match, seeded) -> None:
    match = new_match()
    service.replace_roster(
        admin,
        match.match_id,
        [RosterEntryInput(club_id=seeded.home_club, player_id=seeded.home_players[0])],
    )
    service.start_match(admin, match.match_id)

    with pytest.raises(ValidationError, match="not on the roster"):
        service.propose_substitution(
            admin, match.match_id, _sub(seeded.home_club, seeded.home_players[1], seeded.home_players[0])
        )


def test_player_returning_after_being_substituted(service, admin, live_match, seeded) -> None:
    starter, bench = seeded.home_players[0], seeded.home_players[4]
    service.propose_substitution(admin, live_match.match_id, _sub(seeded.home_club, bench, starter))
    service.propose_substitution(admin, live_match.match_id, _sub(seeded.home_club, starter, bench, period=2))

    lineup = service.get_active_lineup(live_match.match_id)

    assert starter in _ids(lineup.home.active)
    assert bench in _ids(lineup.home.bench)


def test_lifo_retraction(service, admin, live_match, seeded, notifications) -> None:
    s1 = service.propose_substitution(
        admin, live_match.match_id, _sub(seeded.home_club, seeded.home_players[4], seeded.home_players[0])
    )
    s2 = service.propose_substitution(
        admin, live_match.match_id, _sub(seeded.away_club, seeded.away_players[4], seeded.away_players[0])
    )

    with pytest.raises(StateConflictError, match="most recent"):
        service.retract_substitution(admin, live_match.match_id, s1.substitution_id)

    service.retract_substitution(admin, live_match.match_id, s2.substitution_id)
    assert notifications[-1].kind == "substitution_retracted"
    service.retract_substitution(admin, live_match.match_id, s1.substitution_id)

    assert service.list_substitutions(live_match.match_id) == []
    lineup = service.get_active_lineup(live_match.match_id)
    assert _ids(lineup.home.active) == seeded.home_players[:4]
    assert _ids(lineup.away.active) == seeded.away_players[:4]


def test_retract_unknown_substitution(service, admin, live_match) -> None:
    with pytest.raises(NotFoundError, match="Substitution not found"):
        service.retract_substitution(admin, live_match.match_id, 123)


def test_list_substitutions_newest_first_with_filters(service, admin, live_match, seeded) -> None:
    first = service.propose_substitution(
        admin, live_match.match_id, _sub(seeded.home_club, seeded.home_players[4], seeded.home_players[0])
    )
    second = service.propose_substitution(
        admin,
        live_match.match_id,
        _sub(seeded.away_club, seeded.away_players[5], seeded.away_players[1], period=2, reason="injury"),
    )

    everything = service.list_substitutions(live_match.match_id)
    assert [s.substitution_id for s in everything] == [second.substitution_id, first.substitution_id]
    assert [s.substitution_id for s in service.list_substitutions(live_match.match_id, period=2)] == [
        second.substitution_id
    ]
    assert [
        s.substitution_id
        for s in service.list_substitutions(live_match.match_id, club_id=seeded.home_club)
    ] == [first.substitution_id]
    assert [
        s.substitution_id
        for s in service.list_substitutions(live_match.match_id, player_id=seeded.away_players[1])
    ] == [second.substitution_id]
    assert second.reason == "injury"


def test_lineup_without_roster_is_not_found(service, new_match) -> None:
    match = new_match()

    with pytest.raises(NotFoundError, match="No roster"):
        service.get_active_lineup(match.match_id)


def test_lineup_includes_player_details(service, live_match, seeded) -> None:
    lineup = service.get_active_lineup(live_match.match_id)

    captain = lineup.home.active[0]
    assert captain.player_id == seeded.home_players[0]
    assert captain.is_captain
    assert captain.jersey_number == 1
    assert lineup.home.club_id == seeded.home_club
    assert lineup.away.club_id == seeded.away_club


def test_substitution_rejects_player_from_other_sub_team(service, admin, derby, seeded) -> None:
    match_id = derby.match.match_id
    service.replace_roster(
        admin,
        match_id,
        [
            RosterEntryInput(
                club_id=seeded.home_club, team_id=seeded.home_team, player_id=player_id, is_starting=index < 2
            )
            for index, player_id in enumerate(derby.first_team_players)
        ]
        + [
            RosterEntryInput(club_id=seeded.home_club, team_id=seeded.second_home_team, player_id=player_id)
            for player_id in derby.second_team_players
        ],
    )
    service.start_match(admin, match_id)

    with pytest.raises(ValidationError, match="does not belong to the specified team"):
        service.propose_substitution(
            admin,
            match_id,
            _sub(
                seeded.home_club,
                derby.second_team_players[0],
                derby.first_team_players[0],
                team_id=seeded.home_team,
            ),
        )

    accepted = service.propose_substitution(
        admin,
        match_id,
        _sub(seeded.home_club, derby.first_team_players[2], derby.first_team_players[0], team_id=seeded.home_team),
    )
    assert accepted.side == "home"
