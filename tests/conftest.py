from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List

import pytest

from courtline.api.interfaces import MatchNotification, Principal
from courtline.api.models import MatchCreate, MatchRecord, RosterEntryInput
from courtline.api.notifications import InProcessBroadcaster
from courtline.api.service import LiveMatchService
from courtline.store import catalog
from courtline.store.database import Database, transaction


@dataclass
class Catalog:
    home_club: int
    away_club: int
    home_players: List[int]
    away_players: List[int]
    home_team: int
    second_home_team: int


@pytest.fixture()
def database(tmp_path) -> Database:
    db = Database(tmp_path / "courtline.sqlite", busy_timeout_ms=5000)
    db.initialize()
    return db


@pytest.fixture()
def seeded(database: Database) -> Catalog:
    with database.connection() as conn, transaction(conn):
        home = catalog.add_club(conn, "KV Dalto")
        away = catalog.add_club(conn, "PKC Papendrecht")
        home_team = catalog.add_team(conn, home, "Dalto 1")
        second_home_team = catalog.add_team(conn, home, "Dalto 2")
        home_players = [
            catalog.add_player(conn, home, "Anna", f"Home{number}", jersey_number=number)
            for number in range(1, 7)
        ]
        away_players = [
            catalog.add_player(conn, away, "Bram", f"Away{number}", jersey_number=number)
            for number in range(1, 7)
        ]
    return Catalog(
        home_club=home,
        away_club=away,
        home_players=home_players,
        away_players=away_players,
        home_team=home_team,
        second_home_team=second_home_team,
    )


@pytest.fixture()
def notifications() -> List[MatchNotification]:
    return []


@pytest.fixture()
def service(database: Database, notifications: List[MatchNotification]) -> LiveMatchService:
    broadcaster = InProcessBroadcaster()
    broadcaster.subscribe(notifications.append)
    return LiveMatchService(database, notifier=broadcaster)


@pytest.fixture()
def admin() -> Principal:
    return Principal(principal_id="admin-1", role="admin")


@pytest.fixture()
def new_match(service: LiveMatchService, admin: Principal, seeded: Catalog) -> Callable[..., MatchRecord]:
    def _create(**overrides) -> MatchRecord:
        values: Dict[str, object] = {
            "home_club_id": seeded.home_club,
            "away_club_id": seeded.away_club,
            "scheduled_at": datetime(2026, 3, 14, 14, 30, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return service.create_match(admin, MatchCreate(**values))

    return _create


@pytest.fixture()
def standard_roster(seeded: Catalog) -> List[RosterEntryInput]:
    """Four starters and two substitutes per side; first player captains."""

    entries: List[RosterEntryInput] = []
    for club_id, players in (
        (seeded.home_club, seeded.home_players),
        (seeded.away_club, seeded.away_players),
    ):
        for index, player_id in enumerate(players):
            entries.append(
                RosterEntryInput(
                    club_id=club_id,
                    player_id=player_id,
                    is_starting=index < 4,
                    is_captain=index == 0,
                )
            )
    return entries


@pytest.fixture()
def live_match(
    service: LiveMatchService,
    admin: Principal,
    new_match: Callable[..., MatchRecord],
    standard_roster: List[RosterEntryInput],
) -> MatchRecord:
    match = new_match()
    service.replace_roster(admin, match.match_id, standard_roster)
    return service.transition_match(admin, match.match_id, "start")


@dataclass
class Derby:
    match: MatchRecord
    first_team_players: List[int]
    second_team_players: List[int]


@pytest.fixture()
def derby(
    database: Database,
    service: LiveMatchService,
    admin: Principal,
    new_match: Callable[..., MatchRecord],
    seeded: Catalog,
) -> Derby:
    """Dalto 1 against Dalto 2, with three players registered per sub-team."""

    with database.connection() as conn, transaction(conn):
        first = [
            catalog.add_player(conn, seeded.home_club, "Eva", f"First{n}", jersey_number=n, team_id=seeded.home_team)
            for n in range(10, 13)
        ]
        second = [
            catalog.add_player(
                conn, seeded.home_club, "Iris", f"Second{n}", jersey_number=n, team_id=seeded.second_home_team
            )
            for n in range(20, 23)
        ]
    match = new_match(
        away_club_id=seeded.home_club,
        home_team_id=seeded.home_team,
        away_team_id=seeded.second_home_team,
    )
    return Derby(match=match, first_team_players=first, second_team_players=second)
