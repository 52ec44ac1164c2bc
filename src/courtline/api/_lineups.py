"""Read model for the current on-court lineup of a match."""

from __future__ import annotations

import sqlite3
from typing import Dict

from courtline.api._queries import fetch_match, fetch_roster_slots, fetch_substitution_log
from courtline.api._row_utils import int_to_bool
from courtline.api.models import LineupPlayer, LineupResponse, SideLineup
from courtline.engine.lineup import SIDES, derive_lineup
from courtline.errors import NotFoundError


def _roster_players(conn: sqlite3.Connection, match_id: int) -> Dict[int, LineupPlayer]:
    rows = conn.execute(
        """
        SELECT
            r.player_id,
            r.club_id,
            r.is_captain,
            r.starting_position,
            p.first_name,
            p.last_name,
            p.jersey_number
        FROM match_rosters r
        JOIN players p ON p.player_id = r.player_id
        WHERE r.match_id = ?
        """,
        (match_id,),
    ).fetchall()
    players: Dict[int, LineupPlayer] = {}
    for row in rows:
        values = dict(row)
        values["is_captain"] = int_to_bool(values.get("is_captain"), default=False)
        players[int(row["player_id"])] = LineupPlayer.model_validate(values)
    return players


def get_active_lineup(conn: sqlite3.Connection, match_id: int) -> LineupResponse:
    match = fetch_match(conn, match_id)
    roster = fetch_roster_slots(conn, match_id)
    if not roster:
        raise NotFoundError("No roster found for this match", details={"match_id": match_id})

    partitions = derive_lineup(roster, fetch_substitution_log(conn, match_id))
    players = _roster_players(conn, match_id)

    sides = {}
    for side in SIDES:
        split = partitions[side]
        sides[side] = SideLineup(
            club_id=match[f"{side}_club_id"],
            team_id=match.get(f"{side}_team_id"),
            active=[players[player_id] for player_id in split.active],
            bench=[players[player_id] for player_id in split.bench],
        )

    return LineupResponse(match_id=match_id, home=sides["home"], away=sides["away"])


__all__ = ["get_active_lineup"]
