"""Shared lookups used by the roster, substitution and event modules."""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from courtline.engine.lineup import RosterSlot, SubstitutionRecord
from courtline.errors import NotFoundError, ValidationError
from courtline.store import catalog

MATCH_SELECT = """
    SELECT
        m.*,
        hc.name AS home_club_name,
        ac.name AS away_club_name
    FROM matches m
    JOIN clubs hc ON hc.club_id = m.home_club_id
    JOIN clubs ac ON ac.club_id = m.away_club_id
"""


def fetch_match(conn: sqlite3.Connection, match_id: int) -> Dict[str, Any]:
    row = conn.execute(MATCH_SELECT + " WHERE m.match_id = ?", (match_id,)).fetchone()
    if row is None:
        raise NotFoundError("Match not found", details={"match_id": match_id})
    return dict(row)


def resolve_side(match: Dict[str, Any], club_id: int, team_id: Optional[int] = None) -> str:
    """Map a club (and optional sub-team) onto ``home`` or ``away``."""

    candidates: List[str] = []
    for side in ("home", "away"):
        if match[f"{side}_club_id"] != club_id:
            continue
        side_team = match.get(f"{side}_team_id")
        if team_id is not None and side_team is not None and side_team != team_id:
            continue
        candidates.append(side)

    if len(candidates) == 1:
        return candidates[0]
    if len(candidates) == 2:
        raise ValidationError(
            "team_id is required when both sides belong to the same club",
            details={"club_id": club_id},
        )
    raise ValidationError(
        "Club is not participating in this match",
        details={
            "match_clubs": {"home": match["home_club_id"], "away": match["away_club_id"]},
            "provided_club": club_id,
        },
    )


def side_team_id(match: Dict[str, Any], side: str) -> Optional[int]:
    return match.get(f"{side}_team_id")


def ensure_player_team(player: Dict[str, Any], team_id: Optional[int]) -> None:
    """Reject a player registered with a different sub-team than the side."""

    player_team = player.get("team_id")
    if team_id is None or player_team is None or player_team == team_id:
        return
    raise ValidationError(
        "Player does not belong to the specified team",
        details={
            "player_id": player["player_id"],
            "player_team": player_team,
            "provided_team": team_id,
        },
    )


def fetch_club_player(
    conn: sqlite3.Connection,
    player_id: int,
    club_id: int,
    team_id: Optional[int] = None,
) -> Dict[str, Any]:
    player = catalog.get_player(conn, player_id)
    if player is None:
        raise NotFoundError("Player not found", details={"player_id": player_id})
    if player["club_id"] != club_id:
        raise ValidationError(
            "Player does not belong to the specified club",
            details={
                "player_id": player_id,
                "player_club": player["club_id"],
                "provided_club": club_id,
            },
        )
    ensure_player_team(player, team_id)
    return player


def fetch_roster_slots(conn: sqlite3.Connection, match_id: int) -> List[RosterSlot]:
    rows = conn.execute(
        """
        SELECT player_id, side, is_starting
          FROM match_rosters
         WHERE match_id = ?
         ORDER BY side, roster_id
        """,
        (match_id,),
    ).fetchall()
    return [
        RosterSlot(
            player_id=int(row["player_id"]),
            side=row["side"],
            is_starting=bool(row["is_starting"]),
        )
        for row in rows
    ]


def fetch_substitution_log(
    conn: sqlite3.Connection, match_id: int, side: Optional[str] = None
) -> List[SubstitutionRecord]:
    """Substitutions in creation order; ties broken by insertion sequence."""

    query = """
        SELECT substitution_id, side, player_in_id, player_out_id
          FROM substitutions
         WHERE match_id = ?
    """
    params: List[Any] = [match_id]
    if side is not None:
        query += " AND side = ?"
        params.append(side)
    query += " ORDER BY created_at, substitution_id"

    rows = conn.execute(query, params).fetchall()
    return [
        SubstitutionRecord(
            player_in_id=int(row["player_in_id"]),
            player_out_id=int(row["player_out_id"]),
            side=row["side"],
            sequence=position,
        )
        for position, row in enumerate(rows)
    ]


def has_substitutions(conn: sqlite3.Connection, match_id: int) -> bool:
    row = conn.execute(
        "SELECT 1 FROM substitutions WHERE match_id = ? LIMIT 1", (match_id,)
    ).fetchone()
    return row is not None


__all__ = [
    "MATCH_SELECT",
    "ensure_player_team",
    "fetch_club_player",
    "fetch_match",
    "fetch_roster_slots",
    "fetch_substitution_log",
    "has_substitutions",
    "resolve_side",
    "side_team_id",
]
