"""Substitution validator: accept legal exchanges and allow LIFO undo only."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from courtline.api._queries import (
    ensure_player_team,
    fetch_match,
    fetch_roster_slots,
    fetch_substitution_log,
    resolve_side,
    side_team_id,
)
from courtline.api.models import SubstitutionCreate, SubstitutionEntry
from courtline.engine.lifecycle import ensure_in_progress
from courtline.engine.lineup import is_player_active, substitution_tallies
from courtline.errors import NotFoundError, StateConflictError, ValidationError
from courtline.store import catalog
from courtline.store.database import utc_timestamp

logger = logging.getLogger(__name__)


def fetch_substitution(
    conn: sqlite3.Connection, match_id: int, substitution_id: int
) -> Dict[str, Any]:
    row = conn.execute(
        "SELECT * FROM substitutions WHERE substitution_id = ? AND match_id = ?",
        (substitution_id, match_id),
    ).fetchone()
    if row is None:
        raise NotFoundError(
            "Substitution not found",
            details={"substitution_id": substitution_id, "match_id": match_id},
        )
    return dict(row)


def _latest_substitution_id(conn: sqlite3.Connection, match_id: int) -> Optional[int]:
    row = conn.execute(
        """
        SELECT substitution_id
          FROM substitutions
         WHERE match_id = ?
         ORDER BY created_at DESC, substitution_id DESC
         LIMIT 1
        """,
        (match_id,),
    ).fetchone()
    return int(row["substitution_id"]) if row is not None else None


def propose_substitution(
    conn: sqlite3.Connection, match_id: int, payload: SubstitutionCreate
) -> SubstitutionEntry:
    match = fetch_match(conn, match_id)
    ensure_in_progress(match["status"], "record substitutions")
    side = resolve_side(match, payload.club_id, payload.team_id)

    if payload.player_in_id == payload.player_out_id:
        raise ValidationError(
            "Player in and player out must be different",
            details={"player_id": payload.player_in_id},
        )

    players = {}
    for role, player_id in (("player_in", payload.player_in_id), ("player_out", payload.player_out_id)):
        player = catalog.get_player(conn, player_id)
        if player is None:
            raise NotFoundError(
                "One or both players not found", details={f"{role}_id": player_id}
            )
        players[role] = player

    for role, player in players.items():
        if player["club_id"] != payload.club_id:
            raise ValidationError(
                "Players must belong to the specified club",
                details={f"{role}_id": player["player_id"], "provided_club": payload.club_id},
            )
        ensure_player_team(player, side_team_id(match, side))

    starters = {
        slot.player_id: slot.is_starting
        for slot in fetch_roster_slots(conn, match_id)
        if slot.side == side
    }
    for role, player in players.items():
        if player["player_id"] not in starters:
            raise ValidationError(
                "Player is not on the roster for this match",
                details={f"{role}_id": player["player_id"], "side": side},
            )

    ins, outs = substitution_tallies(fetch_substitution_log(conn, match_id, side))

    player_in = players["player_in"]
    if is_player_active(
        starters[player_in["player_id"]], ins[player_in["player_id"]], outs[player_in["player_id"]]
    ):
        raise StateConflictError(
            f"{catalog.player_label(player_in)} is already on the court",
            details={"player_id": player_in["player_id"]},
        )

    player_out = players["player_out"]
    if not is_player_active(
        starters[player_out["player_id"]], ins[player_out["player_id"]], outs[player_out["player_id"]]
    ):
        raise StateConflictError(
            f"{catalog.player_label(player_out)} is not currently on the court",
            details={"player_id": player_out["player_id"]},
        )

    cursor = conn.execute(
        """
        INSERT INTO substitutions (
            match_id, side, club_id, player_in_id, player_out_id,
            period, time_remaining, reason, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            match_id,
            side,
            payload.club_id,
            payload.player_in_id,
            payload.player_out_id,
            payload.period,
            payload.time_remaining,
            payload.reason,
            utc_timestamp(),
        ),
    )
    logger.info(
        "match %s (%s): %s in, %s out, period %s",
        match_id,
        side,
        catalog.player_label(player_in),
        catalog.player_label(player_out),
        payload.period,
    )
    return SubstitutionEntry.model_validate(
        fetch_substitution(conn, match_id, int(cursor.lastrowid))
    )


def retract_substitution(
    conn: sqlite3.Connection, match_id: int, substitution_id: int
) -> SubstitutionEntry:
    """Delete a substitution, which must be the most recent one of the match."""

    fetch_match(conn, match_id)
    record = fetch_substitution(conn, match_id, substitution_id)
    latest = _latest_substitution_id(conn, match_id)
    if latest != substitution_id:
        raise StateConflictError(
            "Can only delete the most recent substitution",
            details={"substitution_id": substitution_id, "latest_substitution_id": latest},
        )
    conn.execute("DELETE FROM substitutions WHERE substitution_id = ?", (substitution_id,))
    return SubstitutionEntry.model_validate(record)


def list_substitutions(
    conn: sqlite3.Connection,
    match_id: int,
    *,
    club_id: Optional[int] = None,
    period: Optional[int] = None,
    player_id: Optional[int] = None,
) -> List[SubstitutionEntry]:
    fetch_match(conn, match_id)
    query = "SELECT * FROM substitutions WHERE match_id = ?"
    params: List[Any] = [match_id]
    if club_id is not None:
        query += " AND club_id = ?"
        params.append(club_id)
    if period is not None:
        query += " AND period = ?"
        params.append(period)
    if player_id is not None:
        query += " AND (player_in_id = ? OR player_out_id = ?)"
        params.extend([player_id, player_id])
    query += " ORDER BY created_at DESC, substitution_id DESC"
    rows = conn.execute(query, params).fetchall()
    return [SubstitutionEntry.model_validate(dict(row)) for row in rows]


__all__ = ["fetch_substitution", "list_substitutions", "propose_substitution", "retract_substitution"]
