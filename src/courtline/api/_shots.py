"""Shot ledger writes; every change is paired with its score delta."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from courtline.api._queries import fetch_club_player, fetch_match, resolve_side, side_team_id
from courtline.api._scores import apply_score_delta
from courtline.api.models import ShotCreate, ShotRecord, ShotUpdate
from courtline.engine.lifecycle import ensure_in_progress
from courtline.engine.scoring import delta_for_create, delta_for_delete, delta_for_update
from courtline.errors import NotFoundError, ValidationError
from courtline.store.database import utc_timestamp

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = ("x_coord", "y_coord", "result", "shot_type", "distance")


def fetch_shot(conn: sqlite3.Connection, match_id: int, shot_id: int) -> Dict[str, Any]:
    row = conn.execute(
        "SELECT * FROM shots WHERE shot_id = ? AND match_id = ?", (shot_id, match_id)
    ).fetchone()
    if row is None:
        raise NotFoundError("Shot not found", details={"shot_id": shot_id, "match_id": match_id})
    return dict(row)


def record_shot(conn: sqlite3.Connection, match_id: int, payload: ShotCreate) -> ShotRecord:
    match = fetch_match(conn, match_id)
    ensure_in_progress(match["status"], "record shots")
    side = resolve_side(match, payload.club_id, payload.team_id)
    fetch_club_player(conn, payload.player_id, payload.club_id, side_team_id(match, side))

    cursor = conn.execute(
        """
        INSERT INTO shots (
            match_id, side, club_id, player_id, x_coord, y_coord, result,
            period, time_remaining, shot_type, distance, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            match_id,
            side,
            payload.club_id,
            payload.player_id,
            payload.x_coord,
            payload.y_coord,
            payload.result,
            payload.period,
            payload.time_remaining,
            payload.shot_type,
            payload.distance,
            utc_timestamp(),
        ),
    )
    apply_score_delta(conn, match_id, side, delta_for_create(payload.result))
    shot_id = int(cursor.lastrowid)
    logger.info("match %s (%s): shot %s recorded (%s)", match_id, side, shot_id, payload.result)
    return ShotRecord.model_validate(fetch_shot(conn, match_id, shot_id))


def update_shot(
    conn: sqlite3.Connection, match_id: int, shot_id: int, update: ShotUpdate
) -> ShotRecord:
    """Correct a shot. A change of result class moves the score by one."""

    fetch_match(conn, match_id)
    shot = fetch_shot(conn, match_id, shot_id)
    changes = update.changes()
    if not changes:
        raise ValidationError("No fields to update")

    columns = [column for column in _UPDATABLE_COLUMNS if column in changes]
    conn.execute(
        f"UPDATE shots SET {', '.join(f'{column} = ?' for column in columns)} WHERE shot_id = ?",
        [changes[column] for column in columns] + [shot_id],
    )
    apply_score_delta(
        conn, match_id, shot["side"], delta_for_update(shot["result"], changes.get("result"))
    )
    return ShotRecord.model_validate(fetch_shot(conn, match_id, shot_id))


def delete_shot(conn: sqlite3.Connection, match_id: int, shot_id: int) -> ShotRecord:
    fetch_match(conn, match_id)
    shot = fetch_shot(conn, match_id, shot_id)

    conn.execute("DELETE FROM shots WHERE shot_id = ?", (shot_id,))
    apply_score_delta(conn, match_id, shot["side"], delta_for_delete(shot["result"]))
    return ShotRecord.model_validate(shot)


def list_shots(
    conn: sqlite3.Connection,
    match_id: int,
    *,
    period: Optional[int] = None,
    club_id: Optional[int] = None,
    player_id: Optional[int] = None,
    result: Optional[str] = None,
) -> List[ShotRecord]:
    fetch_match(conn, match_id)
    query = "SELECT * FROM shots WHERE match_id = ?"
    params: List[Any] = [match_id]
    if period is not None:
        query += " AND period = ?"
        params.append(period)
    if club_id is not None:
        query += " AND club_id = ?"
        params.append(club_id)
    if player_id is not None:
        query += " AND player_id = ?"
        params.append(player_id)
    if result is not None:
        query += " AND result = ?"
        params.append(result)
    query += " ORDER BY created_at, shot_id"
    return [ShotRecord.model_validate(dict(row)) for row in conn.execute(query, params).fetchall()]


__all__ = ["delete_shot", "fetch_shot", "list_shots", "record_shot", "update_shot"]
