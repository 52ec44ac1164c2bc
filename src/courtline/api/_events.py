"""Game event recorder: fouls, faults, timeouts and other audit entries.

Game events never touch the score or the lineup.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from courtline.api._queries import fetch_club_player, fetch_match, resolve_side, side_team_id
from courtline.api._row_utils import decode_details, encode_details
from courtline.api.models import FAULT_REASONS, GameEventCreate, GameEventRecord, GameEventUpdate
from courtline.engine.lifecycle import ensure_in_progress
from courtline.errors import NotFoundError, ValidationError
from courtline.store.database import utc_timestamp

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = ("event_type", "player_id", "period", "time_remaining", "details")


def _to_record(row: sqlite3.Row | Dict[str, Any]) -> GameEventRecord:
    values = dict(row)
    values["details"] = decode_details(values.get("details"))
    return GameEventRecord.model_validate(values)


def fetch_event(conn: sqlite3.Connection, match_id: int, event_id: int) -> Dict[str, Any]:
    row = conn.execute(
        "SELECT * FROM game_events WHERE event_id = ? AND match_id = ?", (event_id, match_id)
    ).fetchone()
    if row is None:
        raise NotFoundError("Event not found", details={"event_id": event_id, "match_id": match_id})
    return dict(row)


def _check_fault_reason(event_type: str, details: Optional[Dict[str, Any]]) -> None:
    if not event_type.startswith("fault_") or not details:
        return
    reason = details.get("reason")
    if reason is not None and reason not in FAULT_REASONS:
        raise ValidationError(
            "Invalid fault reason",
            details={"provided_reason": reason, "valid_reasons": sorted(FAULT_REASONS)},
        )


def record_game_event(
    conn: sqlite3.Connection, match_id: int, payload: GameEventCreate
) -> GameEventRecord:
    match = fetch_match(conn, match_id)
    ensure_in_progress(match["status"], "record events")
    side = resolve_side(match, payload.club_id, payload.team_id)
    if payload.player_id is not None:
        fetch_club_player(conn, payload.player_id, payload.club_id, side_team_id(match, side))
    _check_fault_reason(payload.event_type, payload.details)

    cursor = conn.execute(
        """
        INSERT INTO game_events (
            match_id, side, club_id, event_type, player_id,
            period, time_remaining, details, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            match_id,
            side,
            payload.club_id,
            payload.event_type,
            payload.player_id,
            payload.period,
            payload.time_remaining,
            encode_details(payload.details),
            utc_timestamp(),
        ),
    )
    event_id = int(cursor.lastrowid)
    logger.info("match %s (%s): %s event %s recorded", match_id, side, payload.event_type, event_id)
    return _to_record(fetch_event(conn, match_id, event_id))


def update_game_event(
    conn: sqlite3.Connection, match_id: int, event_id: int, update: GameEventUpdate
) -> GameEventRecord:
    """Correct a recorded event; the merged result is validated as a whole."""

    match = fetch_match(conn, match_id)
    event = fetch_event(conn, match_id, event_id)
    changes = update.changes()
    if not changes:
        raise ValidationError("No fields to update")

    if changes.get("player_id") is not None:
        fetch_club_player(
            conn, changes["player_id"], event["club_id"], side_team_id(match, event["side"])
        )
    event_type = changes.get("event_type", event["event_type"])
    details = changes["details"] if "details" in changes else decode_details(event["details"])
    _check_fault_reason(event_type, details)

    if "details" in changes:
        changes["details"] = encode_details(changes["details"])
    columns = [column for column in _UPDATABLE_COLUMNS if column in changes]
    conn.execute(
        f"UPDATE game_events SET {', '.join(f'{column} = ?' for column in columns)} WHERE event_id = ?",
        [changes[column] for column in columns] + [event_id],
    )
    logger.info("match %s: event %s corrected (%s)", match_id, event_id, ", ".join(columns))
    return _to_record(fetch_event(conn, match_id, event_id))


def delete_game_event(conn: sqlite3.Connection, match_id: int, event_id: int) -> GameEventRecord:
    fetch_match(conn, match_id)
    event = fetch_event(conn, match_id, event_id)
    conn.execute("DELETE FROM game_events WHERE event_id = ?", (event_id,))
    return _to_record(event)


def list_game_events(
    conn: sqlite3.Connection,
    match_id: int,
    *,
    event_type: Optional[str] = None,
    club_id: Optional[int] = None,
    player_id: Optional[int] = None,
    period: Optional[int] = None,
) -> List[GameEventRecord]:
    fetch_match(conn, match_id)
    query = "SELECT * FROM game_events WHERE match_id = ?"
    params: List[Any] = [match_id]
    if event_type is not None:
        query += " AND event_type = ?"
        params.append(event_type)
    if club_id is not None:
        query += " AND club_id = ?"
        params.append(club_id)
    if player_id is not None:
        query += " AND player_id = ?"
        params.append(player_id)
    if period is not None:
        query += " AND period = ?"
        params.append(period)
    query += " ORDER BY created_at DESC, event_id DESC"
    return [_to_record(row) for row in conn.execute(query, params).fetchall()]


__all__ = [
    "delete_game_event",
    "fetch_event",
    "list_game_events",
    "record_game_event",
    "update_game_event",
]
