"""Match lifecycle controller: scheduling, status transitions and settings."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from courtline.api._queries import MATCH_SELECT, fetch_match
from courtline.api.models import MatchCreate, MatchRecord, MatchUpdate
from courtline.engine.lifecycle import (
    MatchStatus,
    Transition,
    TransitionPlan,
    coerce_status,
    ensure_not_terminal,
    plan_transition,
)
from courtline.errors import NotFoundError, ValidationError
from courtline.store import catalog
from courtline.store.database import to_utc_iso, utc_timestamp

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = ("scheduled_at", "number_of_periods", "period_duration", "home_attacking_side")


def _check_team(conn: sqlite3.Connection, team_id: Optional[int], club_id: int, side: str) -> None:
    if team_id is None:
        return
    team = catalog.get_team(conn, team_id)
    if team is None:
        raise NotFoundError(f"{side.capitalize()} team not found", details={"team_id": team_id})
    if team["club_id"] != club_id:
        raise ValidationError(
            f"{side.capitalize()} team does not belong to the {side} club",
            details={"team_id": team_id, "club_id": club_id},
        )


def create_match(conn: sqlite3.Connection, payload: MatchCreate) -> MatchRecord:
    for club_id in {payload.home_club_id, payload.away_club_id}:
        if catalog.get_club(conn, club_id) is None:
            raise NotFoundError("One or both clubs not found", details={"club_id": club_id})
    _check_team(conn, payload.home_team_id, payload.home_club_id, "home")
    _check_team(conn, payload.away_team_id, payload.away_club_id, "away")

    now = utc_timestamp()
    cursor = conn.execute(
        """
        INSERT INTO matches (
            home_club_id, away_club_id, home_team_id, away_team_id,
            status, scheduled_at, home_score, away_score,
            number_of_periods, period_duration, home_attacking_side,
            created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, 0, 0, ?, ?, ?, ?, ?)
        """,
        (
            payload.home_club_id,
            payload.away_club_id,
            payload.home_team_id,
            payload.away_team_id,
            MatchStatus.SCHEDULED.value,
            to_utc_iso(payload.scheduled_at),
            payload.number_of_periods,
            payload.period_duration,
            payload.home_attacking_side,
            now,
            now,
        ),
    )
    return get_match(conn, int(cursor.lastrowid))


def get_match(conn: sqlite3.Connection, match_id: int) -> MatchRecord:
    return MatchRecord.model_validate(fetch_match(conn, match_id))


def list_matches(
    conn: sqlite3.Connection,
    *,
    status: Optional[str] = None,
    club_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> List[MatchRecord]:
    query = MATCH_SELECT + " WHERE 1 = 1"
    params: List[Any] = []

    if status is not None:
        query += " AND m.status = ?"
        params.append(coerce_status(status).value)
    if club_id is not None:
        query += " AND (m.home_club_id = ? OR m.away_club_id = ?)"
        params.extend([club_id, club_id])
    if date_from is not None:
        query += " AND m.scheduled_at >= ?"
        params.append(to_utc_iso(date_from))
    if date_to is not None:
        query += " AND m.scheduled_at <= ?"
        params.append(to_utc_iso(date_to))

    query += " ORDER BY m.scheduled_at DESC, m.match_id DESC"
    rows = conn.execute(query, params).fetchall()
    return [MatchRecord.model_validate(dict(row)) for row in rows]


def update_match(conn: sqlite3.Connection, match_id: int, update: MatchUpdate) -> MatchRecord:
    match = fetch_match(conn, match_id)
    changes = update.changes()
    if not changes:
        raise ValidationError("No valid fields to update")
    ensure_not_terminal(match["status"], "update")
    if "scheduled_at" in changes:
        changes["scheduled_at"] = to_utc_iso(changes["scheduled_at"])

    assignments = [f"{column} = ?" for column in _UPDATABLE_COLUMNS if column in changes]
    params: List[Any] = [changes[column] for column in _UPDATABLE_COLUMNS if column in changes]
    assignments.append("updated_at = ?")
    params.extend([utc_timestamp(), match_id])

    conn.execute(f"UPDATE matches SET {', '.join(assignments)} WHERE match_id = ?", params)
    return get_match(conn, match_id)


def transition_match(
    conn: sqlite3.Connection,
    match_id: int,
    operation: Transition | str,
    *,
    scheduled_at: Optional[datetime] = None,
) -> tuple[MatchRecord, TransitionPlan]:
    match = fetch_match(conn, match_id)
    plan = plan_transition(
        match["status"],
        operation,
        scheduled_at=to_utc_iso(scheduled_at) if scheduled_at is not None else None,
    )

    if plan.scheduled_at is not None:
        conn.execute(
            "UPDATE matches SET status = ?, scheduled_at = ?, updated_at = ? WHERE match_id = ?",
            (plan.target.value, plan.scheduled_at, utc_timestamp(), match_id),
        )
    else:
        conn.execute(
            "UPDATE matches SET status = ?, updated_at = ? WHERE match_id = ?",
            (plan.target.value, utc_timestamp(), match_id),
        )

    logger.info(
        "match %s: %s (%s -> %s)", match_id, plan.operation.value, plan.source.value, plan.target.value
    )
    return get_match(conn, match_id), plan


def delete_match(conn: sqlite3.Connection, match_id: int) -> MatchRecord:
    """Administrative delete; rosters, substitutions, shots and events cascade."""

    record = get_match(conn, match_id)
    conn.execute("DELETE FROM matches WHERE match_id = ?", (match_id,))
    logger.info(
        "deleted match %s: %s vs %s (status: %s)",
        match_id,
        record.home_club_name,
        record.away_club_name,
        record.status,
    )
    return record


def participating_clubs(match: Dict[str, Any] | MatchRecord) -> List[int]:
    if isinstance(match, MatchRecord):
        clubs = [match.home_club_id, match.away_club_id]
    else:
        clubs = [match["home_club_id"], match["away_club_id"]]
    return sorted(set(clubs))


__all__ = [
    "create_match",
    "delete_match",
    "get_match",
    "list_matches",
    "participating_clubs",
    "transition_match",
    "update_match",
]
