"""Roster manager: per-match roster entries and the captaincy invariant."""

from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from courtline.api._queries import (
    fetch_club_player,
    fetch_match,
    has_substitutions,
    resolve_side,
    side_team_id,
)
from courtline.api._row_utils import int_to_bool
from courtline.api.models import RosterEntryInput, RosterEntryRecord, RosterEntryUpdate
from courtline.engine.lifecycle import MatchStatus, ensure_not_terminal
from courtline.errors import NotFoundError, StateConflictError, ValidationError
from courtline.store.database import utc_timestamp

logger = logging.getLogger(__name__)

_ROSTER_SELECT = """
    SELECT
        r.roster_id,
        r.match_id,
        r.side,
        r.club_id,
        r.player_id,
        r.is_starting,
        r.is_captain,
        r.starting_position,
        p.first_name,
        p.last_name,
        p.jersey_number
    FROM match_rosters r
    JOIN players p ON p.player_id = r.player_id
"""


def _to_record(row: sqlite3.Row) -> RosterEntryRecord:
    values = dict(row)
    values["is_starting"] = int_to_bool(values.get("is_starting"), default=True)
    values["is_captain"] = int_to_bool(values.get("is_captain"), default=False)
    return RosterEntryRecord.model_validate(values)


def _guard_lineup_changes(conn: sqlite3.Connection, match: Dict[str, Any], action: str) -> None:
    """Starting flags and membership are frozen once the substitution log is non-empty."""

    status = ensure_not_terminal(match["status"], "modify the roster of")
    if status is MatchStatus.IN_PROGRESS and has_substitutions(conn, match["match_id"]):
        raise StateConflictError(
            f"Cannot {action} after substitutions have been recorded",
            details={"current_status": status.value},
        )


def fetch_entry(conn: sqlite3.Connection, match_id: int, roster_id: int) -> Dict[str, Any]:
    row = conn.execute(
        "SELECT * FROM match_rosters WHERE roster_id = ? AND match_id = ?",
        (roster_id, match_id),
    ).fetchone()
    if row is None:
        raise NotFoundError(
            "Roster entry not found", details={"roster_id": roster_id, "match_id": match_id}
        )
    return dict(row)


def list_roster(
    conn: sqlite3.Connection, match_id: int, *, club_id: Optional[int] = None
) -> List[RosterEntryRecord]:
    fetch_match(conn, match_id)
    query = _ROSTER_SELECT + " WHERE r.match_id = ?"
    params: List[Any] = [match_id]
    if club_id is not None:
        query += " AND r.club_id = ?"
        params.append(club_id)
    query += " ORDER BY r.side, r.is_starting DESC, p.jersey_number, r.roster_id"
    return [_to_record(row) for row in conn.execute(query, params).fetchall()]


def replace_roster(
    conn: sqlite3.Connection, match_id: int, entries: Sequence[RosterEntryInput]
) -> List[RosterEntryRecord]:
    """Swap the full roster of a match for ``entries``.

    Every entry is validated before the existing rows are touched, so a bad
    reference or a second captain on one side leaves the old roster intact.
    """

    match = fetch_match(conn, match_id)
    _guard_lineup_changes(conn, match, "replace the roster")

    resolved: List[Dict[str, Any]] = []
    seen: Counter = Counter()
    for entry in entries:
        side = resolve_side(match, entry.club_id, entry.team_id)
        fetch_club_player(conn, entry.player_id, entry.club_id, side_team_id(match, side))
        seen[entry.player_id] += 1
        if seen[entry.player_id] > 1:
            raise ValidationError(
                "Player appears more than once in the roster",
                details={"player_id": entry.player_id},
            )
        resolved.append({"side": side, "entry": entry})

    captains = Counter(item["side"] for item in resolved if item["entry"].is_captain)
    for side, count in captains.items():
        if count > 1:
            raise StateConflictError(
                "Only one captain allowed per side",
                details={"side": side, "captains": count},
            )

    conn.execute("DELETE FROM match_rosters WHERE match_id = ?", (match_id,))
    now = utc_timestamp()
    for item in resolved:
        entry: RosterEntryInput = item["entry"]
        conn.execute(
            """
            INSERT INTO match_rosters (
                match_id, side, club_id, player_id,
                is_starting, is_captain, starting_position, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                match_id,
                item["side"],
                entry.club_id,
                entry.player_id,
                int(entry.is_starting),
                int(entry.is_captain),
                entry.starting_position,
                now,
            ),
        )

    logger.info("replaced roster of match %s with %d entries", match_id, len(resolved))
    return list_roster(conn, match_id)


def update_roster_entry(
    conn: sqlite3.Connection, match_id: int, roster_id: int, update: RosterEntryUpdate
) -> RosterEntryRecord:
    match = fetch_match(conn, match_id)
    entry = fetch_entry(conn, match_id, roster_id)
    if update.is_captain is None and update.is_starting is None:
        raise ValidationError("No fields to update")

    if update.is_starting is not None and bool(update.is_starting) != bool(entry["is_starting"]):
        _guard_lineup_changes(conn, match, "change starting players")
    else:
        ensure_not_terminal(match["status"], "modify the roster of")

    if update.is_captain:
        conn.execute(
            """
            UPDATE match_rosters
               SET is_captain = 0
             WHERE match_id = ? AND side = ? AND roster_id <> ? AND is_captain = 1
            """,
            (match_id, entry["side"], roster_id),
        )

    assignments: List[str] = []
    params: List[Any] = []
    if update.is_captain is not None:
        assignments.append("is_captain = ?")
        params.append(int(update.is_captain))
    if update.is_starting is not None:
        assignments.append("is_starting = ?")
        params.append(int(update.is_starting))
    params.append(roster_id)
    conn.execute(
        f"UPDATE match_rosters SET {', '.join(assignments)} WHERE roster_id = ?", params
    )

    row = conn.execute(_ROSTER_SELECT + " WHERE r.roster_id = ?", (roster_id,)).fetchone()
    return _to_record(row)


def remove_roster_entry(
    conn: sqlite3.Connection, match_id: int, roster_id: int
) -> RosterEntryRecord:
    match = fetch_match(conn, match_id)
    fetch_entry(conn, match_id, roster_id)
    _guard_lineup_changes(conn, match, "remove roster entries")

    row = conn.execute(_ROSTER_SELECT + " WHERE r.roster_id = ?", (roster_id,)).fetchone()
    record = _to_record(row)
    conn.execute("DELETE FROM match_rosters WHERE roster_id = ?", (roster_id,))
    return record


__all__ = [
    "fetch_entry",
    "list_roster",
    "remove_roster_entry",
    "replace_roster",
    "update_roster_entry",
]
