"""Score reconciler: keep the cached match score in line with the shot ledger."""

from __future__ import annotations

import logging
import sqlite3

from courtline.api._queries import fetch_match
from courtline.api.models import MatchRecord
from courtline.engine.lineup import SIDES
from courtline.engine.scoring import tally_goals
from courtline.errors import ValidationError
from courtline.store.database import utc_timestamp

logger = logging.getLogger(__name__)

_SCORE_COLUMNS = {"home": "home_score", "away": "away_score"}


def apply_score_delta(conn: sqlite3.Connection, match_id: int, side: str, delta: int) -> None:
    """Atomically add ``delta`` to one side's score, never going below zero."""

    if delta == 0:
        return
    column = _SCORE_COLUMNS.get(side)
    if column is None:
        raise ValidationError(f"Unknown side: {side!r}")
    conn.execute(
        f"UPDATE matches SET {column} = MAX(0, {column} + ?), updated_at = ? WHERE match_id = ?",
        (delta, utc_timestamp(), match_id),
    )


def rebuild_score(conn: sqlite3.Connection, match_id: int) -> MatchRecord:
    """Recompute both counters from the goal shots on record."""

    match = fetch_match(conn, match_id)
    rows = conn.execute(
        "SELECT side, result FROM shots WHERE match_id = ?", (match_id,)
    ).fetchall()
    home, away = tally_goals(dict(row) for row in rows)

    recomputed = dict(zip(SIDES, (home, away)))
    for side in SIDES:
        stored = match[_SCORE_COLUMNS[side]]
        if stored != recomputed[side]:
            logger.warning(
                "score drift on match %s (%s): stored %s, ledger %s",
                match_id,
                side,
                stored,
                recomputed[side],
            )

    conn.execute(
        "UPDATE matches SET home_score = ?, away_score = ?, updated_at = ? WHERE match_id = ?",
        (home, away, utc_timestamp(), match_id),
    )
    return MatchRecord.model_validate(fetch_match(conn, match_id))


__all__ = ["apply_score_delta", "rebuild_score"]
