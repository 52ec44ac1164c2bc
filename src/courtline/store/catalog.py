"""Read/write helpers for the club, team and player catalog.

The catalog is owned by an external CRUD service; the engine only reads it.
The insert helpers exist for seeding scripts and tests.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Optional


def add_club(conn: sqlite3.Connection, name: str) -> int:
    cursor = conn.execute("INSERT INTO clubs (name) VALUES (?)", (name,))
    return int(cursor.lastrowid)


def add_team(conn: sqlite3.Connection, club_id: int, name: str) -> int:
    cursor = conn.execute(
        "INSERT INTO teams (club_id, name) VALUES (?, ?)", (club_id, name)
    )
    return int(cursor.lastrowid)


def add_player(
    conn: sqlite3.Connection,
    club_id: int,
    first_name: str,
    last_name: str,
    *,
    jersey_number: Optional[int] = None,
    team_id: Optional[int] = None,
) -> int:
    cursor = conn.execute(
        """
        INSERT INTO players (club_id, team_id, first_name, last_name, jersey_number)
        VALUES (?, ?, ?, ?, ?)
        """,
        (club_id, team_id, first_name, last_name, jersey_number),
    )
    return int(cursor.lastrowid)


def get_club(conn: sqlite3.Connection, club_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute("SELECT * FROM clubs WHERE club_id = ?", (club_id,)).fetchone()
    return dict(row) if row is not None else None


def get_team(conn: sqlite3.Connection, team_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute("SELECT * FROM teams WHERE team_id = ?", (team_id,)).fetchone()
    return dict(row) if row is not None else None


def get_player(conn: sqlite3.Connection, player_id: int) -> Optional[Dict[str, Any]]:
    row = conn.execute(
        "SELECT * FROM players WHERE player_id = ?", (player_id,)
    ).fetchone()
    return dict(row) if row is not None else None


def player_label(player: Dict[str, Any]) -> str:
    """Operator-facing label, e.g. ``Anna de Vries #7``."""

    name = f"{player.get('first_name', '')} {player.get('last_name', '')}".strip()
    number = player.get("jersey_number")
    return f"{name} #{number}" if number is not None else name


__all__ = [
    "add_club",
    "add_player",
    "add_team",
    "get_club",
    "get_player",
    "get_team",
    "player_label",
]
