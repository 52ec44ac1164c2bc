from __future__ import annotations


CREATE_TABLE_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS clubs (
        club_id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS teams (
        team_id INTEGER PRIMARY KEY AUTOINCREMENT,
        club_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        FOREIGN KEY (club_id) REFERENCES clubs(club_id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS players (
        player_id INTEGER PRIMARY KEY AUTOINCREMENT,
        club_id INTEGER NOT NULL,
        team_id INTEGER,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        jersey_number INTEGER,
        FOREIGN KEY (club_id) REFERENCES clubs(club_id) ON DELETE CASCADE,
        FOREIGN KEY (team_id) REFERENCES teams(team_id) ON DELETE SET NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS matches (
        match_id INTEGER PRIMARY KEY AUTOINCREMENT,
        home_club_id INTEGER NOT NULL,
        away_club_id INTEGER NOT NULL,
        home_team_id INTEGER,
        away_team_id INTEGER,
        status TEXT NOT NULL DEFAULT 'scheduled'
            CHECK (status IN ('scheduled', 'to_reschedule', 'in_progress', 'completed', 'cancelled')),
        scheduled_at TEXT NOT NULL,
        home_score INTEGER NOT NULL DEFAULT 0 CHECK (home_score >= 0),
        away_score INTEGER NOT NULL DEFAULT 0 CHECK (away_score >= 0),
        number_of_periods INTEGER NOT NULL DEFAULT 4
            CHECK (number_of_periods BETWEEN 1 AND 10),
        period_duration TEXT NOT NULL DEFAULT '00:10:00',
        home_attacking_side TEXT CHECK (home_attacking_side IN ('left', 'right')),
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (home_club_id) REFERENCES clubs(club_id),
        FOREIGN KEY (away_club_id) REFERENCES clubs(club_id),
        FOREIGN KEY (home_team_id) REFERENCES teams(team_id),
        FOREIGN KEY (away_team_id) REFERENCES teams(team_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS match_rosters (
        roster_id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL,
        side TEXT NOT NULL CHECK (side IN ('home', 'away')),
        club_id INTEGER NOT NULL,
        player_id INTEGER NOT NULL,
        is_starting INTEGER NOT NULL DEFAULT 1,
        is_captain INTEGER NOT NULL DEFAULT 0,
        starting_position TEXT CHECK (starting_position IN ('offense', 'defense')),
        created_at TEXT NOT NULL,
        UNIQUE (match_id, player_id),
        FOREIGN KEY (match_id) REFERENCES matches(match_id) ON DELETE CASCADE,
        FOREIGN KEY (club_id) REFERENCES clubs(club_id),
        FOREIGN KEY (player_id) REFERENCES players(player_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS substitutions (
        substitution_id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL,
        side TEXT NOT NULL CHECK (side IN ('home', 'away')),
        club_id INTEGER NOT NULL,
        player_in_id INTEGER NOT NULL,
        player_out_id INTEGER NOT NULL,
        period INTEGER NOT NULL CHECK (period >= 1),
        time_remaining TEXT,
        reason TEXT NOT NULL DEFAULT 'tactical'
            CHECK (reason IN ('tactical', 'injury', 'fatigue', 'disciplinary')),
        created_at TEXT NOT NULL,
        CHECK (player_in_id <> player_out_id),
        FOREIGN KEY (match_id) REFERENCES matches(match_id) ON DELETE CASCADE,
        FOREIGN KEY (club_id) REFERENCES clubs(club_id),
        FOREIGN KEY (player_in_id) REFERENCES players(player_id),
        FOREIGN KEY (player_out_id) REFERENCES players(player_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS shots (
        shot_id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL,
        side TEXT NOT NULL CHECK (side IN ('home', 'away')),
        club_id INTEGER NOT NULL,
        player_id INTEGER NOT NULL,
        x_coord REAL NOT NULL,
        y_coord REAL NOT NULL,
        result TEXT NOT NULL CHECK (result IN ('goal', 'miss', 'blocked')),
        period INTEGER NOT NULL CHECK (period >= 1),
        time_remaining TEXT,
        shot_type TEXT,
        distance REAL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(match_id) ON DELETE CASCADE,
        FOREIGN KEY (club_id) REFERENCES clubs(club_id),
        FOREIGN KEY (player_id) REFERENCES players(player_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS game_events (
        event_id INTEGER PRIMARY KEY AUTOINCREMENT,
        match_id INTEGER NOT NULL,
        side TEXT NOT NULL CHECK (side IN ('home', 'away')),
        club_id INTEGER NOT NULL,
        event_type TEXT NOT NULL,
        player_id INTEGER,
        period INTEGER NOT NULL CHECK (period >= 1),
        time_remaining TEXT,
        details TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(match_id) ON DELETE CASCADE,
        FOREIGN KEY (club_id) REFERENCES clubs(club_id),
        FOREIGN KEY (player_id) REFERENCES players(player_id)
    );
    """,
)


CREATE_INDEX_STATEMENTS = (
    """
    CREATE INDEX IF NOT EXISTS idx_matches_status ON matches(status);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_rosters_match ON match_rosters(match_id, side);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_substitutions_match_order
        ON substitutions(match_id, created_at, substitution_id);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_shots_match ON shots(match_id, side);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_game_events_match ON game_events(match_id);
    """,
)


__all__ = [
    "CREATE_INDEX_STATEMENTS",
    "CREATE_TABLE_STATEMENTS",
]
