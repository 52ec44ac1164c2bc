#!/usr/bin/env python3
"""Create the courtline SQLite schema and optionally seed a demo catalog."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from courtline.config import Settings
from courtline.logging_config import setup_logging
from courtline.store import catalog
from courtline.store.database import Database, transaction

logger = logging.getLogger(__name__)

DEMO_CLUBS = {
    "KV Dalto": ["Anna de Vries", "Sanne Bakker", "Mila Jansen", "Eva Visser",
                 "Daan Smit", "Lars Mulder", "Tom Bos", "Bram Meijer", "Noor Dekker", "Sem Kok"],
    "PKC Papendrecht": ["Lotte Vos", "Fleur Peters", "Iris Hendriks", "Julia Dijkstra",
                        "Ruben de Boer", "Thijs Brouwer", "Luuk de Graaf", "Jesse van Dam",
                        "Femke Koster", "Niels Prins"],
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    defaults = Settings.from_env()
    parser = argparse.ArgumentParser(description="Initialise the courtline database.")
    parser.add_argument(
        "--db-path",
        type=Path,
        default=Path(defaults.db_path),
        help="SQLite file to create or upgrade (default: COURTLINE_DB_PATH).",
    )
    parser.add_argument(
        "--seed-demo",
        action="store_true",
        help="Insert two demo clubs with ten players each.",
    )
    parser.add_argument("--log-level", default=defaults.log_level)
    return parser.parse_args(argv)


def seed_demo(database: Database) -> int:
    created = 0
    with database.connection() as conn, transaction(conn):
        for club_name, players in DEMO_CLUBS.items():
            if conn.execute("SELECT 1 FROM clubs WHERE name = ?", (club_name,)).fetchone():
                logger.info("club %s already present, skipping", club_name)
                continue
            club_id = catalog.add_club(conn, club_name)
            for number, full_name in enumerate(players, start=1):
                first_name, last_name = full_name.split(" ", 1)
                catalog.add_player(conn, club_id, first_name, last_name, jersey_number=number)
            created += 1
    return created


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    database = Database(args.db_path)
    database.initialize()
    logger.info("schema ready at %s", args.db_path)

    if args.seed_demo:
        created = seed_demo(database)
        logger.info("seeded %d demo clubs", created)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
