from __future__ import annotations

from .database import Database, MatchLocks, to_utc_iso, transaction, utc_timestamp
from .schema import CREATE_INDEX_STATEMENTS, CREATE_TABLE_STATEMENTS

__all__ = [
    "CREATE_INDEX_STATEMENTS",
    "CREATE_TABLE_STATEMENTS",
    "Database",
    "MatchLocks",
    "to_utc_iso",
    "transaction",
    "utc_timestamp",
]
