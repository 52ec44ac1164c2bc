"""SQLite connection manager, transactions and per-match write locks.

Connections are opened per operation (FastAPI runs sync handlers on a thread
pool) in autocommit mode; multi-statement writes are wrapped explicitly in
``transaction`` which issues ``BEGIN IMMEDIATE`` so the writer lock is taken
before the first read of the check-then-write sequence.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import weakref
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from courtline.store.schema import CREATE_INDEX_STATEMENTS, CREATE_TABLE_STATEMENTS

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Fixed-width ISO timestamp, so lexical order equals creation order."""

    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def to_utc_iso(value: datetime) -> str:
    """Normalise a schedule time to a UTC ISO string at second precision.

    Naive datetimes are taken to be UTC already. Stored schedule values share
    one offset and one width, so text comparison in SQL orders them by instant.
    """

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


class Database:
    """SQLite connection factory with schema bootstrap.

    Usage::

        db = Database("data/courtline.sqlite")
        with db.connection() as conn:
            with transaction(conn):
                conn.execute(...)
    """

    def __init__(self, db_path: str | Path, *, busy_timeout_ms: int = 30000) -> None:
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """Open a new connection and configure PRAGMAs.

        Foreign keys are enforced so cascades and reference errors come from
        the store itself.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(
            str(self.db_path),
            isolation_level=None,
            check_same_thread=False,
            timeout=self.busy_timeout_ms / 1000,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
        self._ensure_schema(conn)
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.connect()
        try:
            yield conn
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the schema now instead of on first use."""
        with self.connection():
            pass

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if self._schema_ready:
                return
            for statement in (*CREATE_TABLE_STATEMENTS, *CREATE_INDEX_STATEMENTS):
                conn.execute(statement)
            self._schema_ready = True
            logger.debug("schema ready at %s", self.db_path)


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block atomically: commit on success, roll back on any exception."""

    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


class MatchLocks:
    """Exclusive in-process lock per match id.

    Serializes every mutating operation on one match so two requests cannot
    both validate against the same lineup or score before either writes.
    Entries live only while some caller holds or waits on the lock, so ids of
    finished or deleted matches do not accumulate.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, match_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[match_id] = lock
            return lock

    @contextmanager
    def hold(self, match_id: int) -> Iterator[None]:
        lock = self._lock_for(match_id)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["Database", "MatchLocks", "to_utc_iso", "transaction", "utc_timestamp"]
