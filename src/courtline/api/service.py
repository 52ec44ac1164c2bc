"""Facade for the live-match state engine.

Each mutation runs as one unit: authorization, per-match lock, ``BEGIN
IMMEDIATE`` transaction, domain checks, writes, commit and finally a
best-effort notification.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel

from courtline.api import _events, _lineups, _matches, _rosters, _scores, _shots, _substitutions
from courtline.api._queries import fetch_match
from courtline.api.interfaces import (
    ADMIN_ROLE,
    AccessPolicy,
    MatchNotification,
    Notifier,
    Principal,
    RoleAccessPolicy,
)
from courtline.api.models import (
    GameEventCreate,
    GameEventRecord,
    GameEventUpdate,
    LineupResponse,
    MatchCreate,
    MatchRecord,
    MatchUpdate,
    RosterEntryInput,
    RosterEntryRecord,
    RosterEntryUpdate,
    ShotCreate,
    ShotRecord,
    ShotUpdate,
    SubstitutionCreate,
    SubstitutionEntry,
)
from courtline.api.notifications import InProcessBroadcaster
from courtline.engine.lifecycle import Transition
from courtline.errors import (
    AuthorizationError,
    CourtlineError,
    InternalError,
    StateConflictError,
    ValidationError,
)
from courtline.store.database import Database, MatchLocks, transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSITION_KINDS = {
    Transition.START: "match_started",
    Transition.END: "match_ended",
    Transition.CANCEL: "match_cancelled",
    Transition.RESCHEDULE: "match_rescheduled",
}


def _payload(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_payload(item) for item in value]
    return value


class LiveMatchService:
    """Entry point for every match, roster, substitution and event operation."""

    def __init__(
        self,
        database: Database,
        *,
        notifier: Optional[Notifier] = None,
        access_policy: Optional[AccessPolicy] = None,
        locks: Optional[MatchLocks] = None,
    ) -> None:
        self._database = database
        self._notifier = notifier if notifier is not None else InProcessBroadcaster()
        self._access_policy = access_policy if access_policy is not None else RoleAccessPolicy()
        self._locks = locks if locks is not None else MatchLocks()

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def _authorize(self, principal: Principal, club_ids: Iterable[Optional[int]]) -> None:
        for club_id in club_ids:
            if not self._access_policy.may_act(principal, club_id):
                logger.warning(
                    "principal %s (%s) denied for club %s",
                    principal.principal_id,
                    principal.role,
                    club_id,
                )
                raise AuthorizationError(
                    "Not authorized to act on this club",
                    details={"club_id": club_id},
                )

    def _require_admin(self, principal: Principal, operation: str) -> None:
        if principal.role != ADMIN_ROLE:
            raise AuthorizationError(f"Only administrators may {operation}")

    def _run(
        self,
        operation: str,
        match_id: Optional[int],
        work: Callable[[sqlite3.Connection], T],
        *,
        write: bool = True,
    ) -> T:
        lock = self._locks.hold(match_id) if write and match_id is not None else nullcontext()
        try:
            with lock, self._database.connection() as conn:
                if not write:
                    return work(conn)
                with transaction(conn):
                    return work(conn)
        except StateConflictError as exc:
            logger.warning("%s rejected for match %s: %s", operation, match_id, exc.message)
            raise
        except CourtlineError:
            raise
        except sqlite3.IntegrityError as exc:
            raise ValidationError("Invalid match, club, or player reference") from exc
        except sqlite3.Error as exc:
            logger.exception("%s failed for match %s", operation, match_id)
            raise InternalError("Internal error") from exc

    def _notify(self, match_id: int, kind: str, payload: Any) -> None:
        body = _payload(payload)
        if not isinstance(body, dict):
            body = {"items": body}
        self._notifier.publish(MatchNotification(match_id=match_id, kind=kind, payload=body))

    def _match_clubs(self, conn: sqlite3.Connection, match_id: int) -> List[int]:
        return _matches.participating_clubs(fetch_match(conn, match_id))

    # ------------------------------------------------------------------
    # match lifecycle
    # ------------------------------------------------------------------

    def create_match(self, principal: Principal, payload: MatchCreate) -> MatchRecord:
        self._authorize(principal, sorted({payload.home_club_id, payload.away_club_id}))
        record = self._run("create_match", None, lambda conn: _matches.create_match(conn, payload))
        logger.info("match %s created by %s", record.match_id, principal.principal_id)
        self._notify(record.match_id, "match_created", record)
        return record

    def get_match(self, match_id: int) -> MatchRecord:
        return self._run(
            "get_match", match_id, lambda conn: _matches.get_match(conn, match_id), write=False
        )

    def list_matches(
        self,
        *,
        status: Optional[str] = None,
        club_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[MatchRecord]:
        return self._run(
            "list_matches",
            None,
            lambda conn: _matches.list_matches(
                conn, status=status, club_id=club_id, date_from=date_from, date_to=date_to
            ),
            write=False,
        )

    def update_match(self, principal: Principal, match_id: int, update: MatchUpdate) -> MatchRecord:
        def work(conn: sqlite3.Connection) -> MatchRecord:
            self._authorize(principal, self._match_clubs(conn, match_id))
            return _matches.update_match(conn, match_id, update)

        record = self._run("update_match", match_id, work)
        logger.info("match %s updated by %s: %s", match_id, principal.principal_id, sorted(update.changes()))
        self._notify(match_id, "match_updated", record)
        return record

    def transition_match(
        self,
        principal: Principal,
        match_id: int,
        operation: Transition | str,
        *,
        scheduled_at: Optional[datetime] = None,
    ) -> MatchRecord:
        def work(conn: sqlite3.Connection):
            self._authorize(principal, self._match_clubs(conn, match_id))
            return _matches.transition_match(conn, match_id, operation, scheduled_at=scheduled_at)

        record, plan = self._run("transition_match", match_id, work)
        self._notify(
            match_id,
            _TRANSITION_KINDS[plan.operation],
            {"previous_status": plan.source.value, "match": _payload(record)},
        )
        return record

    def start_match(self, principal: Principal, match_id: int) -> MatchRecord:
        return self.transition_match(principal, match_id, Transition.START)

    def end_match(self, principal: Principal, match_id: int) -> MatchRecord:
        return self.transition_match(principal, match_id, Transition.END)

    def cancel_match(self, principal: Principal, match_id: int) -> MatchRecord:
        return self.transition_match(principal, match_id, Transition.CANCEL)

    def reschedule_match(
        self, principal: Principal, match_id: int, scheduled_at: Optional[datetime] = None
    ) -> MatchRecord:
        return self.transition_match(
            principal, match_id, Transition.RESCHEDULE, scheduled_at=scheduled_at
        )

    def delete_match(self, principal: Principal, match_id: int) -> MatchRecord:
        self._require_admin(principal, "delete matches")
        record = self._run(
            "delete_match", match_id, lambda conn: _matches.delete_match(conn, match_id)
        )
        self._notify(match_id, "match_deleted", record)
        return record

    # ------------------------------------------------------------------
    # roster and lineup
    # ------------------------------------------------------------------

    def replace_roster(
        self, principal: Principal, match_id: int, entries: Sequence[RosterEntryInput]
    ) -> List[RosterEntryRecord]:
        def work(conn: sqlite3.Connection) -> List[RosterEntryRecord]:
            self._authorize(principal, self._match_clubs(conn, match_id))
            return _rosters.replace_roster(conn, match_id, entries)

        roster = self._run("replace_roster", match_id, work)
        self._notify(match_id, "roster_replaced", {"players": _payload(roster)})
        return roster

    def list_roster(self, match_id: int, *, club_id: Optional[int] = None) -> List[RosterEntryRecord]:
        return self._run(
            "list_roster",
            match_id,
            lambda conn: _rosters.list_roster(conn, match_id, club_id=club_id),
            write=False,
        )

    def update_roster_entry(
        self, principal: Principal, match_id: int, roster_id: int, update: RosterEntryUpdate
    ) -> RosterEntryRecord:
        def work(conn: sqlite3.Connection) -> RosterEntryRecord:
            fetch_match(conn, match_id)
            entry = _rosters.fetch_entry(conn, match_id, roster_id)
            self._authorize(principal, [entry["club_id"]])
            return _rosters.update_roster_entry(conn, match_id, roster_id, update)

        record = self._run("update_roster_entry", match_id, work)
        self._notify(match_id, "roster_updated", record)
        return record

    def remove_roster_entry(
        self, principal: Principal, match_id: int, roster_id: int
    ) -> RosterEntryRecord:
        def work(conn: sqlite3.Connection) -> RosterEntryRecord:
            fetch_match(conn, match_id)
            entry = _rosters.fetch_entry(conn, match_id, roster_id)
            self._authorize(principal, [entry["club_id"]])
            return _rosters.remove_roster_entry(conn, match_id, roster_id)

        record = self._run("remove_roster_entry", match_id, work)
        self._notify(match_id, "roster_removed", record)
        return record

    def get_active_lineup(self, match_id: int) -> LineupResponse:
        return self._run(
            "get_active_lineup",
            match_id,
            lambda conn: _lineups.get_active_lineup(conn, match_id),
            write=False,
        )

    # ------------------------------------------------------------------
    # substitutions
    # ------------------------------------------------------------------

    def propose_substitution(
        self, principal: Principal, match_id: int, payload: SubstitutionCreate
    ) -> SubstitutionEntry:
        self._authorize(principal, [payload.club_id])
        record = self._run(
            "propose_substitution",
            match_id,
            lambda conn: _substitutions.propose_substitution(conn, match_id, payload),
        )
        self._notify(match_id, "substitution_recorded", record)
        return record

    def retract_substitution(
        self, principal: Principal, match_id: int, substitution_id: int
    ) -> SubstitutionEntry:
        def work(conn: sqlite3.Connection) -> SubstitutionEntry:
            fetch_match(conn, match_id)
            substitution = _substitutions.fetch_substitution(conn, match_id, substitution_id)
            self._authorize(principal, [substitution["club_id"]])
            return _substitutions.retract_substitution(conn, match_id, substitution_id)

        record = self._run("retract_substitution", match_id, work)
        logger.info(
            "substitution %s on match %s retracted by %s",
            substitution_id,
            match_id,
            principal.principal_id,
        )
        self._notify(match_id, "substitution_retracted", record)
        return record

    def list_substitutions(
        self,
        match_id: int,
        *,
        club_id: Optional[int] = None,
        period: Optional[int] = None,
        player_id: Optional[int] = None,
    ) -> List[SubstitutionEntry]:
        return self._run(
            "list_substitutions",
            match_id,
            lambda conn: _substitutions.list_substitutions(
                conn, match_id, club_id=club_id, period=period, player_id=player_id
            ),
            write=False,
        )

    # ------------------------------------------------------------------
    # shots and score
    # ------------------------------------------------------------------

    def record_shot(self, principal: Principal, match_id: int, payload: ShotCreate) -> ShotRecord:
        self._authorize(principal, [payload.club_id])
        record, body = self._run(
            "record_shot",
            match_id,
            lambda conn: self._with_score(conn, match_id, _shots.record_shot(conn, match_id, payload)),
        )
        self._notify(match_id, "shot_recorded", body)
        return record

    def update_shot(
        self, principal: Principal, match_id: int, shot_id: int, update: ShotUpdate
    ) -> ShotRecord:
        def work(conn: sqlite3.Connection) -> Tuple[ShotRecord, Dict[str, Any]]:
            fetch_match(conn, match_id)
            shot = _shots.fetch_shot(conn, match_id, shot_id)
            self._authorize(principal, [shot["club_id"]])
            return self._with_score(conn, match_id, _shots.update_shot(conn, match_id, shot_id, update))

        record, body = self._run("update_shot", match_id, work)
        logger.info("shot %s on match %s corrected by %s", shot_id, match_id, principal.principal_id)
        self._notify(match_id, "shot_updated", body)
        return record

    def delete_shot(self, principal: Principal, match_id: int, shot_id: int) -> ShotRecord:
        def work(conn: sqlite3.Connection) -> Tuple[ShotRecord, Dict[str, Any]]:
            fetch_match(conn, match_id)
            shot = _shots.fetch_shot(conn, match_id, shot_id)
            self._authorize(principal, [shot["club_id"]])
            return self._with_score(conn, match_id, _shots.delete_shot(conn, match_id, shot_id))

        record, body = self._run("delete_shot", match_id, work)
        logger.info("shot %s on match %s deleted by %s", shot_id, match_id, principal.principal_id)
        self._notify(match_id, "shot_deleted", body)
        return record

    def list_shots(
        self,
        match_id: int,
        *,
        period: Optional[int] = None,
        club_id: Optional[int] = None,
        player_id: Optional[int] = None,
        result: Optional[str] = None,
    ) -> List[ShotRecord]:
        return self._run(
            "list_shots",
            match_id,
            lambda conn: _shots.list_shots(
                conn, match_id, period=period, club_id=club_id, player_id=player_id, result=result
            ),
            write=False,
        )

    def rebuild_score(self, principal: Principal, match_id: int) -> MatchRecord:
        self._require_admin(principal, "rebuild scores")
        record = self._run(
            "rebuild_score", match_id, lambda conn: _scores.rebuild_score(conn, match_id)
        )
        self._notify(match_id, "score_rebuilt", record)
        return record

    @staticmethod
    def _with_score(
        conn: sqlite3.Connection, match_id: int, record: ShotRecord
    ) -> Tuple[ShotRecord, Dict[str, Any]]:
        """Pair a shot with the score as committed by the same transaction."""

        match = fetch_match(conn, match_id)
        return record, {
            "shot": _payload(record),
            "home_score": match["home_score"],
            "away_score": match["away_score"],
        }

    # ------------------------------------------------------------------
    # game events
    # ------------------------------------------------------------------

    def record_game_event(
        self, principal: Principal, match_id: int, payload: GameEventCreate
    ) -> GameEventRecord:
        self._authorize(principal, [payload.club_id])
        record = self._run(
            "record_game_event",
            match_id,
            lambda conn: _events.record_game_event(conn, match_id, payload),
        )
        self._notify(match_id, "game_event_recorded", record)
        return record

    def update_game_event(
        self, principal: Principal, match_id: int, event_id: int, update: GameEventUpdate
    ) -> GameEventRecord:
        def work(conn: sqlite3.Connection) -> GameEventRecord:
            fetch_match(conn, match_id)
            event = _events.fetch_event(conn, match_id, event_id)
            self._authorize(principal, [event["club_id"]])
            return _events.update_game_event(conn, match_id, event_id, update)

        record = self._run("update_game_event", match_id, work)
        logger.info("event %s on match %s corrected by %s", event_id, match_id, principal.principal_id)
        self._notify(match_id, "game_event_updated", record)
        return record

    def delete_game_event(
        self, principal: Principal, match_id: int, event_id: int
    ) -> GameEventRecord:
        def work(conn: sqlite3.Connection) -> GameEventRecord:
            fetch_match(conn, match_id)
            event = _events.fetch_event(conn, match_id, event_id)
            self._authorize(principal, [event["club_id"]])
            return _events.delete_game_event(conn, match_id, event_id)

        record = self._run("delete_game_event", match_id, work)
        self._notify(match_id, "game_event_deleted", record)
        return record

    def list_game_events(
        self,
        match_id: int,
        *,
        event_type: Optional[str] = None,
        club_id: Optional[int] = None,
        player_id: Optional[int] = None,
        period: Optional[int] = None,
    ) -> List[GameEventRecord]:
        return self._run(
            "list_game_events",
            match_id,
            lambda conn: _events.list_game_events(
                conn,
                match_id,
                event_type=event_type,
                club_id=club_id,
                player_id=player_id,
                period=period,
            ),
            write=False,
        )


__all__ = ["LiveMatchService"]
