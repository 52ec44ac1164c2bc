"""FastAPI application exposing the live-match state engine."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

from courtline.api.interfaces import Principal
from courtline.api.models import (
    GameEventCreate,
    GameEventRecord,
    GameEventUpdate,
    LineupResponse,
    MatchCreate,
    MatchRecord,
    MatchUpdate,
    RescheduleRequest,
    RosterEntryRecord,
    RosterEntryUpdate,
    RosterReplaceRequest,
    ShotCreate,
    ShotRecord,
    ShotResultValue,
    ShotUpdate,
    SubstitutionCreate,
    SubstitutionEntry,
)
from courtline.api.notifications import build_notifier
from courtline.api.service import LiveMatchService
from courtline.config import Settings
from courtline.engine.lifecycle import Transition
from courtline.errors import (
    AuthorizationError,
    CourtlineError,
    InternalError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from courtline.logging_config import setup_logging
from courtline.store.database import Database

_ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateConflictError, status.HTTP_409_CONFLICT),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
)


def _status_for(exc: CourtlineError) -> int:
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _parse_club_ids(raw: Optional[str]) -> frozenset:
    if not raw:
        return frozenset()
    try:
        return frozenset(int(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Principal-Clubs must be a comma-separated list of club ids",
        ) from exc


def get_principal(
    principal_id: Optional[str] = Header(default=None, alias="X-Principal-Id"),
    role: Optional[str] = Header(default=None, alias="X-Principal-Role"),
    clubs: Optional[str] = Header(default=None, alias="X-Principal-Clubs"),
) -> Principal:
    """Principal forwarded by the identity gateway."""

    if not principal_id or not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return Principal(principal_id=principal_id, role=role.strip().lower(), club_ids=_parse_club_ids(clubs))


def build_service(settings: Settings) -> LiveMatchService:
    database = Database(settings.db_path, busy_timeout_ms=settings.busy_timeout_ms)
    notifier = build_notifier(settings.broadcast_backend, broker_url=settings.celery_broker_url)
    return LiveMatchService(database, notifier=notifier)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[LiveMatchService] = None,
) -> FastAPI:
    """Instantiate the FastAPI application.

    A ready ``service`` takes precedence; otherwise one is built from
    ``settings`` (or the environment) and logging is configured from it.
    """

    if service is None:
        settings = settings or Settings.from_env()
        setup_logging(settings.log_level, settings.log_dir)
        service = build_service(settings)

    app = FastAPI(title="Courtline Live Match Service", version="0.1.0")
    app.state.match_service = service

    @app.exception_handler(CourtlineError)
    async def handle_engine_error(request: Request, exc: CourtlineError) -> JSONResponse:
        if isinstance(exc, InternalError):
            return JSONResponse(status_code=500, content={"error": "Internal error"})
        return JSONResponse(status_code=_status_for(exc), content=exc.to_payload())

    router = APIRouter()

    def get_service(request: Request) -> LiveMatchService:
        return request.app.state.match_service

    # -- matches -------------------------------------------------------

    @router.post("/matches", response_model=MatchRecord, status_code=status.HTTP_201_CREATED)
    def create_match(
        payload: MatchCreate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> MatchRecord:
        return service.create_match(principal, payload)

    @router.get("/matches", response_model=List[MatchRecord])
    def list_matches(
        match_status: Optional[str] = Query(default=None, alias="status"),
        club_id: Optional[int] = Query(default=None, gt=0),
        date_from: Optional[datetime] = Query(default=None),
        date_to: Optional[datetime] = Query(default=None),
        service: LiveMatchService = Depends(get_service),
    ) -> List[MatchRecord]:
        return service.list_matches(
            status=match_status, club_id=club_id, date_from=date_from, date_to=date_to
        )

    @router.get("/matches/{match_id}", response_model=MatchRecord)
    def get_match(match_id: int, service: LiveMatchService = Depends(get_service)) -> MatchRecord:
        return service.get_match(match_id)

    @router.patch("/matches/{match_id}", response_model=MatchRecord)
    def update_match(
        match_id: int,
        payload: MatchUpdate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> MatchRecord:
        return service.update_match(principal, match_id, payload)

    @router.delete("/matches/{match_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_match(
        match_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> Response:
        service.delete_match(principal, match_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.post("/matches/{match_id}/start", response_model=MatchRecord)
    def start_match(
        match_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> MatchRecord:
        return service.transition_match(principal, match_id, Transition.START)

    @router.post("/matches/{match_id}/end", response_model=MatchRecord)
    def end_match(
        match_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> MatchRecord:
        return service.transition_match(principal, match_id, Transition.END)

    @router.post("/matches/{match_id}/cancel", response_model=MatchRecord)
    def cancel_match(
        match_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> MatchRecord:
        return service.transition_match(principal, match_id, Transition.CANCEL)

    @router.post("/matches/{match_id}/reschedule", response_model=MatchRecord)
    def reschedule_match(
        match_id: int,
        payload: Optional[RescheduleRequest] = None,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> MatchRecord:
        scheduled_at = payload.scheduled_at if payload is not None else None
        return service.transition_match(
            principal, match_id, Transition.RESCHEDULE, scheduled_at=scheduled_at
        )

    @router.post("/matches/{match_id}/score/rebuild", response_model=MatchRecord)
    def rebuild_score(
        match_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> MatchRecord:
        return service.rebuild_score(principal, match_id)

    # -- roster and lineup ---------------------------------------------

    @router.get("/matches/{match_id}/roster", response_model=List[RosterEntryRecord])
    def list_roster(
        match_id: int,
        club_id: Optional[int] = Query(default=None, gt=0),
        service: LiveMatchService = Depends(get_service),
    ) -> List[RosterEntryRecord]:
        return service.list_roster(match_id, club_id=club_id)

    @router.put("/matches/{match_id}/roster", response_model=List[RosterEntryRecord])
    def replace_roster(
        match_id: int,
        payload: RosterReplaceRequest,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> List[RosterEntryRecord]:
        return service.replace_roster(principal, match_id, payload.players)

    @router.patch("/matches/{match_id}/roster/{roster_id}", response_model=RosterEntryRecord)
    def update_roster_entry(
        match_id: int,
        roster_id: int,
        payload: RosterEntryUpdate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> RosterEntryRecord:
        return service.update_roster_entry(principal, match_id, roster_id, payload)

    @router.delete("/matches/{match_id}/roster/{roster_id}", status_code=status.HTTP_204_NO_CONTENT)
    def remove_roster_entry(
        match_id: int,
        roster_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> Response:
        service.remove_roster_entry(principal, match_id, roster_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/matches/{match_id}/lineup", response_model=LineupResponse)
    def get_active_lineup(
        match_id: int, service: LiveMatchService = Depends(get_service)
    ) -> LineupResponse:
        return service.get_active_lineup(match_id)

    # -- substitutions -------------------------------------------------

    @router.get("/matches/{match_id}/substitutions", response_model=List[SubstitutionEntry])
    def list_substitutions(
        match_id: int,
        club_id: Optional[int] = Query(default=None, gt=0),
        period: Optional[int] = Query(default=None, ge=1),
        player_id: Optional[int] = Query(default=None, gt=0),
        service: LiveMatchService = Depends(get_service),
    ) -> List[SubstitutionEntry]:
        return service.list_substitutions(
            match_id, club_id=club_id, period=period, player_id=player_id
        )

    @router.post(
        "/matches/{match_id}/substitutions",
        response_model=SubstitutionEntry,
        status_code=status.HTTP_201_CREATED,
    )
    def propose_substitution(
        match_id: int,
        payload: SubstitutionCreate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> SubstitutionEntry:
        return service.propose_substitution(principal, match_id, payload)

    @router.delete(
        "/matches/{match_id}/substitutions/{substitution_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    def retract_substitution(
        match_id: int,
        substitution_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> Response:
        service.retract_substitution(principal, match_id, substitution_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # -- shots ---------------------------------------------------------

    @router.get("/matches/{match_id}/shots", response_model=List[ShotRecord])
    def list_shots(
        match_id: int,
        period: Optional[int] = Query(default=None, ge=1),
        club_id: Optional[int] = Query(default=None, gt=0),
        player_id: Optional[int] = Query(default=None, gt=0),
        result: Optional[ShotResultValue] = Query(default=None),
        service: LiveMatchService = Depends(get_service),
    ) -> List[ShotRecord]:
        return service.list_shots(
            match_id, period=period, club_id=club_id, player_id=player_id, result=result
        )

    @router.post(
        "/matches/{match_id}/shots", response_model=ShotRecord, status_code=status.HTTP_201_CREATED
    )
    def record_shot(
        match_id: int,
        payload: ShotCreate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> ShotRecord:
        return service.record_shot(principal, match_id, payload)

    @router.put("/matches/{match_id}/shots/{shot_id}", response_model=ShotRecord)
    def update_shot(
        match_id: int,
        shot_id: int,
        payload: ShotUpdate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> ShotRecord:
        return service.update_shot(principal, match_id, shot_id, payload)

    @router.delete("/matches/{match_id}/shots/{shot_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_shot(
        match_id: int,
        shot_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> Response:
        service.delete_shot(principal, match_id, shot_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # -- game events ---------------------------------------------------

    @router.get("/matches/{match_id}/events", response_model=List[GameEventRecord])
    def list_game_events(
        match_id: int,
        event_type: Optional[str] = Query(default=None),
        club_id: Optional[int] = Query(default=None, gt=0),
        player_id: Optional[int] = Query(default=None, gt=0),
        period: Optional[int] = Query(default=None, ge=1),
        service: LiveMatchService = Depends(get_service),
    ) -> List[GameEventRecord]:
        return service.list_game_events(
            match_id, event_type=event_type, club_id=club_id, player_id=player_id, period=period
        )

    @router.post(
        "/matches/{match_id}/events",
        response_model=GameEventRecord,
        status_code=status.HTTP_201_CREATED,
    )
    def record_game_event(
        match_id: int,
        payload: GameEventCreate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> GameEventRecord:
        return service.record_game_event(principal, match_id, payload)

    @router.patch("/matches/{match_id}/events/{event_id}", response_model=GameEventRecord)
    def update_game_event(
        match_id: int,
        event_id: int,
        update: GameEventUpdate,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> GameEventRecord:
        return service.update_game_event(principal, match_id, event_id, update)

    @router.delete("/matches/{match_id}/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_game_event(
        match_id: int,
        event_id: int,
        principal: Principal = Depends(get_principal),
        service: LiveMatchService = Depends(get_service),
    ) -> Response:
        service.delete_game_event(principal, match_id, event_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    app.include_router(router)
    return app


app = create_app()

__all__ = ["app", "build_service", "create_app", "get_principal"]
