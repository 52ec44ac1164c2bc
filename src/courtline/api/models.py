"""Pydantic models for live-match commands and records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

CLOCK_PATTERN = r"^\d{2}:\d{2}:\d{2}$"

Side = Literal["home", "away"]
ShotResultValue = Literal["goal", "miss", "blocked"]
SubstitutionReason = Literal["tactical", "injury", "fatigue", "disciplinary"]
StartingPosition = Literal["offense", "defense"]
AttackingSide = Literal["left", "right"]

GAME_EVENT_TYPES = (
    "foul",
    "substitution",
    "timeout",
    "period_start",
    "period_end",
    "fault_offensive",
    "fault_defensive",
    "fault_out_of_bounds",
    "free_shot",
    "timeout_team",
    "timeout_injury",
    "timeout_official",
    "match_commentary",
)
GameEventType = Literal[
    "foul",
    "substitution",
    "timeout",
    "period_start",
    "period_end",
    "fault_offensive",
    "fault_defensive",
    "fault_out_of_bounds",
    "free_shot",
    "timeout_team",
    "timeout_injury",
    "timeout_official",
    "match_commentary",
]

FAULT_REASONS = frozenset(
    {
        "running_with_ball",
        "hindering_shot",
        "ball_out",
        "traveling",
        "offensive_foul",
        "defensive_foul",
        "illegal_contact",
        "out_of_bounds",
        "shot_clock_violation",
        "technical_foul",
    }
)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class MatchCreate(BaseModel):
    """Payload for scheduling a new match."""

    home_club_id: int = Field(..., gt=0)
    away_club_id: int = Field(..., gt=0)
    home_team_id: Optional[int] = Field(
        default=None, gt=0, description="Sub-team refining the home side"
    )
    away_team_id: Optional[int] = Field(
        default=None, gt=0, description="Sub-team refining the away side"
    )
    scheduled_at: datetime
    number_of_periods: int = Field(default=4, ge=1, le=10)
    period_duration: str = Field(default="00:10:00", pattern=CLOCK_PATTERN)
    home_attacking_side: Optional[AttackingSide] = None

    @model_validator(mode="after")
    def _check_sides_differ(self) -> "MatchCreate":
        if self.home_club_id != self.away_club_id:
            return self
        if (
            self.home_team_id is None
            or self.away_team_id is None
            or self.home_team_id == self.away_team_id
        ):
            raise ValueError(
                "Home and away sides must be different clubs or different sub-teams"
            )
        return self


class MatchUpdate(BaseModel):
    """Whitelisted match settings. Scores and status are not editable here."""

    model_config = ConfigDict(extra="forbid")

    scheduled_at: Optional[datetime] = None
    number_of_periods: Optional[int] = Field(default=None, ge=1, le=10)
    period_duration: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    home_attacking_side: Optional[AttackingSide] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class RescheduleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scheduled_at: Optional[datetime] = Field(
        default=None,
        description="New date; omit to only mark the match as needing a new date",
    )


class RosterEntryInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    club_id: int = Field(..., gt=0)
    player_id: int = Field(..., gt=0)
    team_id: Optional[int] = Field(
        default=None, gt=0, description="Only needed when both sides share a club"
    )
    is_captain: bool = False
    is_starting: bool = True
    starting_position: Optional[StartingPosition] = None


class RosterReplaceRequest(BaseModel):
    players: List[RosterEntryInput] = Field(default_factory=list)


class RosterEntryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_captain: Optional[bool] = None
    is_starting: Optional[bool] = None


class SubstitutionCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    club_id: int = Field(..., gt=0)
    team_id: Optional[int] = Field(default=None, gt=0)
    player_in_id: int = Field(..., gt=0)
    player_out_id: int = Field(..., gt=0)
    period: int = Field(..., ge=1)
    time_remaining: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    reason: SubstitutionReason = "tactical"


class ShotCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    club_id: int = Field(..., gt=0)
    team_id: Optional[int] = Field(default=None, gt=0)
    player_id: int = Field(..., gt=0)
    x_coord: float = Field(..., ge=0, le=100)
    y_coord: float = Field(..., ge=0, le=100)
    result: ShotResultValue
    period: int = Field(..., ge=1)
    time_remaining: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    shot_type: Optional[str] = None
    distance: Optional[float] = Field(default=None, ge=0)


class ShotUpdate(BaseModel):
    """Correctable shot fields. Side, player and period are fixed."""

    model_config = ConfigDict(extra="forbid")

    x_coord: Optional[float] = Field(default=None, ge=0, le=100)
    y_coord: Optional[float] = Field(default=None, ge=0, le=100)
    result: Optional[ShotResultValue] = None
    shot_type: Optional[str] = None
    distance: Optional[float] = Field(default=None, ge=0)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class GameEventCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_type: GameEventType
    club_id: int = Field(..., gt=0)
    team_id: Optional[int] = Field(default=None, gt=0)
    player_id: Optional[int] = Field(default=None, gt=0)
    period: int = Field(..., ge=1, le=10)
    time_remaining: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    details: Optional[Dict[str, Any]] = None


class GameEventUpdate(BaseModel):
    """Correction of a recorded event. Club and side stay as recorded.

    An explicit ``null`` clears ``player_id``, ``time_remaining`` or
    ``details``; omitted fields are left untouched.
    """

    model_config = ConfigDict(extra="forbid")

    event_type: Optional[GameEventType] = None
    player_id: Optional[int] = Field(default=None, gt=0)
    period: Optional[int] = Field(default=None, ge=1, le=10)
    time_remaining: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    details: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _check_required_values(self) -> "GameEventUpdate":
        for name in ("event_type", "period"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class MatchRecord(BaseModel):
    match_id: int
    home_club_id: int
    away_club_id: int
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    home_club_name: Optional[str] = None
    away_club_name: Optional[str] = None
    status: str
    scheduled_at: str
    home_score: int
    away_score: int
    number_of_periods: int
    period_duration: str
    home_attacking_side: Optional[str] = None
    created_at: str
    updated_at: str


class RosterEntryRecord(BaseModel):
    roster_id: int
    match_id: int
    side: Side
    club_id: int
    player_id: int
    is_starting: bool
    is_captain: bool
    starting_position: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    jersey_number: Optional[int] = None


class SubstitutionEntry(BaseModel):
    substitution_id: int
    match_id: int
    side: Side
    club_id: int
    player_in_id: int
    player_out_id: int
    period: int
    time_remaining: Optional[str] = None
    reason: str
    created_at: str


class ShotRecord(BaseModel):
    shot_id: int
    match_id: int
    side: Side
    club_id: int
    player_id: int
    x_coord: float
    y_coord: float
    result: ShotResultValue
    period: int
    time_remaining: Optional[str] = None
    shot_type: Optional[str] = None
    distance: Optional[float] = None
    created_at: str


class GameEventRecord(BaseModel):
    event_id: int
    match_id: int
    side: Side
    club_id: int
    event_type: str
    player_id: Optional[int] = None
    period: int
    time_remaining: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: str


class LineupPlayer(BaseModel):
    player_id: int
    club_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    jersey_number: Optional[int] = None
    is_captain: bool = False
    starting_position: Optional[str] = None


class SideLineup(BaseModel):
    club_id: int
    team_id: Optional[int] = None
    active: List[LineupPlayer] = Field(default_factory=list)
    bench: List[LineupPlayer] = Field(default_factory=list)


class LineupResponse(BaseModel):
    match_id: int
    home: SideLineup
    away: SideLineup


__all__ = [
    "CLOCK_PATTERN",
    "FAULT_REASONS",
    "GAME_EVENT_TYPES",
    "GameEventCreate",
    "GameEventRecord",
    "GameEventUpdate",
    "LineupPlayer",
    "LineupResponse",
    "MatchCreate",
    "MatchRecord",
    "MatchUpdate",
    "RescheduleRequest",
    "RosterEntryInput",
    "RosterEntryRecord",
    "RosterEntryUpdate",
    "RosterReplaceRequest",
    "ShotCreate",
    "ShotRecord",
    "ShotResultValue",
    "ShotUpdate",
    "SideLineup",
    "SubstitutionCreate",
    "SubstitutionEntry",
]
