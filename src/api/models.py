"""Requests, Responses and outbound Event models"""

from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import Color, ScoringMethod, TimeControlMode
from src.go.board import BOARD_SIZES

ParticipantId = str
StoneColor = str
Clocks = dict[StoneColor, Optional[dict[str, Any]]]
BoardRows = list[list[Optional[StoneColor]]]


# --- REQUEST MODELS ---
class CreateMatchRequest(BaseModel):
    player_id: ParticipantId


class JoinMatchRequest(BaseModel):
    match_id: UUID
    player_id: ParticipantId


class TimeControlSettings(BaseModel):
    mode: TimeControlMode = TimeControlMode.NONE
    main_time: float = Field(default=0, ge=0)
    increment: float = Field(default=0, ge=0)
    byo_yomi_time: float = Field(default=0, ge=0)
    byo_yomi_periods: int = Field(default=0, ge=0)


class StartGoRequest(BaseModel):
    match_id: UUID
    player_id: ParticipantId
    board_size: int = 9
    time_control: Optional[TimeControlSettings] = None

    @field_validator("board_size")
    @classmethod
    def validate_board_size(cls, value: int) -> int:
        if value not in BOARD_SIZES:
            raise InvalidRequestError(
                f"Board size must be one of {', '.join(str(s) for s in BOARD_SIZES)}, got {value}."
            )
        return value


class SubmitMoveRequest(BaseModel):
    match_id: UUID
    player_id: ParticipantId
    row: int
    col: int
    color: Color

    @field_validator(*["row", "col"])
    @classmethod
    def validate_coordinate(cls, value: int) -> int:
        if value < 0:
            raise InvalidRequestError(f"Invalid board position: {value!r}")
        return value


class PassRequest(BaseModel):
    match_id: UUID
    player_id: ParticipantId


class ToggleDeadStoneRequest(BaseModel):
    match_id: UUID
    player_id: ParticipantId
    row: int
    col: int

    @field_validator(*["row", "col"])
    @classmethod
    def validate_coordinate(cls, value: int) -> int:
        if value < 0:
            raise InvalidRequestError(f"Invalid board position: {value!r}")
        return value


class FinalizeScoreRequest(BaseModel):
    match_id: UUID
    player_id: ParticipantId
    method: ScoringMethod = ScoringMethod.CHINESE

    @field_validator("method", mode="before")
    @classmethod
    def default_to_chinese(cls, value: Any) -> ScoringMethod:
        """Anything but 'japanese' means area scoring."""
        if isinstance(value, str) and value.lower() == ScoringMethod.JAPANESE:
            return ScoringMethod.JAPANESE
        return ScoringMethod.CHINESE


class ResignRequest(BaseModel):
    match_id: UUID
    player_id: ParticipantId


class GetMatchRequest(BaseModel):
    match_id: UUID


# --- RESPONSE MODELS ---
class StoneModel(BaseModel):
    row: int
    col: int
    color: StoneColor


class MatchResponse(BaseModel):
    match_id: UUID
    host_id: ParticipantId
    guest_id: Optional[ParticipantId]
    phase: Optional[str]
    board_size: int
    board: Optional[BoardRows]
    current_turn: StoneColor
    consecutive_passes: int
    captures: dict[StoneColor, int]
    komi: float
    dead_stones: list[StoneModel]
    pending_scoring_method: Optional[str]
    confirmations: int
    final_score: Optional[dict[str, Any]]
    clocks: Clocks


# --- OUTBOUND EVENTS (fanned out to both participants) ---
class MatchEvent(BaseModel):
    event: str
    match_id: UUID


class MatchStartedEvent(MatchEvent):
    event: Literal["go_started"] = "go_started"
    board_size: int
    komi: float
    current_turn: StoneColor
    time_control: dict[str, Any]
    clocks: Clocks


class MoveAppliedEvent(MatchEvent):
    event: Literal["go_move"] = "go_move"
    board: BoardRows
    last_move: StoneModel
    captured: list[tuple[int, int]]
    captures: dict[StoneColor, int]
    current_turn: StoneColor
    phase: str
    komi: float
    clocks: Clocks
    message: str


class PassAppliedEvent(MatchEvent):
    event: Literal["go_pass"] = "go_pass"
    color: StoneColor
    consecutive_passes: int
    current_turn: StoneColor
    phase: str
    clocks: Clocks
    message: str


class ScoringStartedEvent(MatchEvent):
    event: Literal["go_scoring_start"] = "go_scoring_start"
    board: BoardRows
    board_size: int
    komi: float
    captures: dict[StoneColor, int]
    dead_stones: list[StoneModel]
    message: str


class DeadStonesUpdatedEvent(MatchEvent):
    event: Literal["go_dead_stones_updated"] = "go_dead_stones_updated"
    dead_stones: list[StoneModel]
    updated_by: ParticipantId


class ScoringPendingEvent(MatchEvent):
    event: Literal["go_score_pending"] = "go_score_pending"
    method: ScoringMethod
    confirmations: int
    required: int
    message: str


class ScoringFinalizedEvent(MatchEvent):
    event: Literal["go_score_finalized"] = "go_score_finalized"
    method: ScoringMethod
    result: dict[str, Any]


class TimeUpdateEvent(MatchEvent):
    event: Literal["go_time_update"] = "go_time_update"
    clocks: Clocks


class TimeExpiredEvent(MatchEvent):
    event: Literal["go_time_expired"] = "go_time_expired"
    expired: StoneColor
    winner: StoneColor
    message: str


class ResignedEvent(MatchEvent):
    event: Literal["go_resigned"] = "go_resigned"
    resigned: StoneColor
    winner: StoneColor
    message: str
