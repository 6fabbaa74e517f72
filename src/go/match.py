"""
The GoMatch class is the entrypoint into the domain layer for the service layer.
It orchestrates the phases of a game of Go between two participants:

PLAY --(two consecutive passes / force end)--> SCORING --(all confirmations)--> COMPLETE
PLAY --(time expiry / resignation)--> COMPLETE

The host always plays black, the guest always plays white.
Every public method either fully applies its state transition or raises a GameError without changing anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Self

from src.core.exceptions import (
    GameStateError,
    InvalidRequestError,
    NotAParticipantError,
    NotYourTurnError,
    OutOfBoundsError,
    WrongColorError,
)
from src.core.models import MatchModel
from src.core.shared_types import Color, Phase, ScoringMethod
from src.go.agreement import ScoringAgreement
from src.go.board import BOARD_SIZES, Board, Point
from src.go.clock import ClockState, GameClock, TimeControl
from src.go.history import DEFAULT_CAPACITY, PositionHistory
from src.go.rules import apply_move
from src.go.scoring import (
    SCORING_RULES,
    ScoreResult,
    remove_dead_stones,
    resignation_result,
    time_loss_result,
)

logger = logging.getLogger(__name__)

DEFAULT_KOMI = 6.5


# --- OUTCOMES (consumed by the service to build outbound events) ---
@dataclass(frozen=True)
class MoveOutcome:
    point: Point
    color: Color
    captured: list[Point]
    time_expired: bool = False


@dataclass(frozen=True)
class PassOutcome:
    color: Color
    consecutive_passes: int
    scoring_started: bool = False
    time_expired: bool = False


@dataclass(frozen=True)
class ScoringOutcome:
    method: ScoringMethod
    confirmations: int
    required: int
    result: Optional[ScoreResult] = None

    @property
    def finalized(self) -> bool:
        return self.result is not None


@dataclass(frozen=True)
class TickOutcome:
    changed: bool
    time_expired: bool = False


@dataclass
class GoMatch:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    host_id: str
    guest_id: Optional[str]
    phase: Optional[Phase]
    board: Board
    previous_board: Optional[Board]
    current_turn: Color
    consecutive_passes: int
    captures: dict[Color, int]
    history: PositionHistory
    komi: float
    dead_stones: dict[Point, Color]
    agreement: Optional[ScoringAgreement]
    clock: GameClock
    final_score: Optional[ScoreResult] = None
    completed_at: Optional[float] = None
    version: int = 0
    default_method: ScoringMethod = field(default=ScoringMethod.CHINESE)

    @classmethod
    def from_model(
        cls,
        model: MatchModel,
        history_capacity: int = DEFAULT_CAPACITY,
        default_method: ScoringMethod = ScoringMethod.CHINESE,
    ) -> Self:
        """Define how to construct a GoMatch from the information the Service layer actually has"""
        board = (
            Board.from_rows(model.board)
            if model.board
            else Board.empty(model.board_size)
        )
        agreement = (
            ScoringAgreement(
                ScoringMethod(model.pending_scoring_method),
                frozenset(model.scoring_confirmations),
            )
            if model.pending_scoring_method
            else None
        )
        clock = GameClock(
            control=TimeControl.from_dict(model.time_control),
            states={
                Color(color): ClockState.from_dict(state)
                for color, state in model.clock_states.items()
            },
            started_at=model.clock_started_at,
            expired=Color(model.time_expired) if model.time_expired else None,
        )
        return cls(
            host_id=model.host_id,
            guest_id=model.guest_id,
            phase=Phase(model.phase) if model.phase else None,
            board=board,
            previous_board=(
                Board.from_rows(model.previous_board) if model.previous_board else None
            ),
            current_turn=Color(model.current_turn),
            consecutive_passes=model.consecutive_passes,
            captures={Color(color): count for color, count in model.captures.items()},
            history=PositionHistory(model.position_history, history_capacity),
            komi=model.komi,
            dead_stones={
                Point.from_dict(stone): Color(stone["color"])
                for stone in model.dead_stones
            },
            agreement=agreement,
            clock=clock,
            final_score=(
                ScoreResult.from_dict(model.final_score) if model.final_score else None
            ),
            completed_at=model.completed_at,
            version=model.version,
            default_method=default_method,
        )

    def to_model(self) -> MatchModel:
        """Encode back into a format the Service layer uses"""
        return MatchModel(
            host_id=self.host_id,
            guest_id=self.guest_id,
            phase=str(self.phase) if self.phase else None,
            board_size=self.board.size,
            board=self.board.to_rows() if self.phase else None,
            previous_board=self.previous_board.to_rows() if self.previous_board else None,
            current_turn=str(self.current_turn),
            consecutive_passes=self.consecutive_passes,
            captures={str(color): count for color, count in self.captures.items()},
            position_history=self.history.to_list(),
            komi=self.komi,
            dead_stones=self.dead_stones_as_dicts(),
            pending_scoring_method=str(self.agreement.method) if self.agreement else None,
            scoring_confirmations=(
                sorted(self.agreement.confirmations) if self.agreement else []
            ),
            final_score=self.final_score.to_dict() if self.final_score else None,
            time_control=self.clock.control.to_dict(),
            clock_states=self.clock.to_dicts(),
            clock_started_at=self.clock.started_at,
            time_expired=str(self.clock.expired) if self.clock.expired else None,
            completed_at=self.completed_at,
            version=self.version,
        )

    @classmethod
    def new_match(cls, host_id: str, board_size: int = 9, komi: float = DEFAULT_KOMI) -> Self:
        """A match waiting for a second participant. Go has not started yet (no phase)."""
        return cls(
            host_id=host_id,
            guest_id=None,
            phase=None,
            board=Board.empty(board_size),
            previous_board=None,
            current_turn=Color.BLACK,
            consecutive_passes=0,
            captures={Color.BLACK: 0, Color.WHITE: 0},
            history=PositionHistory(),
            komi=komi,
            dead_stones={},
            agreement=None,
            clock=GameClock(TimeControl()),
        )

    @property
    def participants(self) -> list[str]:
        return [p for p in (self.host_id, self.guest_id) if p is not None]

    @property
    def required_confirmations(self) -> int:
        return 2 if self.guest_id else 1

    def color_of(self, player_id: str) -> Color:
        """Host plays black, guest plays white. Anybody else is rejected."""
        if player_id == self.host_id:
            return Color.BLACK
        if self.guest_id is not None and player_id == self.guest_id:
            return Color.WHITE
        raise NotAParticipantError("You are not part of this game")

    def join(self, guest_id: str) -> None:
        """Registering the 2nd participant"""
        if guest_id == self.host_id:
            raise GameStateError("You are already the host of this game")
        if self.guest_id is not None and self.guest_id != guest_id:
            raise GameStateError("Game is full")
        self.guest_id = guest_id

    def start(
        self,
        now: float,
        board_size: int = 9,
        komi: float = DEFAULT_KOMI,
        time_control: Optional[TimeControl] = None,
    ) -> None:
        """
        (Re)start Go with an empty board.
        ----
        Also used for a rematch once the previous game is complete: all Go state is reset.
        """
        if self.guest_id is None:
            raise GameStateError("Waiting for opponent to join")
        if self.phase in (Phase.PLAY, Phase.SCORING):
            raise GameStateError("Game of Go is already in progress")
        if board_size not in BOARD_SIZES:
            raise InvalidRequestError(
                f"Board size {board_size} not in {', '.join(str(s) for s in BOARD_SIZES)}"
            )

        self.board = Board.empty(board_size)
        self.previous_board = None
        self.current_turn = Color.BLACK
        self.consecutive_passes = 0
        self.captures = {Color.BLACK: 0, Color.WHITE: 0}
        self.history = PositionHistory(capacity=self.history.capacity)
        self.history.append(self.board.fingerprint(Color.BLACK))
        self.komi = komi
        self.dead_stones = {}
        self.agreement = None
        self.final_score = None
        self.completed_at = None
        self.clock = GameClock.start(time_control or TimeControl(), now)
        self._change_phase(Phase.PLAY)

    # -- PLAY PHASE --
    def play(self, player_id: str, point: Point, color: Color, now: float) -> MoveOutcome:
        """
        Attempt to place a stone
        -----

        1. make sure the game is in the PLAY phase and the caller may move with `color` now
        2. let the rules validate the placement (captures, suicide, superko)
        3. commit the new board, captures and position history
        4. settle the mover's clock. Time ran out? --> game over, the turn does not pass.
        5. hand the turn to the opponent
        """
        self._assert_go_active()
        self._assert_phase(Phase.PLAY, "Game is currently in scoring phase")
        player_color = self.color_of(player_id)
        if color != player_color:
            raise WrongColorError("Invalid color for your player")
        self._assert_your_turn(player_color)

        placement = apply_move(self.board, point, color, self.history)

        self.previous_board = self.board
        self.board = placement.board
        self.consecutive_passes = 0
        self.history.append(placement.fingerprint)
        self.captures[color] += len(placement.captured)

        self.clock.on_move(color, now)
        if self.clock.expired is not None:
            self._complete(time_loss_result(self.clock.expired), now)
            return MoveOutcome(point, color, placement.captured, time_expired=True)

        self.current_turn = color.opponent
        return MoveOutcome(point, color, placement.captured)

    def pass_turn(self, player_id: str, now: float) -> PassOutcome:
        """Two passes in a row end the play phase and start scoring."""
        self._assert_go_active()
        self._assert_phase(Phase.PLAY, "Game is already in scoring phase")
        player_color = self.color_of(player_id)
        self._assert_your_turn(player_color)

        self.clock.on_move(player_color, now)
        if self.clock.expired is not None:
            self._complete(time_loss_result(self.clock.expired), now)
            return PassOutcome(player_color, self.consecutive_passes, time_expired=True)

        self.consecutive_passes += 1
        self.current_turn = player_color.opponent

        if self.consecutive_passes >= 2:
            self._enter_scoring(ScoringAgreement(self.default_method))
            return PassOutcome(player_color, self.consecutive_passes, scoring_started=True)
        return PassOutcome(player_color, self.consecutive_passes)

    def tick(self, now: float) -> TickOutcome:
        """Periodic clock update for the player to move."""
        if self.phase != Phase.PLAY or not self.clock.is_running:
            return TickOutcome(changed=False)

        changed = self.clock.tick(self.current_turn, now)
        if self.clock.expired is not None:
            self._complete(time_loss_result(self.clock.expired), now)
            return TickOutcome(changed=True, time_expired=True)
        return TickOutcome(changed=changed)

    def clock_snapshot(self, now: float) -> dict[Color, Optional[dict[str, Any]]]:
        """Clocks as the participants should see them. Only counts down during play."""
        running = self.current_turn if self.phase == Phase.PLAY else None
        return self.clock.remaining(running, now)

    # -- SCORING PHASE --
    def toggle_dead_stone(self, player_id: str, point: Point) -> dict[Point, Color]:
        """Mark a stone dead, or alive again. Any change invalidates earlier scoring confirmations."""
        self._assert_go_active()
        self._assert_phase(Phase.SCORING, "Dead stones can only be marked during scoring")
        self.color_of(player_id)
        if not self.board.is_within_bounds(point):
            raise OutOfBoundsError("Invalid board position")
        stone = self.board.stone_at(point)
        if stone is None:
            raise InvalidRequestError("Cannot mark an empty intersection as dead")

        if point in self.dead_stones:
            del self.dead_stones[point]
        else:
            self.dead_stones[point] = stone

        if self.agreement is not None:
            self.agreement = self.agreement.reset()
        return self.dead_stones

    def finalize_score(self, player_id: str, method: ScoringMethod, now: float) -> ScoringOutcome:
        """
        Confirm scoring with `method`.
        ----

        * From PLAY: the game is force-ended. Everybody counts as confirmed and the score is computed right away.
        * From SCORING: the score is only computed once every participant confirmed the same method.
        """
        self._assert_go_active()
        if self.phase == Phase.COMPLETE:
            raise GameStateError("Game is already complete")
        self.color_of(player_id)

        if self.phase == Phase.PLAY:
            logger.info(f"Force ending game of Go ({method}) requested by {player_id}")
            self._enter_scoring(ScoringAgreement.forced(method, self.participants))
        else:
            current = self.agreement or ScoringAgreement(method)
            self.agreement = current.confirm(player_id, method)

        assert self.agreement is not None
        required = self.required_confirmations
        if not self.agreement.is_complete(required):
            return ScoringOutcome(method, len(self.agreement.confirmations), required)

        confirmations = len(self.agreement.confirmations)
        result = self._compute_score(method)
        self.agreement = self.agreement.reset()
        self._complete(result, now)
        return ScoringOutcome(method, confirmations, required, result)

    # -- ANY PHASE --
    def resign(self, player_id: str, now: float) -> ScoreResult:
        """The resigning player loses immediately. No score breakdown."""
        self._assert_go_active()
        if self.phase == Phase.COMPLETE:
            raise GameStateError("Game is already complete")
        resigning_color = self.color_of(player_id)
        result = resignation_result(resigning_color)
        self._complete(result, now)
        return result

    def dead_stones_as_dicts(self) -> list[dict[str, Any]]:
        return [
            {"row": point.row, "col": point.col, "color": str(color)}
            for point, color in self.dead_stones.items()
        ]

    # -- PRIVATE HELPERS ---
    def _assert_go_active(self) -> None:
        if self.phase is None:
            raise GameStateError("Game of Go is not active")
        if self.guest_id is None:
            raise GameStateError("Waiting for opponent to join")

    def _assert_phase(self, phase: Phase, message: str) -> None:
        if self.phase == Phase.COMPLETE:
            raise GameStateError("Game is already complete")
        if self.phase != phase:
            raise GameStateError(message)

    def _assert_your_turn(self, color: Color) -> None:
        if self.current_turn != color:
            raise NotYourTurnError("Not your turn")

    def _enter_scoring(self, agreement: ScoringAgreement) -> None:
        self.agreement = agreement
        self._change_phase(Phase.SCORING)

    def _compute_score(self, method: ScoringMethod) -> ScoreResult:
        """Remove the dead stones (counted as prisoners for the opponent) and score the remaining board."""
        cleared_board, bonus = remove_dead_stones(self.board, self.dead_stones.keys())
        total_captures = {color: self.captures[color] + bonus[color] for color in Color}
        self.captures = total_captures
        return SCORING_RULES[method](cleared_board, total_captures, self.komi)

    def _complete(self, result: ScoreResult, now: float) -> None:
        self.final_score = result
        self.completed_at = now
        self._change_phase(Phase.COMPLETE)
        logger.info(
            f"Game of Go complete: winner={result.winner} reason={result.reason}"
        )

    def _change_phase(self, new_phase: Phase) -> None:
        self.phase = new_phase
