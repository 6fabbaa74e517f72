"""Orchestration of communication from the realtime message layer to Go logic and persistence layers (and events in the reverse direction)."""

import logging
import time
from typing import Callable, Optional, TypeVar
from uuid import UUID

from src.api.models import (
    CreateMatchRequest,
    DeadStonesUpdatedEvent,
    FinalizeScoreRequest,
    GetMatchRequest,
    JoinMatchRequest,
    MatchEvent,
    MatchResponse,
    MatchStartedEvent,
    MoveAppliedEvent,
    PassAppliedEvent,
    PassRequest,
    ResignedEvent,
    ResignRequest,
    ScoringFinalizedEvent,
    ScoringPendingEvent,
    ScoringStartedEvent,
    StartGoRequest,
    StoneModel,
    SubmitMoveRequest,
    TimeExpiredEvent,
    TimeUpdateEvent,
    ToggleDeadStoneRequest,
)
from src.core.config import Config
from src.core.exceptions import ConcurrencyConflictError, RepositoryError
from src.core.models import MatchModel
from src.core.shared_types import Phase, ScoringMethod
from src.db.repository import MatchRepository
from src.go.board import Point
from src.go.clock import TimeControl
from src.go.match import GoMatch
from src.services.collaborators import EventPublisher, StatisticsRecorder
from src.services.scheduler import MatchScheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GoMatchService:
    """
    Orchestration of layers for Go matches.
    ---
    Every handler loads a fresh copy of the match, lets the domain mutate it, saves it and then fans out events.
    Saves are version checked: when another handler saved the same match in between, the whole cycle is retried.
    """

    def __init__(
        self,
        repository: MatchRepository,
        publisher: EventPublisher,
        scheduler: Optional[MatchScheduler] = None,
        statistics: Optional[StatisticsRecorder] = None,
        now: Callable[[], float] = time.time,
        config: type[Config] = Config,
    ) -> None:
        self.repo = repository
        self.publisher = publisher
        self.scheduler = scheduler
        self.statistics = statistics
        self.now = now
        self.config = config

    # -- MATCH LIFECYCLE ---
    def create_match(self, request: CreateMatchRequest) -> MatchResponse:
        """Host opens a new match."""
        match = GoMatch.new_match(
            request.player_id,
            board_size=self.config.DEFAULT_BOARD_SIZE,
            komi=self.config.KOMI,
        )
        stored, match_id = self.repo.create_match(match.to_model())
        logger.info(f"Match {match_id} created by {request.player_id}")
        return self._create_match_response(match_id, stored)

    def join_match(self, request: JoinMatchRequest) -> MatchResponse:
        """Second participant joins."""
        match, _ = self._mutate(request.match_id, lambda m: m.join(request.player_id))
        logger.info(f"{request.player_id} joined match {request.match_id}")
        return self._create_match_response(request.match_id, match.to_model())

    def start_go(self, request: StartGoRequest) -> MatchResponse:
        """Start (or restart for a rematch) a game of Go with the requested board size / time control."""
        now = self.now()
        time_control = TimeControl.from_dict(
            request.time_control.model_dump() if request.time_control else None
        )

        def _start(match: GoMatch) -> None:
            match.color_of(request.player_id)
            match.start(
                now,
                board_size=request.board_size,
                komi=self.config.KOMI,
                time_control=time_control,
            )

        match, _ = self._mutate(request.match_id, _start)
        logger.info(
            f"Go started in match {request.match_id}: size={request.board_size} time_control={time_control.mode}"
        )
        self._publish(
            request.match_id,
            match,
            MatchStartedEvent(
                match_id=request.match_id,
                board_size=match.board.size,
                komi=match.komi,
                current_turn=match.current_turn,
                time_control=match.clock.control.to_dict(),
                clocks=self._clocks(match, now),
            ),
        )
        self._arm_expiry_timer(request.match_id, match, now)
        return self._create_match_response(request.match_id, match.to_model())

    def get_match_state(self, request: GetMatchRequest) -> MatchResponse:
        model = self._fetch_match(request.match_id)
        return self._create_match_response(request.match_id, model)

    # -- PLAY PHASE ---
    def submit_move(self, request: SubmitMoveRequest) -> MatchResponse:
        """Stone placement."""
        now = self.now()
        point = Point(request.row, request.col)
        match, outcome = self._mutate(
            request.match_id,
            lambda m: m.play(request.player_id, point, request.color, now),
        )

        if outcome.time_expired:
            self._on_complete(request.match_id, match)
            return self._create_match_response(request.match_id, match.to_model())

        captured_note = (
            f" and captured {len(outcome.captured)} stone(s)" if outcome.captured else ""
        )
        self._publish(
            request.match_id,
            match,
            MoveAppliedEvent(
                match_id=request.match_id,
                board=match.board.to_rows(),
                last_move=StoneModel(row=point.row, col=point.col, color=outcome.color),
                captured=[p.to_tuple() for p in outcome.captured],
                captures=self._captures(match),
                current_turn=match.current_turn,
                phase=str(match.phase),
                komi=match.komi,
                clocks=self._clocks(match, now),
                message=f"{request.player_id} placed a {outcome.color} stone at ({point.row + 1}, {point.col + 1}){captured_note}",
            ),
        )
        self._arm_expiry_timer(request.match_id, match, now)
        return self._create_match_response(request.match_id, match.to_model())

    def pass_turn(self, request: PassRequest) -> MatchResponse:
        """A pass. The second consecutive pass starts the scoring phase."""
        now = self.now()
        match, outcome = self._mutate(
            request.match_id, lambda m: m.pass_turn(request.player_id, now)
        )

        if outcome.time_expired:
            self._on_complete(request.match_id, match)
            return self._create_match_response(request.match_id, match.to_model())

        follow_up = (
            " Both players passed. Entering scoring phase."
            if outcome.scoring_started
            else " Waiting for opponent."
        )
        self._publish(
            request.match_id,
            match,
            PassAppliedEvent(
                match_id=request.match_id,
                color=outcome.color,
                consecutive_passes=outcome.consecutive_passes,
                current_turn=match.current_turn,
                phase=str(match.phase),
                clocks=self._clocks(match, now),
                message=f"{request.player_id} passed.{follow_up}",
            ),
        )

        if outcome.scoring_started:
            self._cancel_expiry_timer(request.match_id)
            self._publish(
                request.match_id,
                match,
                ScoringStartedEvent(
                    match_id=request.match_id,
                    board=match.board.to_rows(),
                    board_size=match.board.size,
                    komi=match.komi,
                    captures=self._captures(match),
                    dead_stones=self._dead_stones(match),
                    message="Both players passed. Entering dead stone marking phase.",
                ),
            )
        else:
            self._arm_expiry_timer(request.match_id, match, now)
        return self._create_match_response(request.match_id, match.to_model())

    # -- SCORING PHASE ---
    def toggle_dead_stone(self, request: ToggleDeadStoneRequest) -> MatchResponse:
        point = Point(request.row, request.col)
        match, _ = self._mutate(
            request.match_id, lambda m: m.toggle_dead_stone(request.player_id, point)
        )
        self._publish(
            request.match_id,
            match,
            DeadStonesUpdatedEvent(
                match_id=request.match_id,
                dead_stones=self._dead_stones(match),
                updated_by=request.player_id,
            ),
        )
        return self._create_match_response(request.match_id, match.to_model())

    def finalize_score(self, request: FinalizeScoreRequest) -> MatchResponse:
        """Confirm (or, during play, force) the end of the game using the requested scoring method."""
        now = self.now()
        method = ScoringMethod(request.method)
        match, outcome = self._mutate(
            request.match_id,
            lambda m: m.finalize_score(request.player_id, method, now),
        )

        if not outcome.finalized:
            self._publish(
                request.match_id,
                match,
                ScoringPendingEvent(
                    match_id=request.match_id,
                    method=method,
                    confirmations=outcome.confirmations,
                    required=outcome.required,
                    message=f"{request.player_id} confirmed scoring using {method} rules.",
                ),
            )
            return self._create_match_response(request.match_id, match.to_model())

        assert outcome.result is not None
        self._publish(
            request.match_id,
            match,
            ScoringFinalizedEvent(
                match_id=request.match_id,
                method=method,
                result=outcome.result.to_dict(),
            ),
        )
        self._on_complete(request.match_id, match, announce_time_loss=False)
        return self._create_match_response(request.match_id, match.to_model())

    def resign(self, request: ResignRequest) -> MatchResponse:
        now = self.now()
        match, result = self._mutate(
            request.match_id, lambda m: m.resign(request.player_id, now)
        )
        resigned = match.color_of(request.player_id)
        assert result.winner is not None and result.message is not None
        self._publish(
            request.match_id,
            match,
            ResignedEvent(
                match_id=request.match_id,
                resigned=resigned,
                winner=result.winner,
                message=result.message,
            ),
        )
        self._on_complete(request.match_id, match, announce_time_loss=False)
        return self._create_match_response(request.match_id, match.to_model())

    # -- CLOCKS ---
    def tick_match(self, match_id: UUID) -> None:
        """Clock update for a single match (fired by the expiry timer)."""
        model = self.repo.get_match(match_id)
        if model is None:
            logger.debug(f"Match {match_id} vanished before its clock tick")
            return
        match = self._tick(match_id, model)
        # Still in play, e.g. at the exact end of a byo-yomi period
        if match is not None and match.phase == Phase.PLAY:
            self._arm_expiry_timer(match_id, match, self.now())

    def sweep_clocks(self) -> None:
        """
        Periodic update of all running clocks.
        ---
        NOTE a match may complete / disappear between the listing and the save: the version check on save catches that, and
        that match is simply skipped until the next sweep.
        """
        for match_id, model in self.repo.list_active_timed_matches():
            self._tick(match_id, model)

    # -- Internal helpers --
    def _tick(self, match_id: UUID, model: MatchModel) -> Optional[GoMatch]:
        """Returns the saved match, or None if nothing was saved."""
        now = self.now()
        match = self._to_domain(model)
        outcome = match.tick(now)
        if not outcome.changed:
            return None
        try:
            saved = self.repo.update_match(match_id, match.to_model())
        except ConcurrencyConflictError:
            logger.debug(f"Skipping clock tick for match {match_id}: modified concurrently")
            return None
        if saved is None:
            return None
        match.version = saved.version

        self._publish(
            match_id,
            match,
            TimeUpdateEvent(match_id=match_id, clocks=self._clocks(match, now)),
        )
        if outcome.time_expired:
            self._on_complete(match_id, match)
        return match

    def _mutate(self, match_id: UUID, action: Callable[[GoMatch], T]) -> tuple[GoMatch, T]:
        """
        Load --> apply domain action --> version checked save.
        ----
        A domain error aborts without saving anything. A version conflict restarts from a freshly loaded copy.
        """
        retries = max(1, self.config.MATCH_CONFLICT_RETRIES)
        for attempt in range(1, retries + 1):
            match = self._to_domain(self._fetch_match(match_id))
            outcome = action(match)
            try:
                saved = self.repo.update_match(match_id, match.to_model())
            except ConcurrencyConflictError:
                if attempt == retries:
                    raise
                logger.info(
                    f"Retrying request on match {match_id} after version conflict (attempt {attempt}/{retries})"
                )
                continue
            if saved is None:
                raise RepositoryError(f"Match with {match_id=} not found.")
            match.version = saved.version
            return match, outcome
        raise AssertionError("unreachable")

    def _on_complete(
        self, match_id: UUID, match: GoMatch, announce_time_loss: bool = True
    ) -> None:
        """Stop timers, announce a time loss (if that ended the game) and hand the result to the statistics."""
        self._cancel_expiry_timer(match_id)
        result = match.final_score
        if announce_time_loss and match.clock.expired is not None and result is not None:
            assert result.winner is not None and result.message is not None
            self._publish(
                match_id,
                match,
                TimeExpiredEvent(
                    match_id=match_id,
                    expired=match.clock.expired,
                    winner=result.winner,
                    message=result.message,
                ),
            )
        if self.statistics is not None:
            self.statistics.record_result(match_id, match.to_model())

    def _arm_expiry_timer(self, match_id: UUID, match: GoMatch, now: float) -> None:
        if self.scheduler is None:
            return
        delay = match.clock.seconds_until_expiry(match.current_turn, now)
        if match.phase != Phase.PLAY or delay is None:
            self.scheduler.cancel(match_id)
            return
        self.scheduler.schedule(match_id, delay, lambda: self.tick_match(match_id))

    def _cancel_expiry_timer(self, match_id: UUID) -> None:
        if self.scheduler is not None:
            self.scheduler.cancel(match_id)

    def _publish(self, match_id: UUID, match: GoMatch, event: MatchEvent) -> None:
        self.publisher.publish(match_id, match.participants, event)

    def _to_domain(self, model: MatchModel) -> GoMatch:
        return GoMatch.from_model(
            model,
            history_capacity=self.config.MAX_POSITION_HISTORY,
            default_method=ScoringMethod(self.config.DEFAULT_SCORING_METHOD),
        )

    def _fetch_match(self, match_id: UUID) -> MatchModel:
        """Attempt to find the match in the repository and raise error if it fails."""
        match_model = self.repo.get_match(match_id)
        if match_model is None:
            raise RepositoryError(f"Match with {match_id=} not found.")
        return match_model

    def _clocks(self, match: GoMatch, now: float) -> dict[str, Optional[dict]]:
        return {str(color): snapshot for color, snapshot in match.clock_snapshot(now).items()}

    def _captures(self, match: GoMatch) -> dict[str, int]:
        return {str(color): count for color, count in match.captures.items()}

    def _dead_stones(self, match: GoMatch) -> list[StoneModel]:
        return [StoneModel(**stone) for stone in match.dead_stones_as_dicts()]

    def _create_match_response(self, match_id: UUID, model: MatchModel) -> MatchResponse:
        """Convert info in MatchModel to a MatchResponse (for match with given ID.)"""
        match = self._to_domain(model)
        return MatchResponse(
            match_id=match_id,
            host_id=model.host_id,
            guest_id=model.guest_id,
            phase=model.phase,
            board_size=model.board_size,
            board=model.board,
            current_turn=model.current_turn,
            consecutive_passes=model.consecutive_passes,
            captures=model.captures,
            komi=model.komi,
            dead_stones=[StoneModel(**stone) for stone in model.dead_stones],
            pending_scoring_method=model.pending_scoring_method,
            confirmations=len(model.scoring_confirmations),
            final_score=model.final_score,
            clocks=self._clocks(match, self.now()),
        )
