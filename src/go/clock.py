"""
Chess-clock style time control for Go.

Two systems are supported:
* Fischer: main time plus a fixed increment after every move (no upper limit).
* Japanese byo-yomi: main time, followed by a number of overtime periods of fixed length.
  A move made within the period keeps the period, a move that takes longer consumes one. Running out of periods loses.

Only the color to move has a running clock. All times are in (float) seconds, timestamps are epoch seconds.
"""

from __future__ import annotations

from copy import copy
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from src.core.shared_types import Color, TimeControlMode


@dataclass(frozen=True)
class TimeControl:
    """Configuration, fixed for the whole match."""

    mode: TimeControlMode = TimeControlMode.NONE
    main_time: float = 0
    increment: float = 0
    byo_yomi_time: float = 0
    byo_yomi_periods: int = 0

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> TimeControl:
        """A timed mode without any main time is treated as untimed."""
        if not data:
            return cls()
        mode = TimeControlMode(data.get("mode") or TimeControlMode.NONE)
        main_time = float(data.get("main_time") or 0)
        if mode == TimeControlMode.NONE or main_time <= 0:
            return cls()
        return cls(
            mode=mode,
            main_time=main_time,
            increment=float(data.get("increment") or 0),
            byo_yomi_time=float(data.get("byo_yomi_time") or 0),
            byo_yomi_periods=int(data.get("byo_yomi_periods") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["mode"] = str(self.mode)
        return data

    @property
    def is_timed(self) -> bool:
        return self.mode != TimeControlMode.NONE


@dataclass
class ClockState:
    """Mutable clock of one player."""

    main_time: float = 0
    is_byo_yomi: bool = False
    byo_yomi_time: float = 0
    byo_yomi_periods: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClockState:
        return cls(
            main_time=float(data.get("main_time", 0)),
            is_byo_yomi=bool(data.get("is_byo_yomi", False)),
            byo_yomi_time=float(data.get("byo_yomi_time", 0)),
            byo_yomi_periods=int(data.get("byo_yomi_periods", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GameClock:
    control: TimeControl
    states: dict[Color, ClockState] = field(default_factory=dict)
    started_at: Optional[float] = None
    expired: Optional[Color] = None

    @classmethod
    def start(cls, control: TimeControl, now: float) -> GameClock:
        """Fresh clocks for both players. Black's clock starts running immediately."""
        if not control.is_timed:
            return cls(control, {color: ClockState() for color in Color})
        return cls(
            control=control,
            states={color: ClockState(main_time=control.main_time) for color in Color},
            started_at=now,
        )

    @property
    def is_running(self) -> bool:
        return self.control.is_timed and self.expired is None and self.started_at is not None

    # -- UPDATES --
    def on_move(self, color: Color, now: float) -> None:
        """
        Settle the clock of `color`, who just moved (or passed).
        ----

        Fischer: subtract the elapsed time. Reaching zero flags the player (no increment), otherwise the increment is added.
        Japanese: subtract from main time first. Whatever is left over is measured against the current byo-yomi period:
        within the period --> period timer resets, otherwise exactly one period is consumed.
        """
        if not self.is_running:
            return

        elapsed = self._elapsed(now)
        state = self.states[color]
        if self.control.mode == TimeControlMode.FISCHER:
            state.main_time = max(0.0, state.main_time - elapsed)
            if state.main_time <= 0:
                self.expired = color
                return
            state.main_time += self.control.increment
        else:
            self._settle_byo_yomi_move(color, state, elapsed)
            if self.expired is not None:
                return

        self.started_at = now

    def tick(self, color: Color, now: float) -> bool:
        """
        Periodic deduction for the player whose clock is running (no move was made, so no increment / period reset).
        Returns True if the clock state changed.
        """
        if not self.is_running:
            return False

        elapsed = self._elapsed(now)
        if elapsed <= 0:
            return False

        state = self.states[color]
        if self.control.mode == TimeControlMode.FISCHER:
            state.main_time = max(0.0, state.main_time - elapsed)
            if state.main_time <= 0:
                self.expired = color
        elif self._drain(state, elapsed):
            self.expired = color

        # Later deductions only count time from here on
        self.started_at = now
        return True

    # -- QUERIES --
    def remaining(
        self, running: Optional[Color], now: float
    ) -> dict[Color, Optional[dict[str, Any]]]:
        """
        Display snapshot of both clocks. Time elapsed since the last settlement is only applied to the `running` color
        (None: no clock is running, e.g. after the play phase).
        """
        if not self.control.is_timed:
            return {color: None for color in Color}

        snapshot: dict[Color, Optional[dict[str, Any]]] = {}
        for color in Color:
            state = copy(self.states[color])
            if color == running and self.is_running:
                elapsed = self._elapsed(now)
                if self.control.mode == TimeControlMode.FISCHER:
                    state.main_time = max(0.0, state.main_time - elapsed)
                else:
                    self._drain(state, elapsed)
            snapshot[color] = {"mode": str(self.control.mode), **state.to_dict()}
        return snapshot

    def seconds_until_expiry(self, color: Color, now: float) -> Optional[float]:
        """How long `color` can still think before flagging (None if the clock is not running)."""
        if not self.is_running:
            return None
        state = self.states[color]
        budget = state.main_time
        if self.control.mode == TimeControlMode.JAPANESE:
            if state.is_byo_yomi:
                budget += state.byo_yomi_time + max(0, state.byo_yomi_periods - 1) * self.control.byo_yomi_time
            else:
                budget += self.control.byo_yomi_periods * self.control.byo_yomi_time
        return max(0.0, budget - self._elapsed(now))

    # -- SERIALIZATION --
    def to_dicts(self) -> dict[str, dict[str, Any]]:
        return {str(color): state.to_dict() for color, state in self.states.items()}

    # -- PRIVATE HELPERS --
    def _elapsed(self, now: float) -> float:
        if self.started_at is None:
            return 0.0
        return max(0.0, now - self.started_at)

    def _enter_byo_yomi(self, state: ClockState) -> None:
        state.main_time = 0.0
        state.is_byo_yomi = True
        state.byo_yomi_time = self.control.byo_yomi_time
        state.byo_yomi_periods = self.control.byo_yomi_periods

    def _settle_byo_yomi_move(self, color: Color, state: ClockState, elapsed: float) -> None:
        overtime = elapsed
        if not state.is_byo_yomi:
            if elapsed < state.main_time:
                state.main_time -= elapsed
                return
            overtime = elapsed - state.main_time
            self._enter_byo_yomi(state)
            if state.byo_yomi_periods <= 0:
                self.expired = color
                return

        if overtime <= state.byo_yomi_time:
            state.byo_yomi_time = self.control.byo_yomi_time
            return

        state.byo_yomi_periods = max(0, state.byo_yomi_periods - 1)
        if state.byo_yomi_periods <= 0:
            state.byo_yomi_time = 0.0
            self.expired = color
            return
        state.byo_yomi_time = self.control.byo_yomi_time

    def _drain(self, state: ClockState, elapsed: float) -> bool:
        """
        Let `elapsed` seconds run off a byo-yomi clock: main time first, then period after period.
        Returns True when the last period ran out.
        """
        remaining = elapsed
        if not state.is_byo_yomi:
            if remaining < state.main_time:
                state.main_time -= remaining
                return False
            remaining -= state.main_time
            self._enter_byo_yomi(state)
            if state.byo_yomi_periods <= 0:
                return True

        while remaining > 0:
            if remaining <= state.byo_yomi_time:
                state.byo_yomi_time -= remaining
                return False
            remaining -= state.byo_yomi_time
            state.byo_yomi_periods = max(0, state.byo_yomi_periods - 1)
            if state.byo_yomi_periods <= 0:
                state.byo_yomi_time = 0.0
                return True
            state.byo_yomi_time = self.control.byo_yomi_time
        return False
