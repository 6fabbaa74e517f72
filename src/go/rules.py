"""Stone placement: captures, the suicide rule and positional superko."""

from dataclasses import dataclass

from src.core.exceptions import (
    OccupiedPointError,
    OutOfBoundsError,
    SuicideError,
    SuperkoError,
)
from src.core.shared_types import Color
from src.go.board import Board, Point
from src.go.history import PositionHistory


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of an accepted placement. `board` is a new board; the input board is never modified."""

    board: Board
    captured: list[Point]
    fingerprint: str


def find_captures(board: Board, placed: Point, color: Color) -> list[Point]:
    """
    Enemy stones captured by the stone just placed at `placed`.
    ---
    Every neighbouring enemy group without liberties is captured as a whole.
    A single placement can capture several independent groups; the result is deduplicated and keeps discovery order.
    """
    opponent = color.opponent
    captured: list[Point] = []
    seen: set[Point] = set()
    for neighbor in board.neighbors(placed):
        if neighbor in seen or board.stone_at(neighbor) != opponent:
            continue
        group = board.find_group(neighbor, opponent)
        seen |= group
        if not board.has_liberties(group):
            captured.extend(sorted(group, key=Point.to_tuple))
    return captured


def apply_move(
    board: Board, point: Point, color: Color, history: PositionHistory
) -> PlacementResult:
    """
    Try to place a `color` stone at `point`.
    ----

    1. Reject out of bounds / occupied points
    2. Place the stone on a scratch copy
    3. Remove every adjacent enemy group left without liberties
    4. No captures? Then the placed stone's own group needs a liberty (suicide rule)
    5. The resulting position (with the opponent to move) must not be in the history (superko)

    NOTE captures take precedence: a capturing move is never checked for suicide.
    """
    if not board.is_within_bounds(point):
        raise OutOfBoundsError("Invalid board position")
    if not board.is_empty(point):
        raise OccupiedPointError("Position already occupied")

    scratch = board.copy()
    scratch.place(point, color)

    captured = find_captures(scratch, point, color)
    for stone in captured:
        scratch.remove(stone)

    if not captured:
        own_group = scratch.find_group(point, color)
        if not scratch.has_liberties(own_group):
            raise SuicideError(
                "Suicide rule: Cannot place stone that would capture your own group"
            )

    fingerprint = scratch.fingerprint(color.opponent)
    if fingerprint in history:
        raise SuperkoError("Superko rule: Cannot repeat a previous board position")

    return PlacementResult(board=scratch, captured=captured, fingerprint=fingerprint)
