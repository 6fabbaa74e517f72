"""Unit tests for /src/go/rules.py"""

from typing import Callable

import pytest

from src.core.exceptions import (
    IllegalMoveError,
    OccupiedPointError,
    OutOfBoundsError,
    SuicideError,
    SuperkoError,
)
from src.go.board import Board, Color, Point
from src.go.history import PositionHistory
from src.go.rules import apply_move, find_captures

BoardFactory = Callable[..., Board]


@pytest.fixture
def history() -> PositionHistory:
    return PositionHistory()


# -- BASIC PLACEMENT --
def test_place_on_empty_board(history: PositionHistory) -> None:
    board = Board.empty(9)
    result = apply_move(board, Point(4, 4), Color.BLACK, history)

    assert result.board.stone_at(Point(4, 4)) == Color.BLACK
    assert result.captured == []
    assert result.fingerprint == result.board.fingerprint(Color.WHITE)
    # the input board is untouched
    assert board.is_empty(Point(4, 4))


@pytest.mark.parametrize(
    "point",
    [Point(-1, 0), Point(0, -1), Point(9, 0), Point(0, 9), Point(20, 20)],
)
def test_out_of_bounds_is_rejected(point: Point, history: PositionHistory) -> None:
    board = Board.empty(9)
    with pytest.raises(OutOfBoundsError):
        apply_move(board, point, Color.BLACK, history)
    assert board == Board.empty(9)


@pytest.mark.parametrize("color", [Color.BLACK, Color.WHITE])
def test_occupied_point_is_rejected(color: Color, history: PositionHistory) -> None:
    board = Board.empty(9)
    board.place(Point(2, 3), Color.WHITE)
    before = board.copy()
    with pytest.raises(OccupiedPointError):
        apply_move(board, Point(2, 3), color, history)
    assert board == before


# -- CAPTURES --
def test_capture_single_stone_in_corner(
    board_from: BoardFactory, history: PositionHistory
) -> None:
    """Black corner stone with a single liberty left at (1,0)."""
    board = board_from(
        "B W . .",
        ". . . .",
        ". . . .",
        ". . . .",
    )
    result = apply_move(board, Point(1, 0), Color.WHITE, history)
    assert result.captured == [Point(0, 0)]
    assert result.board.is_empty(Point(0, 0))


def test_capture_lone_stone_9x9(history: PositionHistory) -> None:
    """Black at (0,0), white at (0,1). White plays the remaining liberty (1,0)."""
    board = Board.empty(9)
    board.place(Point(0, 0), Color.BLACK)
    board.place(Point(0, 1), Color.WHITE)

    result = apply_move(board, Point(1, 0), Color.WHITE, history)
    assert result.captured == [Point(0, 0)]
    assert result.board.is_empty(Point(0, 0))
    assert result.board.count_stones() == {Color.BLACK: 0, Color.WHITE: 2}


def test_capture_whole_group_never_a_subset(
    board_from: BoardFactory, history: PositionHistory
) -> None:
    board = board_from(
        "W B B . .",
        "W B B W .",
        ". W W . .",
        ". . . . .",
        ". . . . .",
    )
    result = apply_move(board, Point(0, 3), Color.WHITE, history)
    assert set(result.captured) == {Point(0, 1), Point(0, 2), Point(1, 1), Point(1, 2)}
    for point in result.captured:
        assert result.board.is_empty(point)


def test_capture_multiple_groups_in_one_move(
    board_from: BoardFactory, history: PositionHistory
) -> None:
    """White at (0,1) fills the last liberty of two separate black stones."""
    board = board_from(
        "B . B W",
        "W . W .",
        ". . . .",
        ". . . .",
    )
    result = apply_move(board, Point(0, 1), Color.WHITE, history)
    assert result.captured == [Point(0, 0), Point(0, 2)]
    assert result.board.is_empty(Point(0, 0))
    assert result.board.is_empty(Point(0, 2))


def test_find_captures_deduplicates_shared_group(board_from: BoardFactory) -> None:
    """The same enemy group touching the placed stone twice is only captured once."""
    board = board_from(
        "W B B",
        ". W B",
        ". . W",
    )
    # (1,1) is white and already placed; black group (0,1),(0,2),(1,2) touches it on two sides
    captured = find_captures(board, Point(1, 1), Color.WHITE)
    assert sorted(captured, key=Point.to_tuple) == [Point(0, 1), Point(0, 2), Point(1, 2)]
    assert len(captured) == 3


def test_no_capture_while_group_has_liberties(
    board_from: BoardFactory, history: PositionHistory
) -> None:
    board = board_from(
        "B . .",
        ". . .",
        ". . .",
    )
    result = apply_move(board, Point(0, 1), Color.WHITE, history)
    assert result.captured == []
    assert result.board.stone_at(Point(0, 0)) == Color.BLACK


# -- SUICIDE --
def test_suicide_is_rejected(board_from: BoardFactory, history: PositionHistory) -> None:
    board = board_from(
        ". W .",
        "W . .",
        ". . .",
    )
    before = board.copy()
    with pytest.raises(SuicideError):
        apply_move(board, Point(0, 0), Color.BLACK, history)
    assert board == before


def test_group_suicide_is_rejected(board_from: BoardFactory, history: PositionHistory) -> None:
    """Filling the last liberty of your own group is suicide as well."""
    board = board_from(
        "B . W",
        "W W .",
        ". . .",
    )
    with pytest.raises(SuicideError):
        apply_move(board, Point(0, 1), Color.BLACK, history)


def test_capture_takes_precedence_over_suicide(
    board_from: BoardFactory, history: PositionHistory
) -> None:
    """Without the capture, black at (0,1) would have no liberties."""
    board = board_from(
        "W . W B",
        "B W B .",
        ". B . .",
        ". . . .",
    )
    result = apply_move(board, Point(0, 1), Color.BLACK, history)
    assert set(result.captured) == {Point(0, 0), Point(0, 2), Point(1, 1)}
    assert result.board.stone_at(Point(0, 1)) == Color.BLACK


def test_suicide_is_an_illegal_move(board_from: BoardFactory, history: PositionHistory) -> None:
    board = board_from(
        ". W",
        "W .",
    )
    with pytest.raises(IllegalMoveError):
        apply_move(board, Point(0, 0), Color.BLACK, history)


# -- SUPERKO --
def test_superko_rejects_repeated_position(board_from: BoardFactory) -> None:
    """
    Black captures at (1,1), white immediately recaptures: the resulting position (black to move) already occurred.
    """
    before_capture = board_from(
        ". B W .",
        "B W . W",
        ". B W .",
        ". . . .",
    )
    history = PositionHistory()
    history.append(before_capture.fingerprint(Color.BLACK))

    capture = apply_move(before_capture, Point(1, 2), Color.BLACK, history)
    assert capture.captured == [Point(1, 1)]
    history.append(capture.fingerprint)

    with pytest.raises(SuperkoError):
        apply_move(capture.board, Point(1, 1), Color.WHITE, history)


def test_superko_uses_side_to_move(board_from: BoardFactory) -> None:
    """The same stones with the other side to move is a different position."""
    board = board_from(
        ". . .",
        ". . .",
        ". . .",
    )
    target = board.copy()
    target.place(Point(1, 1), Color.BLACK)
    history = PositionHistory()
    history.append(target.fingerprint(Color.BLACK))

    result = apply_move(board, Point(1, 1), Color.BLACK, history)
    assert result.fingerprint == target.fingerprint(Color.WHITE)


def test_superko_checks_post_capture_board(board_from: BoardFactory) -> None:
    board = board_from(
        "B W .",
        ". . .",
        ". . .",
    )
    after_capture = board.copy()
    after_capture.remove(Point(0, 0))
    after_capture.place(Point(1, 0), Color.WHITE)
    history = PositionHistory()
    history.append(after_capture.fingerprint(Color.BLACK))

    with pytest.raises(SuperkoError):
        apply_move(board, Point(1, 0), Color.WHITE, history)
