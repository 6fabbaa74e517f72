"""The Go board: a square grid of intersections that are empty, black or white. Plus the group / liberty analysis every rule builds on."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterator, Optional, Self

from src.core.shared_types import Color

# Go is played on a handful of standard sizes
BOARD_SIZES = (9, 13, 19)

DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))

Stone = Optional[Color]


@dataclass(frozen=True)
class Point:
    row: int
    col: int

    @classmethod
    def from_dict(cls, data: dict) -> Point:
        return cls(int(data["row"]), int(data["col"]))

    def to_tuple(self) -> tuple[int, int]:
        return (self.row, self.col)


@dataclass
class Board:
    size: int
    grid: list[list[Stone]]

    @classmethod
    def empty(cls, size: int) -> Self:
        return cls(size, [[None] * size for _ in range(size)])

    @classmethod
    def from_rows(cls, rows: list[list[Optional[str]]]) -> Self:
        """Build from the persisted representation: rows of 'black' / 'white' / None"""
        grid = [[Color(cell) if cell else None for cell in row] for row in rows]
        return cls(len(grid), grid)

    def to_rows(self) -> list[list[Optional[str]]]:
        return [[str(cell) if cell else None for cell in row] for row in self.grid]

    def copy(self) -> Board:
        """Scratch copy. Rule checks never touch the original grid."""
        return Board(self.size, [list(row) for row in self.grid])

    def fingerprint(self, next_to_move: Color) -> str:
        """Whole-board position together with the side to move next."""
        return json.dumps({"board": self.to_rows(), "next": str(next_to_move)})

    # -- ACCESS / MUTATION --
    def is_within_bounds(self, point: Point) -> bool:
        return 0 <= point.row < self.size and 0 <= point.col < self.size

    def stone_at(self, point: Point) -> Stone:
        return self.grid[point.row][point.col]

    def is_empty(self, point: Point) -> bool:
        return self.stone_at(point) is None

    def place(self, point: Point, color: Color) -> None:
        self.grid[point.row][point.col] = color

    def remove(self, point: Point) -> None:
        self.grid[point.row][point.col] = None

    def points(self) -> Iterator[Point]:
        for row in range(self.size):
            for col in range(self.size):
                yield Point(row, col)

    def count_stones(self) -> dict[Color, int]:
        counts = {Color.BLACK: 0, Color.WHITE: 0}
        for row in self.grid:
            for cell in row:
                if cell is not None:
                    counts[cell] += 1
        return counts

    # -- GROUPS / LIBERTIES --
    def neighbors(self, point: Point) -> list[Point]:
        """Orthogonally adjacent points that lie on the board."""
        candidates = (
            Point(point.row + d_row, point.col + d_col) for d_row, d_col in DIRECTIONS
        )
        return [p for p in candidates if self.is_within_bounds(p)]

    def find_group(self, start: Point, color: Color) -> set[Point]:
        """
        Flood fill from `start` over connected stones of `color`.
        ---
        Uses an explicit stack (a 19x19 board is too big for comfortable recursion).
        Returns an empty set if `start` does not hold a stone of `color`.
        """
        group: set[Point] = set()
        stack = [start]
        while stack:
            point = stack.pop()
            if point in group:
                continue
            if not self.is_within_bounds(point) or self.stone_at(point) != color:
                continue
            group.add(point)
            stack.extend(n for n in self.neighbors(point) if n not in group)
        return group

    def has_liberties(self, group: set[Point]) -> bool:
        """True as soon as any stone of the group touches an empty point."""
        return any(
            self.is_empty(neighbor)
            for point in group
            for neighbor in self.neighbors(point)
        )
