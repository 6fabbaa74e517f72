"""
End of game scoring.

Territory is found by flood filling the empty regions of the board. Two rule sets are supported:
* Chinese (area): stones + territory
* Japanese (territory): territory + captures
In both cases komi is added to white's score.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional

from src.core.shared_types import Color, ResultReason, ScoringMethod
from src.go.board import Board, Point


@dataclass(frozen=True)
class TerritoryAnalysis:
    territory: dict[Color, int]
    stones: dict[Color, int]


@dataclass(frozen=True)
class ColorScore:
    territory: int
    captures: int
    score: float
    stones: Optional[int] = None
    area: Optional[int] = None


@dataclass(frozen=True)
class ScoreResult:
    """
    Final result of a match.
    ---
    Either a score breakdown (reason SCORE) or, for time losses and resignations, a reason + message without breakdown.
    `winner` is None for an exact tie.
    """

    winner: Optional[Color]
    reason: ResultReason
    method: Optional[ScoringMethod] = None
    komi: Optional[float] = None
    black: Optional[ColorScore] = None
    white: Optional[ColorScore] = None
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "winner": str(self.winner) if self.winner else None,
            "reason": str(self.reason),
        }
        if self.method is not None:
            data["method"] = str(self.method)
        if self.komi is not None:
            data["komi"] = self.komi
        for color, breakdown in ((Color.BLACK, self.black), (Color.WHITE, self.white)):
            if breakdown is not None:
                data[str(color)] = {
                    key: value for key, value in asdict(breakdown).items() if value is not None
                }
        if self.message is not None:
            data["message"] = self.message
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoreResult:
        def _breakdown(key: str) -> Optional[ColorScore]:
            if key not in data:
                return None
            values = data[key]
            return ColorScore(
                territory=values["territory"],
                captures=values["captures"],
                score=values["score"],
                stones=values.get("stones"),
                area=values.get("area"),
            )

        return cls(
            winner=Color(data["winner"]) if data.get("winner") else None,
            reason=ResultReason(data.get("reason", ResultReason.SCORE)),
            method=ScoringMethod(data["method"]) if data.get("method") else None,
            komi=data.get("komi"),
            black=_breakdown("black"),
            white=_breakdown("white"),
            message=data.get("message"),
        )


def analyze_territory(board: Board) -> TerritoryAnalysis:
    """
    Attribute every empty region to the single color bordering it, if there is one.
    ---
    A region bordered by both colors (or by none at all, e.g. an empty board) is dame and counts for nobody.
    """
    territory = {Color.BLACK: 0, Color.WHITE: 0}
    visited: set[Point] = set()

    for start in board.points():
        if start in visited or not board.is_empty(start):
            continue

        region_size = 0
        bordering: set[Color] = set()
        queue = deque([start])
        visited.add(start)
        while queue:
            point = queue.popleft()
            region_size += 1
            for neighbor in board.neighbors(point):
                stone = board.stone_at(neighbor)
                if stone is not None:
                    bordering.add(stone)
                elif neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)

        if len(bordering) == 1:
            territory[bordering.pop()] += region_size

    return TerritoryAnalysis(territory=territory, stones=board.count_stones())


def remove_dead_stones(
    board: Board, dead_stones: Iterable[Point]
) -> tuple[Board, dict[Color, int]]:
    """
    Clear the stones marked dead (on a copy) and count them as prisoners for the opponent.

    NOTE entries that are off the board or no longer hold a stone are skipped.
    """
    cleared = board.copy()
    bonus = {Color.BLACK: 0, Color.WHITE: 0}
    for point in dead_stones:
        if not cleared.is_within_bounds(point):
            continue
        stone = cleared.stone_at(point)
        if stone is None:
            continue
        cleared.remove(point)
        bonus[stone.opponent] += 1
    return cleared, bonus


def _winner(black_score: float, white_score: float) -> Optional[Color]:
    if black_score == white_score:
        return None
    return Color.WHITE if white_score > black_score else Color.BLACK


def chinese_score(board: Board, captures: dict[Color, int], komi: float) -> ScoreResult:
    """Area scoring: stones on the board + surrounded territory."""
    analysis = analyze_territory(board)
    black_area = analysis.stones[Color.BLACK] + analysis.territory[Color.BLACK]
    white_area = analysis.stones[Color.WHITE] + analysis.territory[Color.WHITE]
    black_score = black_area
    white_score = white_area + komi
    return ScoreResult(
        winner=_winner(black_score, white_score),
        reason=ResultReason.SCORE,
        method=ScoringMethod.CHINESE,
        komi=komi,
        black=ColorScore(
            territory=analysis.territory[Color.BLACK],
            captures=captures[Color.BLACK],
            score=black_score,
            stones=analysis.stones[Color.BLACK],
            area=black_area,
        ),
        white=ColorScore(
            territory=analysis.territory[Color.WHITE],
            captures=captures[Color.WHITE],
            score=white_score,
            stones=analysis.stones[Color.WHITE],
            area=white_area,
        ),
    )


def japanese_score(board: Board, captures: dict[Color, int], komi: float) -> ScoreResult:
    """Territory scoring: surrounded territory + prisoners."""
    analysis = analyze_territory(board)
    black_score = analysis.territory[Color.BLACK] + captures[Color.BLACK]
    white_score = analysis.territory[Color.WHITE] + captures[Color.WHITE] + komi
    return ScoreResult(
        winner=_winner(black_score, white_score),
        reason=ResultReason.SCORE,
        method=ScoringMethod.JAPANESE,
        komi=komi,
        black=ColorScore(
            territory=analysis.territory[Color.BLACK],
            captures=captures[Color.BLACK],
            score=black_score,
        ),
        white=ColorScore(
            territory=analysis.territory[Color.WHITE],
            captures=captures[Color.WHITE],
            score=white_score,
        ),
    )


SCORING_RULES = {
    ScoringMethod.CHINESE: chinese_score,
    ScoringMethod.JAPANESE: japanese_score,
}


def time_loss_result(expired: Color) -> ScoreResult:
    winner = expired.opponent
    return ScoreResult(
        winner=winner,
        reason=ResultReason.TIME,
        message=f"{expired.value.capitalize()} ran out of time. {winner.value.capitalize()} wins.",
    )


def resignation_result(resigned: Color) -> ScoreResult:
    winner = resigned.opponent
    return ScoreResult(
        winner=winner,
        reason=ResultReason.RESIGNATION,
        message=f"{resigned.value.capitalize()} resigned. {winner.value.capitalize()} wins.",
    )
