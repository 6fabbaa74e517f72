"""
Type definitions used across layers
"""

from enum import StrEnum


class Color(StrEnum):
    BLACK = "black"
    WHITE = "white"

    @property
    def opponent(self) -> "Color":
        return Color.WHITE if self == Color.BLACK else Color.BLACK


class Phase(StrEnum):
    """Go phases. A match that has not started Go yet has no phase (None)."""

    PLAY = "play"
    SCORING = "scoring"
    COMPLETE = "complete"


class ScoringMethod(StrEnum):
    CHINESE = "chinese"
    JAPANESE = "japanese"


class TimeControlMode(StrEnum):
    NONE = "none"
    FISCHER = "fischer"
    JAPANESE = "japanese"


class ResultReason(StrEnum):
    SCORE = "score"
    TIME = "time"
    RESIGNATION = "resignation"
