"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Any, Optional

# Type aliases to make MatchModel easier to read
StoneColor = str
ParticipantId = str
BoardRows = list[list[Optional[StoneColor]]]


@dataclass
class MatchModel:
    """Transport-safe representation of a match (and its Go state) used between Service, DB, and domain layers."""

    host_id: ParticipantId
    guest_id: Optional[ParticipantId] = None
    phase: Optional[str] = None
    board_size: int = 9
    board: Optional[BoardRows] = None
    previous_board: Optional[BoardRows] = None
    current_turn: StoneColor = "black"
    consecutive_passes: int = 0
    captures: dict[StoneColor, int] = field(
        default_factory=lambda: {"black": 0, "white": 0}
    )
    position_history: list[str] = field(default_factory=list)
    komi: float = 6.5
    dead_stones: list[dict[str, Any]] = field(default_factory=list)
    pending_scoring_method: Optional[str] = None
    scoring_confirmations: list[ParticipantId] = field(default_factory=list)
    final_score: Optional[dict[str, Any]] = None
    time_control: dict[str, Any] = field(default_factory=lambda: {"mode": "none"})
    clock_states: dict[StoneColor, dict[str, Any]] = field(default_factory=dict)
    clock_started_at: Optional[float] = None
    time_expired: Optional[StoneColor] = None
    completed_at: Optional[float] = None
    # Optimistic concurrency token, bumped by the repository on every save
    version: int = 0
