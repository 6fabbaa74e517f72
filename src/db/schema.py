"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBMatch(Base):
    __tablename__ = "matches"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    host_id: Mapped[str]
    guest_id: Mapped[Optional[str]]
    phase: Mapped[Optional[str]] = mapped_column(index=True)
    board_size: Mapped[int] = mapped_column(default=9)
    board: Mapped[Optional[list[list[Optional[str]]]]] = mapped_column(JSON)
    previous_board: Mapped[Optional[list[list[Optional[str]]]]] = mapped_column(JSON)
    current_turn: Mapped[str] = mapped_column(default="black")
    consecutive_passes: Mapped[int] = mapped_column(default=0)
    captures: Mapped[dict[str, int]] = mapped_column(JSON)
    position_history: Mapped[list[str]] = mapped_column(JSON)
    komi: Mapped[float] = mapped_column(default=6.5)
    dead_stones: Mapped[list[dict[str, Any]]] = mapped_column(JSON)
    pending_scoring_method: Mapped[Optional[str]]
    scoring_confirmations: Mapped[list[str]] = mapped_column(JSON)
    final_score: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON)
    time_control: Mapped[dict[str, Any]] = mapped_column(JSON)
    clock_states: Mapped[dict[str, dict[str, Any]]] = mapped_column(JSON)
    clock_started_at: Mapped[Optional[float]]
    time_expired: Mapped[Optional[str]]
    completed_at: Mapped[Optional[float]]
    version: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
