"""
Agreement on how to score a finished game.

Both participants have to confirm the same scoring method before the score is computed:
Proposed(method) --> Confirmed(participants) --> Finalized
Transitions are pure: every method returns a new ScoringAgreement.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

from src.core.exceptions import ScoringInProgressError
from src.core.shared_types import ScoringMethod


@dataclass(frozen=True)
class ScoringAgreement:
    method: ScoringMethod
    confirmations: frozenset[str] = field(default_factory=frozenset)

    def confirm(self, participant: str, method: ScoringMethod) -> ScoringAgreement:
        """
        Add the participant's confirmation for `method`.
        ---
        While confirmations are pending for another method, a different proposal is rejected.
        Without pending confirmations, the proposal replaces the current method.
        """
        if self.confirmations and method != self.method:
            raise ScoringInProgressError(
                f"Scoring already in progress using {self.method} rules"
            )
        return ScoringAgreement(method, self.confirmations | {participant})

    def reset(self) -> ScoringAgreement:
        """Dead stones changed: everybody has to agree again."""
        return replace(self, confirmations=frozenset())

    @classmethod
    def forced(cls, method: ScoringMethod, participants: Iterable[str]) -> ScoringAgreement:
        """Force-ended game: all participants count as confirmed."""
        return cls(method, frozenset(participants))

    def is_complete(self, required: int) -> bool:
        return len(self.confirmations) >= required
