"""Protocol repository (can implement later for SQL Alchemy / a document store etc.)"""

from typing import Protocol
from uuid import UUID

from src.core.models import MatchModel


class MatchRepository(Protocol):
    """Persistence layer orchestration"""

    def get_match(self, match_id: UUID) -> MatchModel | None:
        """Get match by ID, if record exists."""
        ...

    def exists(self, match_id: UUID) -> bool:
        """Check if a record exists for the given ID."""
        ...

    def create_match(self, match: MatchModel) -> tuple[MatchModel, UUID]:
        """Store new match and return the stored data + newly created match ID."""
        ...

    def update_match(self, match_id: UUID, match: MatchModel) -> MatchModel | None:
        """
        Overwrite an existing record.
        ---
        `match.version` must equal the stored version (ConcurrencyConflictError otherwise). The returned model carries the bumped version.
        Returns None if the record does not exist (anymore).
        """
        ...

    def delete_match(self, match_id: UUID) -> MatchModel | None:
        """Remove a match's record."""
        ...

    def list_active_timed_matches(self) -> list[tuple[UUID, MatchModel]]:
        """Matches in the play phase with a running (timed, not expired) clock."""
        ...
