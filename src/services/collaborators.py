"""External collaborators of the match service (implemented by the realtime message layer / stats module)."""

from typing import Protocol
from uuid import UUID

from src.api.models import MatchEvent
from src.core.models import MatchModel


class EventPublisher(Protocol):
    """Fan-out of events to the participants of a match."""

    def publish(self, match_id: UUID, recipients: list[str], event: MatchEvent) -> None: ...


class StatisticsRecorder(Protocol):
    """Aggregates wins / losses / points once a match is complete."""

    def record_result(self, match_id: UUID, match: MatchModel) -> None: ...
