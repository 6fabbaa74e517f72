"""Implementation of (Match)Repository using SQLAlchemy"""

import logging
from dataclasses import asdict, replace
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from src.core.exceptions import ConcurrencyConflictError
from src.core.models import MatchModel
from src.core.shared_types import Phase, TimeControlMode
from src.db.schema import DBMatch

logger = logging.getLogger(__name__)

# Columns written from a MatchModel (everything except the version bookkeeping)
_DATA_FIELDS = [name for name in MatchModel.__dataclass_fields__ if name != "version"]


class SQLMatchRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_match(self, match_id: UUID) -> MatchModel | None:
        """Get match by ID, if record exists."""
        match_db = self._fetch_match(match_id)
        if match_db:
            return self._to_model(match_db)
        return None

    def exists(self, match_id: UUID) -> bool:
        return self._fetch_match(match_id) is not None

    def create_match(self, match: MatchModel) -> tuple[MatchModel, UUID]:
        """Store new match and return the stored data + newly created match ID."""
        new_id = uuid4()
        match_db = DBMatch(id=new_id, version=0, **self._data(match))
        self.db.add(match_db)
        self.db.commit()
        self.db.refresh(match_db)
        return self._to_model(match_db), new_id

    def update_match(self, match_id: UUID, match: MatchModel) -> MatchModel | None:
        """
        Compare-and-swap on the version column.
        ---
        The WHERE clause only matches if nobody saved the record since `match` was loaded.
        """
        statement = (
            update(DBMatch)
            .where(DBMatch.id == match_id, DBMatch.version == match.version)
            .values(version=match.version + 1, **self._data(match))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(statement)
        if result.rowcount == 0:
            self.db.rollback()
            if not self.exists(match_id):
                return None
            logger.warning(
                f"Version conflict saving match {match_id} (expected version {match.version})"
            )
            raise ConcurrencyConflictError(
                f"Match {match_id} was modified concurrently. Please retry."
            )
        self.db.commit()
        return replace(match, version=match.version + 1)

    def delete_match(self, match_id: UUID) -> MatchModel | None:
        """Remove a match's record."""
        match_db = self._fetch_match(match_id)
        if not match_db:
            return None
        match_model = self._to_model(match_db)
        self.db.delete(match_db)
        self.db.commit()
        return match_model

    def list_active_timed_matches(self) -> list[tuple[UUID, MatchModel]]:
        query = select(DBMatch).where(
            DBMatch.phase == Phase.PLAY.value, DBMatch.time_expired.is_(None)
        )
        return [
            (match_db.id, self._to_model(match_db))
            for match_db in self.db.scalars(
                query.execution_options(populate_existing=True)
            )
            if match_db.time_control.get("mode", TimeControlMode.NONE.value)
            != TimeControlMode.NONE.value
        ]

    def _fetch_match(self, match_id: UUID) -> DBMatch | None:
        query = select(DBMatch).where(DBMatch.id == match_id)
        # populate_existing: always see the latest committed row, not a stale identity-map copy
        return self.db.scalar(query.execution_options(populate_existing=True))

    def _data(self, match: MatchModel) -> dict:
        data = asdict(match)
        return {name: data[name] for name in _DATA_FIELDS}

    def _to_model(self, match_db: DBMatch) -> MatchModel:
        """Convert SQLAlchemy model to data transfer model."""
        return MatchModel(
            **{name: getattr(match_db, name) for name in _DATA_FIELDS},
            version=match_db.version,
        )
