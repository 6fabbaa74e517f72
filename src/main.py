"""
Wiring of the match engine for a hosting process (the realtime message layer).

Handlers of the message layer call `arena.service`, the arena itself keeps the background clocks running.
"""

import logging
from typing import Optional

from sqlalchemy.orm import scoped_session, sessionmaker

from src.core.config import Config, configure_logging
from src.db.sql_repository import SQLMatchRepository
from src.services.collaborators import EventPublisher, StatisticsRecorder
from src.services.match_service import GoMatchService
from src.services.scheduler import ClockSweeper, ThreadingMatchScheduler

logger = logging.getLogger(__name__)


class GoArena:
    def __init__(
        self,
        publisher: EventPublisher,
        statistics: Optional[StatisticsRecorder] = None,
        session_factory: Optional[sessionmaker] = None,
        config: type[Config] = Config,
    ) -> None:
        if session_factory is None:
            from src.db.database import SessionLocal

            session_factory = SessionLocal
        # Timers and the sweeper run on their own threads: one session per thread
        self.session = scoped_session(session_factory)
        self.scheduler = ThreadingMatchScheduler()
        self.service = GoMatchService(
            SQLMatchRepository(self.session),
            publisher,
            scheduler=self.scheduler,
            statistics=statistics,
            config=config,
        )
        self.sweeper = ClockSweeper(self._sweep, config.CLOCK_TICK_INTERVAL_SEC)

    def start(self) -> None:
        self.sweeper.start()

    def stop(self) -> None:
        self.sweeper.stop()
        self.scheduler.shutdown()
        self.session.remove()
        logger.info("Go arena stopped")

    def _sweep(self) -> None:
        try:
            self.service.sweep_clocks()
        finally:
            self.session.remove()


def create_arena(
    publisher: EventPublisher, statistics: Optional[StatisticsRecorder] = None
) -> GoArena:
    """Entry point for the hosting process: logging set up from the environment, clocks running."""
    configure_logging(Config)
    arena = GoArena(publisher, statistics)
    arena.start()
    return arena
