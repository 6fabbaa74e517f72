"""Runtime configuration, read from environment variables."""

import logging
import os


class Config:
    DATABASE_URL = os.environ.get("DATABASE_URL") or "sqlite:///go_arena.db"
    DEFAULT_BOARD_SIZE = int(os.environ.get("DEFAULT_BOARD_SIZE", "9"))
    # Komi is the same for every board size
    KOMI = float(os.environ.get("KOMI", "6.5"))
    # Superko lookback window (number of position fingerprints kept per match)
    MAX_POSITION_HISTORY = int(os.environ.get("MAX_POSITION_HISTORY", "2048"))
    DEFAULT_SCORING_METHOD = os.environ.get("DEFAULT_SCORING_METHOD", "chinese")
    # Interval of the background clock sweep (sec)
    CLOCK_TICK_INTERVAL_SEC = float(os.environ.get("CLOCK_TICK_INTERVAL_SEC", "0.5"))
    # Load-mutate-save attempts before a version conflict is reported to the caller
    MATCH_CONFLICT_RETRIES = int(os.environ.get("MATCH_CONFLICT_RETRIES", "3"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def configure_logging(config: type[Config] = Config) -> None:
    """Root logger setup for processes hosting the match engine."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
