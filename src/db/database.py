"""Engine and session factory for the configured database"""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.core.config import Config
from src.db.schema import Base


def engine_options(url: str) -> dict[str, Any]:
    """Expiry timers and the clock sweeper use the engine from their own threads."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(Config.DATABASE_URL, **engine_options(Config.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine)

# Ensure all tables are created
Base.metadata.create_all(bind=engine)
