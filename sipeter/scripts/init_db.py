from __future__ import annotations

from sipeter.core.config import get_settings
from sipeter.core.logging import configure_logging, get_logger
from sipeter.db.base import Base
from sipeter.db.session import SessionLocal, engine

# Import models to register with SQLAlchemy
import sipeter.models  # noqa: F401
from sipeter.services.venue_service import seed_venues

logger = get_logger(__name__)


def main() -> int:
    settings = get_settings()
    configure_logging(json_format=settings.log_json, log_level=settings.log_level)

    # Create tables
    Base.metadata.create_all(bind=engine)

    # Seed the fixed facility list
    db = SessionLocal()
    try:
        added = seed_venues(db, settings.venue_facilities)
    finally:
        db.close()

    logger.info("db_initialized", venues_added=added)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
