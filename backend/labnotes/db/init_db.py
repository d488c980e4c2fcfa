"""
Database initialization script.
Creates (or recreates) all tables for the configured DATABASE_URL.

    python -m labnotes.db.init_db            # create missing tables
    python -m labnotes.db.init_db --reset    # drop everything first
"""
import argparse

from ..core.config import settings
from ..core.logging import get_logger
from .session import Database

logger = get_logger(__name__)


def init_db(database: Database, reset: bool = False) -> None:
    """Create all tables, optionally dropping the existing ones first."""
    if reset:
        database.drop_all()
    logger.info("Initializing database...")
    database.create_all()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Create the lab notebook tables")
    parser.add_argument("--reset", action="store_true", help="drop all tables before creating them")
    args = parser.parse_args(argv)

    database = Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    try:
        init_db(database, reset=args.reset)
        logger.info("Database initialized successfully")
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
