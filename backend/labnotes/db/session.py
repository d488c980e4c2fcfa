from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.logging import get_logger
from ..models import Base  # importing the package registers every table

logger = get_logger(__name__)


def _safe_url(url: str) -> str:
    """Database URL with the password masked, for log lines."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except Exception:
        return "****"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the engine and session factory.

    Built explicitly by the application factory and kept on app.state.db, so tests
    and scripts can point at their own database and dispose of it when done.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {"pool_pre_ping": True, "echo": echo}

        parsed = make_url(url)
        is_sqlite = parsed.get_backend_name() == "sqlite"
        if is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
            if parsed.database in (None, "", ":memory:"):
                # One shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool

        logger.info(f"Initializing database connection to: {_safe_url(url)}")
        self.engine: Engine = create_engine(url, **kwargs)
        if is_sqlite:
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified successfully")

    def drop_all(self) -> None:
        logger.warning("Dropping all database tables...")
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for database sessions"""
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
