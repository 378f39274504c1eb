import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        # check_same_thread=False: FastAPI runs sync handlers in a threadpool
        return {
            "check_same_thread": False,
            "timeout": settings.db_statement_timeout_ms / 1000,
        }
    if url.startswith("postgresql"):
        return {
            "connect_timeout": max(1, settings.db_statement_timeout_ms // 1000),
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        }
    return {}


def make_engine(url: str, **kwargs):
    engine = create_engine(url, connect_args=_connect_args(url), **kwargs)

    if url.startswith("sqlite"):
        # Foreign keys are off by default in SQLite; branch deletes cascade
        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = make_engine(settings.resolved_database_url, pool_pre_ping=True)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
