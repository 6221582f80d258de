"""
Database session management - SQLAlchemy engine and session factory.
This module provides the history database connection and the session
dependency for FastAPI.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from screendoc.core.config import settings
from screendoc.db.base import Base


def build_engine(database_url: str) -> Engine:
    """
    Create the engine for ``database_url``.

    SQLite connections are shared between the request threads, so the
    same-thread check is disabled and the database directory is created.
    """
    url = make_url(database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)

# SessionLocal is a factory; call SessionLocal() to get a session
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create missing tables."""
    from screendoc.models import history_entry  # noqa: F401  (registers the table)

    Base.metadata.create_all(bind=bind)


def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/api/history")
        def list_history(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
